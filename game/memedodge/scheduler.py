"""
EventQueue - deferred side effects evaluated against the session clock.

Events are kept in a deadline heap and popped at the start of a tick once
their due time has passed. Each event is stamped with the session generation
it was scheduled in; cancel_all() bumps the generation so nothing scheduled
before an end/restart can fire into the next session.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class EventKind(str, Enum):
    EXTRA_SPAWN = "extra_spawn"
    RESTORE_SPEED = "restore_speed"
    END_INVULNERABILITY = "end_invulnerability"
    CLEAR_LAST_HIT = "clear_last_hit"
    CLEAR_ALERT = "clear_alert"


@dataclass(order=True)
class ScheduledEvent:
    due: float
    seq: int
    kind: EventKind = field(compare=False)
    payload: Any = field(default=None, compare=False)
    generation: int = field(default=0, compare=False)


class EventQueue:
    """Sorted deadline queue scoped by session generation"""

    def __init__(self):
        self._heap: List[ScheduledEvent] = []
        self._seq = itertools.count()
        self.generation = 0

    def schedule(self, due: float, kind: EventKind, payload: Any = None) -> ScheduledEvent:
        event = ScheduledEvent(due=due, seq=next(self._seq), kind=kind,
                               payload=payload, generation=self.generation)
        heapq.heappush(self._heap, event)
        return event

    def pop_due(self, now: float) -> List[ScheduledEvent]:
        """Remove and return events due at or before `now`, in deadline order"""
        due = []
        while self._heap and self._heap[0].due <= now:
            event = heapq.heappop(self._heap)
            if event.generation == self.generation:
                due.append(event)
        return due

    def pending(self, kind: EventKind) -> int:
        return sum(1 for e in self._heap if e.kind is kind and e.generation == self.generation)

    def cancel_all(self):
        self._heap.clear()
        self.generation += 1

    def __len__(self) -> int:
        return len(self._heap)
