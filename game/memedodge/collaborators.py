"""
Narrow interfaces to the outside world: rendering, audio, input and HUD.

The simulation calls into these at tick boundaries and never reads anything
back except the input snapshot. Null implementations let the core run
headless (tests, RL training).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Set, Tuple

import numpy as np

from .difficulty import FlowState
from .entities import Archetype
from .player import InputSnapshot


class Cue(str, Enum):
    BACKGROUND = "background"
    IMPACT = "impact"
    PLAYER_HIT = "player_hit"
    GAME_OVER = "game_over"
    JUMP = "jump"
    DASH = "dash"
    ALERT = "alert"


@dataclass
class ProjectileView:
    id: int
    archetype: Archetype
    position: np.ndarray
    size: float
    rotation: float
    heading: Optional[np.ndarray]
    label: Optional[str]


@dataclass
class PlayerView:
    position: np.ndarray
    yaw: float
    dashing: bool
    invulnerable: bool
    in_flow: bool


@dataclass
class SceneFrame:
    """Everything a renderer needs for one frame"""
    player: PlayerView
    projectiles: List[ProjectileView] = field(default_factory=list)
    effects: list = field(default_factory=list)
    elapsed: float = 0.0


@dataclass
class GameOverSummary:
    final_score: int
    coins_dodged: int
    time_survived: str


class Renderer(Protocol):
    def render(self, frame: SceneFrame) -> None: ...


class AudioSink(Protocol):
    def play(self, cue: Cue, volume: float = 1.0) -> None: ...


class InputSource(Protocol):
    def snapshot(self) -> InputSnapshot: ...


class UISink(Protocol):
    def show_score(self, score: int) -> None: ...
    def show_time(self, remaining: str) -> None: ...
    def show_health(self, percent: float) -> None: ...
    def show_multiplier(self, visible: bool) -> None: ...
    def show_last_hit(self, text: Optional[str]) -> None: ...
    def show_alert(self, text: Optional[str], color: str = "#ffffff") -> None: ...
    def show_game_over(self, summary: Optional[GameOverSummary]) -> None: ...


# ----------------------------
# Null implementations
# ----------------------------

class NullRenderer:
    def render(self, frame: SceneFrame) -> None:
        return None


class NullAudio:
    def play(self, cue: Cue, volume: float = 1.0) -> None:
        return None


class NullInput:
    def snapshot(self) -> InputSnapshot:
        return InputSnapshot()


class NullUI:
    def show_score(self, score: int) -> None:
        pass

    def show_time(self, remaining: str) -> None:
        pass

    def show_health(self, percent: float) -> None:
        pass

    def show_multiplier(self, visible: bool) -> None:
        pass

    def show_last_hit(self, text: Optional[str]) -> None:
        pass

    def show_alert(self, text: Optional[str], color: str = "#ffffff") -> None:
        pass

    def show_game_over(self, summary: Optional[GameOverSummary]) -> None:
        pass


class ScriptedInput:
    """Replays a fixed list of snapshots, then idles"""

    def __init__(self, snapshots: List[InputSnapshot]):
        self._snapshots = list(snapshots)
        self._index = 0

    def snapshot(self) -> InputSnapshot:
        if self._index < len(self._snapshots):
            snap = self._snapshots[self._index]
            self._index += 1
            return snap
        return InputSnapshot()


class SafeAudio:
    """Best-effort audio: playback failures are reported once per cue and swallowed"""

    def __init__(self, sink: Optional[AudioSink] = None, verbose: int = 1):
        self.sink = sink or NullAudio()
        self.verbose = verbose
        self._failed: Set[str] = set()

    def play(self, cue: Cue, volume: float = 1.0) -> None:
        try:
            self.sink.play(cue, volume)
        except Exception as e:  # audio must never break the tick
            key = getattr(cue, "value", str(cue))
            if key not in self._failed and self.verbose > 0:
                print(f"[warn] audio cue '{key}' failed: {e}")
            self._failed.add(key)


def flow_glow(flow_state: FlowState) -> Tuple[int, int, int]:
    """Player tint used to hint at the flow state"""
    return (0, 102, 255) if flow_state is FlowState.FLOW else (0, 0, 0)
