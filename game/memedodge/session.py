"""
SessionClock - elapsed time, score and end-of-session detection
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .utils import format_clock


@dataclass
class SessionState:
    score: float = 0.0
    elapsed_seconds: float = 0.0
    max_seconds: float = 180.0
    ended: bool = False


@dataclass
class StreakReward:
    """Bonus granted when the dodge streak reaches a milestone"""
    points: int
    message: str
    color: str
    invulnerability: bool = False
    health_pickup: bool = False


def streak_reward(consecutive_dodges: int) -> Optional[StreakReward]:
    """Milestones at 5/10/15, then every 10th dodge from 20 on"""
    if consecutive_dodges == 5:
        return StreakReward(50, "Great dodging!", "#4CAF50")
    if consecutive_dodges == 10:
        return StreakReward(100, "Impressive streak!", "#2196F3")
    if consecutive_dodges == 15:
        return StreakReward(200, "UNSTOPPABLE!", "#9C27B0", invulnerability=True)
    if consecutive_dodges >= 20 and consecutive_dodges % 10 == 0:
        return StreakReward(300, "LEGENDARY DODGER!", "#FF9800", health_pickup=True)
    return None


class SessionClock:
    """Owns SessionState; `ended` is terminal until reset()"""

    def __init__(self, max_seconds: float = 180.0, near_miss_bonus: float = 5.0):
        self.max_seconds = max_seconds
        self.near_miss_bonus = near_miss_bonus
        self.state = SessionState(max_seconds=max_seconds)

    def reset(self):
        self.state = SessionState(max_seconds=self.max_seconds)

    @property
    def ended(self) -> bool:
        return self.state.ended

    @property
    def time_remaining(self) -> float:
        return max(0.0, self.state.max_seconds - self.state.elapsed_seconds)

    def time_remaining_text(self) -> str:
        return format_clock(self.time_remaining)

    def time_survived_text(self) -> str:
        return format_clock(self.state.elapsed_seconds)

    def accrue(self, dt: float, dash_active: bool = False) -> float:
        """Continuous score: 1 point per second, doubled while dashing"""
        if self.state.ended:
            return 0.0
        gained = dt * (2.0 if dash_active else 1.0)
        self.state.score += gained
        return gained

    def advance(self, dt: float) -> bool:
        """Move the clock; returns True if this call ended the session on time"""
        if self.state.ended:
            return False
        self.state.elapsed_seconds += dt
        if self.state.elapsed_seconds >= self.state.max_seconds:
            self.state.ended = True
            return True
        return False

    def add_bonus(self, points: float):
        if not self.state.ended:
            self.state.score += points

    def award_near_miss(self):
        self.add_bonus(self.near_miss_bonus)

    def end(self) -> bool:
        """Mark the session ended; returns False if it already was"""
        if self.state.ended:
            return False
        self.state.ended = True
        return True
