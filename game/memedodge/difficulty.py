"""
DifficultyController - skill rating and flow-state feedback on spawn cadence.

The controller is a continuous feedback loop, not an automaton: the flow
label is re-derived from the current difficulty and engagement band at every
evaluation and carries no history of its own.

    difficulty = 100 - (spawn_interval - 300) / 1700 * 100

    boredom  (difficulty below band)  -> spawn faster, maybe an extra missile
    anxiety  (difficulty above band)  -> spawn slower
    flow     (inside band)            -> small jitter, band max creeps up
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import GameConfig
from .utils import clamp


class FlowState(str, Enum):
    BOREDOM = "boredom"
    NEUTRAL = "neutral"
    FLOW = "flow"
    ANXIETY = "anxiety"


FLOW_STATE_IDS = {
    FlowState.BOREDOM: 0,
    FlowState.NEUTRAL: 1,
    FlowState.FLOW: 2,
    FlowState.ANXIETY: 3,
}


@dataclass
class DifficultyState:
    """Process-wide difficulty signals, reset at every session (re)start"""
    skill_rating: float = 50.0
    band_min: float = 40.0
    band_max: float = 60.0
    flow_state: FlowState = FlowState.NEUTRAL
    spawn_interval_ms: float = 2000.0
    consecutive_dodges: int = 0
    near_miss_count: int = 0  # windowed; cleared at each evaluation
    coins_dodged: int = 0
    coins_hit: int = 0
    last_evaluation_ms: float = 0.0

    @property
    def engagement_band(self):
        return self.band_min, self.band_max


@dataclass
class SpawnCycle:
    """Result of one spawn-cycle adjustment"""
    extra_spawn: bool = False
    evaluated: bool = False


class DifficultyController:
    """Periodically rates the player and retunes the spawn interval"""

    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None,
                 verbose: int = 0):
        self.config = config or GameConfig()
        self.rng = rng or random.Random()
        self.verbose = verbose

    def new_state(self) -> DifficultyState:
        cfg = self.config
        band_min, band_max = cfg.initial_band
        return DifficultyState(
            skill_rating=cfg.initial_skill,
            band_min=band_min,
            band_max=band_max,
            spawn_interval_ms=cfg.spawn_interval_ms,
        )

    # ----------------------------
    # Counters
    # ----------------------------

    @staticmethod
    def record_dodge(state: DifficultyState) -> int:
        state.coins_dodged += 1
        state.consecutive_dodges += 1
        return state.consecutive_dodges

    @staticmethod
    def record_hit(state: DifficultyState):
        state.coins_hit += 1
        state.consecutive_dodges = 0

    @staticmethod
    def record_near_miss(state: DifficultyState):
        state.near_miss_count += 1

    # ----------------------------
    # Control loop
    # ----------------------------

    def current_difficulty(self, state: DifficultyState) -> float:
        """Challenge level in [0, 100] implied by the spawn interval"""
        lo = self.config.min_spawn_interval_ms
        hi = self.config.max_spawn_interval_ms
        span = max(hi - lo, 1e-6)
        return 100.0 - (state.spawn_interval_ms - lo) / span * 100.0

    def tune_spawn_interval(self, state: DifficultyState) -> bool:
        """Adjust the interval for the current flow label; returns True to request an extra spawn"""
        cfg = self.config
        extra = False
        interval = state.spawn_interval_ms

        if state.flow_state is FlowState.BOREDOM:
            interval = interval - cfg.boredom_step_ms
            extra = self.rng.random() < cfg.boredom_extra_spawn_chance
        elif state.flow_state is FlowState.ANXIETY:
            interval = interval + cfg.anxiety_step_ms
        elif state.flow_state is FlowState.FLOW:
            interval += self.rng.uniform(-1.0, 1.0) * cfg.flow_jitter_ms
            interval = clamp(interval, cfg.flow_min_interval_ms, cfg.flow_max_interval_ms)

        state.spawn_interval_ms = clamp(interval, cfg.min_spawn_interval_ms, cfg.max_spawn_interval_ms)
        return extra

    def update_skill_rating(self, state: DifficultyState, health_fraction: float) -> float:
        cfg = self.config
        dodge_rate = state.coins_dodged / max(state.coins_dodged + state.coins_hit, 1)
        near_miss_factor = min(state.near_miss_count / 5, 1.0)

        change = 5 * dodge_rate
        change += 3 * clamp(health_fraction, 0.0, 1.0)
        change += 2 * near_miss_factor
        change -= 5 * (1 if state.coins_hit > 0 else 0)

        state.skill_rating = clamp(state.skill_rating + change, 0.0, 100.0)
        state.band_min = clamp(state.skill_rating - cfg.band_half_width, cfg.band_floor, cfg.band_ceiling)
        state.band_max = clamp(state.skill_rating + cfg.band_half_width, cfg.band_floor, cfg.band_ceiling)
        state.near_miss_count = 0
        return state.skill_rating

    def classify(self, state: DifficultyState, difficulty: float) -> FlowState:
        cfg = self.config
        if difficulty < state.band_min:
            state.flow_state = FlowState.BOREDOM
        elif difficulty > state.band_max:
            state.flow_state = FlowState.ANXIETY
        else:
            state.flow_state = FlowState.FLOW
            # Sustained engagement widens the band upward
            state.band_max = min(state.band_max + cfg.flow_creep, cfg.flow_creep_ceiling)
            state.band_max = clamp(state.band_max, cfg.band_floor, cfg.band_ceiling)

        if self.verbose > 1:
            print(f"[DifficultyController] {state.flow_state.value.upper()} "
                  f"difficulty={difficulty:.1f} band=({state.band_min:.1f}, {state.band_max:.1f}) "
                  f"skill={state.skill_rating:.1f}")
        return state.flow_state

    def on_spawn_cycle(self, state: DifficultyState, now_ms: float, health_fraction: float) -> SpawnCycle:
        """Run once per spawn: tune cadence, and re-evaluate skill when the period has elapsed.

        Classification uses the difficulty measured before this cycle's tuning.
        """
        difficulty = self.current_difficulty(state)
        cycle = SpawnCycle(extra_spawn=self.tune_spawn_interval(state))

        if now_ms - state.last_evaluation_ms >= self.config.evaluation_period_ms:
            self.update_skill_rating(state, health_fraction)
            self.classify(state, difficulty)
            state.last_evaluation_ms = now_ms
            cycle.evaluated = True
        return cycle
