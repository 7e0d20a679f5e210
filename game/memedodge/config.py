"""
Gameplay tuning constants
"""

from dataclasses import dataclass


@dataclass
class GameConfig:
    """All gameplay tunables; defaults reproduce the arcade build"""

    # Session
    max_health: float = 100.0
    max_seconds: float = 180.0
    max_dt: float = 0.1  # cap after a stall

    # Spawn cadence (ms)
    spawn_interval_ms: float = 2000.0
    min_spawn_interval_ms: float = 300.0
    max_spawn_interval_ms: float = 2000.0
    flow_min_interval_ms: float = 500.0
    flow_max_interval_ms: float = 1500.0
    boredom_step_ms: float = 100.0
    anxiety_step_ms: float = 50.0
    flow_jitter_ms: float = 50.0
    boredom_extra_spawn_chance: float = 0.3
    extra_spawn_delay: float = 0.5  # seconds

    # Skill rating / engagement band
    evaluation_period_ms: float = 5000.0
    initial_skill: float = 50.0
    initial_band: tuple = (40.0, 60.0)
    band_half_width: float = 15.0
    band_floor: float = 10.0
    band_ceiling: float = 90.0
    flow_creep: float = 1.0
    flow_creep_ceiling: float = 95.0

    # Player physics
    gravity: float = 20.0
    jump_velocity: float = 10.0
    base_speed: float = 5.0
    dash_speed: float = 15.0
    dash_duration: float = 0.2
    dash_cooldown: float = 2.0
    play_area: float = 40.0
    touch_sensitivity: float = 0.05

    # Projectiles
    spawn_area: float = 80.0
    bounds: float = 100.0
    ceiling: float = 100.0
    max_wind_speed: float = 3.0
    homing_gain: float = 0.5
    homing_max_strength: float = 3.0
    homing_speed_factor: float = 1.5
    fragment_gravity: float = 9.8
    trail_period: float = 0.05

    # Near misses
    near_miss_min: float = 1.0
    near_miss_max: float = 3.0
    near_miss_bonus: float = 5.0
    slowdown_factor: float = 0.7
    slowdown_duration: float = 0.5

    # Streak rewards
    invulnerability_duration: float = 3.0
    pickup_heal: float = 20.0
    pickup_lifetime: float = 15.0

    # UI timings (seconds)
    alert_duration: float = 2.0
    last_hit_duration: float = 3.0

    def __post_init__(self):
        if self.min_spawn_interval_ms > self.max_spawn_interval_ms:
            raise ValueError("min_spawn_interval_ms must not exceed max_spawn_interval_ms")
        if self.band_floor > self.band_ceiling:
            raise ValueError("band_floor must not exceed band_ceiling")
        if not 0.0 < self.slowdown_factor <= 1.0:
            raise ValueError(f"slowdown_factor must be in (0, 1], got {self.slowdown_factor}")

    @property
    def dash_factor(self) -> float:
        return self.dash_speed / self.base_speed
