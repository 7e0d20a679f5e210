"""
KinematicsEngine - per-tick motion and retirement of projectiles.

Every live projectile is steered by its archetype rule, integrated, aged and
then tested for retirement in priority order:

    1. ground impact   (position.y < 0)
    2. out of bounds   (|x| or |z| beyond the bounds, or above the ceiling)
    3. player hit      (bounding boxes intersect)

Exactly one retirement path runs per projectile per tick. The engine does not
touch counters or score; it reports what happened and the session applies it.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .collision import CollisionResolver
from .entities import Archetype, HomingMotion, Player, Projectile
from .projectiles import ProjectileFactory
from .utils import clamp_horizontal_speed, clamp_speed, normalize, vec_len


@dataclass
class TickReport:
    """What happened to the projectile list during one tick"""
    impacts: List[Projectile] = field(default_factory=list)
    escaped: List[Projectile] = field(default_factory=list)
    hits: List[Projectile] = field(default_factory=list)
    near_misses: List[Projectile] = field(default_factory=list)
    fragments: List[Projectile] = field(default_factory=list)
    trails: List[Tuple[np.ndarray, Archetype]] = field(default_factory=list)


class KinematicsEngine:
    """Advances projectiles and decides how each one retires"""

    def __init__(
        self,
        factory: ProjectileFactory,
        resolver: Optional[CollisionResolver] = None,
        rng: Optional[random.Random] = None,
        bounds: float = 100.0,
        ceiling: float = 100.0,
        max_wind_speed: float = 3.0,
        homing_gain: float = 0.5,
        homing_max_strength: float = 3.0,
        homing_speed_factor: float = 1.5,
        fragment_gravity: float = 9.8,
        trail_period: float = 0.05,
    ):
        self.factory = factory
        self.resolver = resolver or CollisionResolver()
        self.rng = rng or random.Random()
        self.bounds = bounds
        self.ceiling = ceiling
        self.max_wind_speed = max_wind_speed
        self.homing_gain = homing_gain
        self.homing_max_strength = homing_max_strength
        self.homing_speed_factor = homing_speed_factor
        self.fragment_gravity = fragment_gravity
        self.trail_period = trail_period

    # ----------------------------
    # Motion rules
    # ----------------------------

    def _apply_wind(self, p: Projectile, dt: float):
        p.velocity[0] += self.rng.uniform(-1.0, 1.0) * 0.1 * dt
        p.velocity[2] += self.rng.uniform(-1.0, 1.0) * 0.1 * dt
        clamp_horizontal_speed(p.velocity, self.max_wind_speed)

    def _apply_homing(self, p: Projectile, player: Player, dt: float):
        to_player = normalize(player.position - p.position)
        strength = min(p.age * self.homing_gain, self.homing_max_strength)

        p.velocity[0] += to_player[0] * strength * dt
        p.velocity[2] += to_player[2] * strength * dt
        # -1 keeps a downward bias
        p.velocity[1] += (to_player[1] - 1.0) * strength * dt

        clamp_speed(p.velocity, p.coin.fall_speed * self.homing_speed_factor)

        motion = p.motion
        if isinstance(motion, HomingMotion):
            if vec_len(p.velocity) > 0.1:
                motion.heading = normalize(p.velocity)
            motion.pulse = 0.5 + 0.5 * (0.5 + 0.5 * math.sin(p.age * 10))

    def _apply_gravity(self, p: Projectile, dt: float):
        p.velocity[1] -= self.fragment_gravity * dt

    def steer(self, p: Projectile, player: Player, dt: float):
        archetype = p.archetype
        if archetype is Archetype.HOMING:
            self._apply_homing(p, player, dt)
        elif archetype is Archetype.FRAGMENT:
            self._apply_gravity(p, dt)
        else:
            self._apply_wind(p, dt)

    def out_of_bounds(self, p: Projectile) -> bool:
        x, y, z = p.position
        return abs(x) > self.bounds or abs(z) > self.bounds or y > self.ceiling

    # ----------------------------
    # Tick
    # ----------------------------

    def tick(self, projectiles: List[Projectile], player: Player, dt: float) -> TickReport:
        """Advance all projectiles in place; retired ones are removed from the list"""
        report = TickReport()
        survivors = []

        for p in projectiles:
            p.age += dt
            self.steer(p, player, dt)
            p.position += p.velocity * dt
            p.rotation += p.rotation_rate * dt
            p.refresh_box()

            if p.age > p.next_trail_time:
                report.trails.append((p.position.copy(), p.archetype))
                p.next_trail_time = p.age + self.trail_period

            if p.position[1] < 0:
                report.impacts.append(p)
                if p.archetype is Archetype.CLUSTER:
                    report.fragments.extend(self.factory.spawn_fragments(p))
                continue

            if self.out_of_bounds(p):
                report.escaped.append(p)
                continue

            # a colliding projectile is a hit, never also a near miss
            if self.resolver.intersects(p, player):
                report.hits.append(p)
                continue

            if self.resolver.check_near_miss(p, player):
                report.near_misses.append(p)

            survivors.append(p)

        survivors.extend(report.fragments)
        projectiles[:] = survivors
        return report
