"""
ProjectileFactory - turns roster entries into missiles
"""

from __future__ import annotations

import itertools
import math
import random
from typing import List, Optional

from .entities import (
    Archetype,
    ClusterMotion,
    Coin,
    FragmentMotion,
    HomingMotion,
    Motion,
    Projectile,
    RegularMotion,
)
from .roster import EntityRoster
from .utils import vec3

FRAGMENT_SCALE = 0.4


def choose_archetype(percent_change: float, r: float) -> Archetype:
    """Layered archetype draw; first matching rule wins.

    Steeper drops are more likely to produce homing and cluster missiles.
    """
    negative_factor = min(abs(percent_change) / 50, 1.0)

    if percent_change < -30 and r < 0.8:
        return Archetype.HOMING
    if percent_change < -20 and r < 0.4:
        return Archetype.CLUSTER
    if r < 0.05 + 0.1 * negative_factor:
        return Archetype.HOMING
    if r < 0.15 + 0.15 * negative_factor:
        return Archetype.CLUSTER
    return Archetype.REGULAR


def _motion_for(archetype: Archetype) -> Motion:
    if archetype is Archetype.HOMING:
        return HomingMotion()
    if archetype is Archetype.CLUSTER:
        return ClusterMotion()
    if archetype is Archetype.REGULAR:
        return RegularMotion()
    raise ValueError(f"Archetype {archetype} is not spawnable from the roster")


class ProjectileFactory:
    """Spawns projectiles from roster entries using its own RNG"""

    def __init__(self, rng: Optional[random.Random] = None, spawn_area: float = 80.0):
        self.rng = rng or random.Random()
        self.spawn_area = spawn_area
        self._ids = itertools.count(1)

    def reset(self):
        self._ids = itertools.count(1)

    def spawn(self, roster: EntityRoster) -> Projectile:
        coin = roster.pick(self.rng)
        archetype = choose_archetype(coin.percent_change, self.rng.random())
        return self.build(coin, archetype)

    def build(self, coin: Coin, archetype: Archetype) -> Projectile:
        rng = self.rng

        if archetype is Archetype.HOMING:
            # Ring around the arena centre, closer to the ground
            angle = rng.random() * math.tau
            distance = 30 + rng.random() * 20
            position = vec3(math.cos(angle) * distance,
                            20 + rng.random() * 10,
                            math.sin(angle) * distance)
            velocity = vec3(0.0, -coin.fall_speed * 0.8, 0.0)
        else:
            half = self.spawn_area / 2
            position = vec3(rng.uniform(-half, half),
                            50 + rng.random() * 10,
                            rng.uniform(-half, half))
            velocity = vec3(rng.uniform(-1.0, 1.0), -coin.fall_speed, rng.uniform(-1.0, 1.0))

        return Projectile(
            id=next(self._ids),
            coin=coin,
            motion=_motion_for(archetype),
            position=position,
            velocity=velocity,
            size=coin.size,
            damage=coin.damage,
            rotation_rate=rng.uniform(-1.0, 1.0),
        )

    def spawn_fragments(self, parent: Projectile) -> List[Projectile]:
        """Burst a cluster missile into 5-9 ballistic fragments at its impact point"""
        rng = self.rng
        motion = parent.motion
        if isinstance(motion, ClusterMotion):
            lo, hi = motion.min_fragments, motion.max_fragments
        else:
            lo, hi = 5, 9
        count = rng.randint(lo, hi)

        fragments = []
        for _ in range(count):
            angle = rng.random() * math.tau
            speed = 2 + rng.random() * 3
            velocity = vec3(math.cos(angle) * speed,
                            2 + rng.random() * 3,
                            math.sin(angle) * speed)
            fragments.append(Projectile(
                id=next(self._ids),
                coin=parent.coin,
                motion=FragmentMotion(parent_id=parent.id),
                position=vec3(parent.position[0], 0.2, parent.position[2]),
                velocity=velocity,
                size=parent.size * FRAGMENT_SCALE,
                damage=parent.damage,
                rotation_rate=rng.uniform(-2.5, 2.5),
                next_trail_time=0.05,
            ))
        return fragments
