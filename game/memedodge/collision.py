"""
CollisionResolver - box intersection, near misses and hit resolution
"""

from __future__ import annotations

from dataclasses import dataclass

from .entities import Player, Projectile
from .utils import clamp, vec_len


@dataclass
class HitResult:
    """Outcome of a projectile striking the player"""
    damage: int
    absorbed: bool  # True while the player is invulnerable
    fatal: bool


class CollisionResolver:
    """Per-frame O(n) checks between the player and live projectiles"""

    def __init__(self, near_miss_min: float = 1.0, near_miss_max: float = 3.0):
        self.near_miss_min = near_miss_min
        self.near_miss_max = near_miss_max

    @staticmethod
    def intersects(projectile: Projectile, player: Player) -> bool:
        return projectile.refresh_box().intersects(player.box)

    def check_near_miss(self, projectile: Projectile, player: Player) -> bool:
        """Latch and report a near miss; fires at most once per projectile"""
        if projectile.has_triggered_near_miss or projectile.position[1] <= 0:
            return False
        distance = vec_len(projectile.position - player.position)
        if self.near_miss_min < distance < self.near_miss_max:
            projectile.has_triggered_near_miss = True
            return True
        return False

    @staticmethod
    def resolve_hit(projectile: Projectile, player: Player) -> HitResult:
        if player.invulnerable:
            return HitResult(damage=0, absorbed=True, fatal=False)

        damage = projectile.coin.hit_damage
        player.health = clamp(player.health - damage, 0.0, player.max_health)
        return HitResult(damage=damage, absorbed=False, fatal=player.health <= 0.0)
