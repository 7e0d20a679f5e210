"""
Game entity dataclasses
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Union

import numpy as np

from .utils import vec3


class Archetype(str, Enum):
    """Projectile behaviour archetype"""
    REGULAR = "regular"
    HOMING = "homing"
    CLUSTER = "cluster"
    FRAGMENT = "fragment"


ARCHETYPE_IDS = {
    Archetype.REGULAR: 0,
    Archetype.HOMING: 1,
    Archetype.CLUSTER: 2,
    Archetype.FRAGMENT: 3,
}


@dataclass(frozen=True)
class Coin:
    """Roster entry: a tradable coin and the gameplay stats derived from its 24h change"""
    id: Union[int, str]
    name: str
    symbol: str
    percent_change: float
    logo_ref: Optional[str] = None
    slug: Optional[str] = None
    price: float = 0.0
    market_cap: float = 0.0
    rank: Optional[int] = None
    fall_speed: float = field(init=False)
    size: float = field(init=False)
    damage: float = field(init=False)

    def __post_init__(self):
        magnitude = abs(self.percent_change)
        object.__setattr__(self, "fall_speed", min(magnitude / 5, 10.0))
        object.__setattr__(self, "size", min(magnitude / 10 + 0.5, 3.0))
        object.__setattr__(self, "damage", min(magnitude / 5, 20.0))

    @property
    def hit_damage(self) -> int:
        """Health removed when this coin's projectile strikes the player"""
        return int(math.floor(abs(self.percent_change)))

    def label(self, archetype: Optional[Archetype] = None) -> str:
        tag = ""
        if archetype is Archetype.HOMING:
            tag = " (HOMING)"
        elif archetype is Archetype.CLUSTER:
            tag = " (CLUSTER)"
        return f"{self.symbol}: {self.percent_change:.2f}%{tag}"


@dataclass
class AABB:
    """Axis-aligned bounding box"""
    lo: np.ndarray
    hi: np.ndarray

    @classmethod
    def around(cls, center: np.ndarray, half_extents: np.ndarray) -> "AABB":
        return cls(center - half_extents, center + half_extents)

    def intersects(self, other: "AABB") -> bool:
        return bool(np.all(self.lo <= other.hi) and np.all(other.lo <= self.hi))


# ----------------------------
# Archetype payloads
# ----------------------------

@dataclass
class RegularMotion:
    """Wind-drifted fall"""
    archetype: ClassVar[Archetype] = Archetype.REGULAR


@dataclass
class HomingMotion:
    """Pursues the player; heading and pulse drive the render pose"""
    archetype: ClassVar[Archetype] = Archetype.HOMING
    heading: np.ndarray = field(default_factory=lambda: vec3(0.0, -1.0, 0.0))
    pulse: float = 1.0


@dataclass
class ClusterMotion:
    """Wind-drifted fall that bursts into fragments on impact"""
    archetype: ClassVar[Archetype] = Archetype.CLUSTER
    min_fragments: int = 5
    max_fragments: int = 9


@dataclass
class FragmentMotion:
    """Ballistic shard thrown out by a cluster impact"""
    archetype: ClassVar[Archetype] = Archetype.FRAGMENT
    parent_id: int = -1


Motion = Union[RegularMotion, HomingMotion, ClusterMotion, FragmentMotion]


@dataclass
class Projectile:
    """Falling coin missile; its archetype is fixed by its motion payload"""
    id: int
    coin: Coin
    motion: Motion
    position: np.ndarray
    velocity: np.ndarray
    size: float
    damage: float
    age: float = 0.0
    rotation: float = 0.0
    rotation_rate: float = 0.0
    has_triggered_near_miss: bool = False
    next_trail_time: float = 0.0
    box: Optional[AABB] = None

    def __post_init__(self):
        self.refresh_box()

    @property
    def archetype(self) -> Archetype:
        return self.motion.archetype

    @property
    def half_extents(self) -> np.ndarray:
        if self.archetype is Archetype.FRAGMENT:
            return vec3(self.size, self.size, self.size)
        # Cone-tipped cylinder: radius 0.5*size, length 2*size
        return vec3(0.5 * self.size, self.size, 0.5 * self.size)

    def refresh_box(self) -> AABB:
        self.box = AABB.around(self.position, self.half_extents)
        return self.box


# Player body extents relative to its origin (feet at y=0 when grounded)
PLAYER_BOX_LO = vec3(-0.775, -1.3, -0.25)
PLAYER_BOX_HI = vec3(0.775, 2.3, 0.25)


@dataclass
class Player:
    """Player avatar"""
    position: np.ndarray = field(default_factory=vec3)
    velocity: np.ndarray = field(default_factory=vec3)
    on_ground: bool = True
    health: float = 100.0
    max_health: float = 100.0
    dash_remaining: float = 0.0
    dash_cooldown_until: float = -math.inf
    yaw: float = 0.0
    invulnerable: bool = False
    box: Optional[AABB] = None

    def __post_init__(self):
        self.refresh_box()

    @property
    def dashing(self) -> bool:
        return self.dash_remaining > 0.0

    @property
    def health_fraction(self) -> float:
        return self.health / self.max_health if self.max_health > 0 else 0.0

    def refresh_box(self) -> AABB:
        self.box = AABB(self.position + PLAYER_BOX_LO, self.position + PLAYER_BOX_HI)
        return self.box

