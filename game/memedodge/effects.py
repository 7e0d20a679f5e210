"""
EffectsRegistry - transient visual objects as plain data.

Every effect is a small tagged dataclass with a pure `advance(dt)` step that
reports whether it should stay alive. The registry iterates them generically;
nothing here reaches into the renderer or the simulation state.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Union

import numpy as np

from .entities import AABB, Archetype
from .utils import vec3


class Advance(Enum):
    CONTINUE = "continue"
    EXPIRE = "expire"


ARCHETYPE_COLORS = {
    Archetype.REGULAR: (255, 0, 0),
    Archetype.HOMING: (255, 34, 34),
    Archetype.CLUSTER: (255, 170, 34),
    Archetype.FRAGMENT: (255, 170, 34),
}

CRATER_COLORS = {
    Archetype.REGULAR: (51, 51, 51),
    Archetype.HOMING: (119, 34, 34),
    Archetype.CLUSTER: (119, 85, 34),
    Archetype.FRAGMENT: (119, 85, 34),
}

SPARK_COUNTS = {
    Archetype.REGULAR: 20,
    Archetype.HOMING: 40,
    Archetype.CLUSTER: 30,
    Archetype.FRAGMENT: 20,
}


@dataclass
class Crater:
    """Scorch mark left by an impact; fades out after the first second"""
    kind: ClassVar[str] = "crater"
    position: np.ndarray
    radius: float
    color: tuple
    age: float = 0.0
    lifespan: float = 5.0
    opacity: float = 1.0

    def advance(self, dt: float) -> Advance:
        self.age += dt
        if self.age > 1.0:
            self.opacity = max(0.0, 1.0 - (self.age - 1.0) / (self.lifespan - 1.0))
        return Advance.EXPIRE if self.age >= self.lifespan else Advance.CONTINUE


@dataclass
class Spark:
    """Ballistic explosion particle"""
    kind: ClassVar[str] = "spark"
    position: np.ndarray
    velocity: np.ndarray
    color: tuple
    lifespan: float
    age: float = 0.0
    opacity: float = 0.8
    scale: float = 1.0

    def advance(self, dt: float) -> Advance:
        self.position += self.velocity * dt
        self.velocity[1] -= 9.8 * dt
        self.age += dt
        life = 1.0 - self.age / self.lifespan
        self.opacity = 0.8 * max(life, 0.0)
        self.scale = 1.0 + (1.0 - life)
        if self.age >= self.lifespan or self.position[1] < 0:
            return Advance.EXPIRE
        return Advance.CONTINUE


@dataclass
class Trail:
    """Smoke puff behind a missile; rises, grows and fades"""
    kind: ClassVar[str] = "trail"
    position: np.ndarray
    color: tuple
    lifespan: float
    age: float = 0.0
    opacity: float = 0.8
    scale: float = 1.0

    def advance(self, dt: float) -> Advance:
        self.age += dt
        life = 1.0 - self.age / self.lifespan
        self.opacity = 0.8 * max(life, 0.0)
        self.scale = 1.0 + (1.0 - life) * 2
        self.position[1] += 0.5 * dt
        return Advance.EXPIRE if self.age >= self.lifespan else Advance.CONTINUE


@dataclass
class DashBurst:
    """Short-lived particle cloud behind a dashing player"""
    kind: ClassVar[str] = "dash"
    points: List[np.ndarray]
    age: float = 0.0
    lifespan: float = 0.5

    def advance(self, dt: float) -> Advance:
        self.age += dt
        return Advance.EXPIRE if self.age >= self.lifespan else Advance.CONTINUE


@dataclass
class HealthPickup:
    """Hovering heal orb; collected on contact, gone after its lifetime"""
    kind: ClassVar[str] = "health_pickup"
    position: np.ndarray
    heal: float = 20.0
    lifetime: float = 15.0
    radius: float = 0.7
    age: float = 0.0
    spin: float = 0.0
    collected: bool = False

    @property
    def box(self) -> AABB:
        r = self.radius
        return AABB.around(self.position, vec3(r, r, r))

    def advance(self, dt: float) -> Advance:
        if self.collected:
            return Advance.EXPIRE
        self.age += dt
        self.spin += dt * 2
        self.position[1] = 1.0 + math.sin(self.age * 2.0) * 0.2
        return Advance.EXPIRE if self.age > self.lifetime else Advance.CONTINUE


Effect = Union[Crater, Spark, Trail, DashBurst, HealthPickup]


class EffectsRegistry:
    """Single owner of every transient effect"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.effects: List[Effect] = []

    def add(self, effect: Effect) -> Effect:
        self.effects.append(effect)
        return effect

    def advance(self, dt: float) -> int:
        """Step every effect; returns the number that expired"""
        before = len(self.effects)
        self.effects = [e for e in self.effects if e.advance(dt) is Advance.CONTINUE]
        return before - len(self.effects)

    def clear(self):
        self.effects.clear()

    def of_kind(self, kind: str) -> List[Effect]:
        return [e for e in self.effects if e.kind == kind]

    @property
    def pickups(self) -> List[HealthPickup]:
        return [e for e in self.effects if isinstance(e, HealthPickup) and not e.collected]

    # ----------------------------
    # Factories
    # ----------------------------

    def impact(self, position: np.ndarray, size: float, archetype: Archetype):
        """Crater plus a burst of sparks; bigger bursts for special missiles"""
        rng = self.rng
        self.add(Crater(position=vec3(position[0], 0.0, position[2]),
                        radius=size / 2, color=CRATER_COLORS[archetype]))

        color = ARCHETYPE_COLORS[archetype]
        for _ in range(SPARK_COUNTS[archetype]):
            angle = rng.random() * math.tau
            offset = rng.random() * size
            speed = 1 + rng.random() * 5
            self.add(Spark(
                position=vec3(position[0] + math.cos(angle) * offset,
                              0.1 + rng.random() * 0.5,
                              position[2] + math.sin(angle) * offset),
                velocity=vec3(math.cos(angle) * speed * 0.5,
                              1 + rng.random() * 3,
                              math.sin(angle) * speed * 0.5),
                color=color,
                lifespan=0.5 + rng.random() * 0.5,
            ))

    def trail(self, position: np.ndarray, archetype: Archetype):
        rng = self.rng
        jitter = vec3(rng.uniform(-0.25, 0.25), 1.0 + rng.uniform(-0.25, 0.25), rng.uniform(-0.25, 0.25))
        self.add(Trail(position=position + jitter, color=ARCHETYPE_COLORS[archetype],
                       lifespan=0.5 + rng.random() * 0.5))

    def dash_burst(self, origin: np.ndarray, count: int = 15):
        rng = self.rng
        points = [origin + vec3(rng.uniform(-0.5, 0.5), 0.5 + rng.random() * 1.5, 0.2 + rng.random() * 0.5)
                  for _ in range(count)]
        self.add(DashBurst(points=points))

    def health_pickup(self, around: np.ndarray, heal: float = 20.0, lifetime: float = 15.0) -> HealthPickup:
        """Drop a heal orb 5-15 units from `around`"""
        angle = self.rng.random() * math.tau
        distance = 5 + self.rng.random() * 10
        return self.add(HealthPickup(
            position=vec3(around[0] + math.cos(angle) * distance, 1.0,
                          around[2] + math.sin(angle) * distance),
            heal=heal,
            lifetime=lifetime,
        ))

    def __len__(self) -> int:
        return len(self.effects)
