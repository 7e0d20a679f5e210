"""
PlayerController - integrates the avatar from input, gravity, jump and dash
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import GameConfig
from .entities import Player
from .utils import clamp, vec3


@dataclass
class InputSnapshot:
    """Per-tick input state; jump/dash are one-shot commands"""
    forward: bool = False
    backward: bool = False
    left: bool = False
    right: bool = False
    touch: Tuple[float, float] = (0.0, 0.0)
    jump: bool = False
    dash: bool = False


@dataclass
class PlayerStep:
    """Side-channel results of one player update"""
    jumped: bool = False
    dashed: bool = False
    dash_active: bool = False
    moving: bool = False


class PlayerController:
    """Grounded/airborne are exclusive; dashing overlays either of them"""

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config or GameConfig()

    def new_player(self) -> Player:
        return Player(health=self.config.max_health, max_health=self.config.max_health)

    def try_jump(self, player: Player) -> bool:
        if not player.on_ground:
            return False
        player.velocity[1] = self.config.jump_velocity
        player.on_ground = False
        return True

    def try_dash(self, player: Player, now: float) -> bool:
        if player.dashing or now <= player.dash_cooldown_until:
            return False
        player.dash_remaining = self.config.dash_duration
        player.dash_cooldown_until = now + self.config.dash_cooldown
        return True

    def dash_cooldown_remaining(self, player: Player, now: float) -> float:
        return max(0.0, player.dash_cooldown_until - now)

    def update(self, player: Player, inputs: InputSnapshot, dt: float, now: float) -> PlayerStep:
        cfg = self.config
        step = PlayerStep()

        if inputs.jump:
            step.jumped = self.try_jump(player)
        if inputs.dash:
            step.dashed = self.try_dash(player, now)

        dash_factor = 1.0
        if player.dashing:
            step.dash_active = True
            dash_factor = cfg.dash_factor
            player.dash_remaining = max(0.0, player.dash_remaining - dt)

        if not player.on_ground:
            player.velocity[1] -= cfg.gravity * dt

        # forward is -z
        move = vec3(
            float(inputs.right) - float(inputs.left),
            0.0,
            float(inputs.backward) - float(inputs.forward),
        )
        length = math.hypot(move[0], move[2])
        speed = cfg.base_speed * dash_factor
        if length > 0:
            move *= speed / length
            step.moving = True
            target = math.atan2(move[0], move[2])
            diff = (target - player.yaw + math.pi) % math.tau - math.pi
            player.yaw += diff * min(10 * dt, 1.0)

        player.position[0] += move[0] * dt
        player.position[2] += move[2] * dt

        tx, tz = inputs.touch
        if tx or tz:
            sensitivity = cfg.touch_sensitivity * dash_factor
            player.position[0] += tx * sensitivity * dt
            player.position[2] += tz * sensitivity * dt

        player.position[1] += player.velocity[1] * dt
        if player.position[1] <= 0.0:
            player.position[1] = 0.0
            player.velocity[1] = 0.0
            player.on_ground = True

        bound = cfg.play_area
        player.position[0] = clamp(player.position[0], -bound, bound)
        player.position[2] = clamp(player.position[2], -bound, bound)
        player.refresh_box()
        return step
