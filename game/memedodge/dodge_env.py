"""
DodgeEnv - the meme-coin missile dodge as a Gymnasium environment
-----------------------------------------------------------------
- DodgeSession drives the simulation; this module only adapts it
- Arcade window for human play and for watching agents (top-down view)
- Gymnasium API for automated playtesting of the difficulty controller
- Vector observation: player state + K nearest missiles + difficulty signals
- MultiDiscrete action space: [move(5), jump(2), dash(2)]

Install:
    pip install gymnasium arcade numpy

Quick test:
    python -m game.memedodge.dodge_env
"""

from __future__ import annotations

import math
import os
import time
from typing import Any, Dict, Optional

import numpy as np
import gymnasium as gym
from gymnasium import spaces
import arcade

from .collaborators import Cue, GameOverSummary, SceneFrame, flow_glow
from .config import GameConfig
from .difficulty import FLOW_STATE_IDS, FlowState
from .effects import ARCHETYPE_COLORS, Crater, DashBurst, HealthPickup, Spark, Trail
from .entities import ARCHETYPE_IDS
from .player import InputSnapshot
from .roster import EntityRoster, sample_roster
from .simulation import DodgeSession
from .utils import clamp, seed_everything

# move: 0 stay, 1 forward, 2 backward, 3 left, 4 right
MOVES = {
    0: InputSnapshot(),
    1: InputSnapshot(forward=True),
    2: InputSnapshot(backward=True),
    3: InputSnapshot(left=True),
    4: InputSnapshot(right=True),
}


def action_to_input(action) -> InputSnapshot:
    move, jump, dash = int(action[0]), int(action[1]), int(action[2])
    base = MOVES.get(move, MOVES[0])
    return InputSnapshot(
        forward=base.forward,
        backward=base.backward,
        left=base.left,
        right=base.right,
        jump=bool(jump),
        dash=bool(dash),
    )


class DodgeEnv(gym.Env):
    """Missile dodge environment backed by DodgeSession"""

    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    def __init__(
        self,
        render_mode: Optional[str] = None,
        roster: Optional[EntityRoster] = None,
        feed_path: Optional[str] = None,
        dt: float = 1 / 30,
        k_projectiles: int = 6,
        session_config: Optional[Dict[str, Any]] = None,
        reward_config: Optional[Dict[str, float]] = None,
        width: int = 800,
        height: int = 800,
    ):
        super().__init__()

        self.render_mode = render_mode
        self.dt = dt
        self.k_projectiles = k_projectiles
        self.width = width
        self.height = height

        if roster is None:
            roster = EntityRoster.load(feed_path) if feed_path else sample_roster()
        self.roster = roster
        self.config = GameConfig(**(session_config or {}))
        self.max_steps = int(math.ceil(self.config.max_seconds / dt))

        reward_config = reward_config or {}
        self.r_alive = reward_config.get("R_ALIVE", 0.01)
        self.r_dodge = reward_config.get("R_DODGE", 0.1)
        self.r_near_miss = reward_config.get("R_NEAR_MISS", 0.05)
        self.r_damage = reward_config.get("R_DAMAGE", 2.0)
        self.r_death = reward_config.get("R_DEATH", 5.0)

        self.action_space = spaces.MultiDiscrete([5, 2, 2])

        # Player: pos(3) vy(1) health(1) dashing(1) cooldown(1) grounded(1)
        # Each missile: rel pos(3) vel(3) archetype(1)
        # Difficulty: skill(1) spawn interval(1) flow one-hot(4)
        obs_dim = 8 + self.k_projectiles * 7 + 6
        self.observation_space = spaces.Box(
            low=-1.0, high=1.0, shape=(obs_dim,), dtype=np.float32
        )

        self.session = DodgeSession(self.roster, config=self.config)
        self._window = None
        self._step_count = 0
        self._episode_near_misses = 0
        self._events: Dict[str, float] = {}

    # ----------------------------
    # Gym API
    # ----------------------------

    def reset(self, seed: Optional[int] = None, options: Optional[dict] = None):
        super().reset(seed=seed)
        seed_everything(seed)
        if seed is not None:
            self.session.rng.seed(seed)

        self.session.restart()
        self._step_count = 0
        self._episode_near_misses = 0
        return self._get_obs(), self._get_info()

    def step(self, action):
        session = self.session
        diff = session.difficulty
        dodged_before = diff.coins_dodged
        health_before = session.player.health

        report = session.tick(self.dt, action_to_input(action))

        near_misses = len(report.near_misses) if report is not None else 0
        self._episode_near_misses += near_misses
        self._events = {
            "dodge": float(diff.coins_dodged - dodged_before),
            "near_miss": float(near_misses),
            "damage": max(0.0, health_before - session.player.health) / session.player.max_health,
        }

        reward = self._compute_reward()

        # Termination
        terminated = session.player.health <= 0.0
        self._step_count += 1
        truncated = not terminated and (session.ended or self._step_count >= self.max_steps)

        obs = self._get_obs()
        info = self._get_info()

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    def _compute_reward(self) -> float:
        reward = self.r_alive
        reward += self.r_dodge * self._events.get("dodge", 0.0)
        reward += self.r_near_miss * self._events.get("near_miss", 0.0)
        reward -= self.r_damage * self._events.get("damage", 0.0)  # fraction of max health

        if self.session.player.health <= 0.0:
            reward -= self.r_death

        return float(reward)

    # ----------------------------
    # Observation / info
    # ----------------------------

    def _get_obs(self) -> np.ndarray:
        session = self.session
        cfg = self.config
        player = session.player
        area = cfg.play_area

        cooldown = session.player_controller.dash_cooldown_remaining(player, session.now) / cfg.dash_cooldown
        parts = [
            player.position[0] / area,
            clamp(player.position[1] / 5.0, 0.0, 1.0) * 2 - 1,
            player.position[2] / area,
            clamp(player.velocity[1] / cfg.jump_velocity, -1, 1),
            player.health_fraction * 2 - 1,
            1.0 if player.dashing else -1.0,
            clamp(cooldown * 2 - 1, -1, 1),
            1.0 if player.on_ground else -1.0,
        ]

        # Missiles: top-K nearest
        nearest = sorted(
            session.projectiles,
            key=lambda p: float(np.sum((p.position - player.position) ** 2)),
        )
        for i in range(self.k_projectiles):
            if i < len(nearest):
                p = nearest[i]
                rel = (p.position - player.position) / cfg.bounds
                vel = p.velocity / 15.0
                parts += [clamp(float(v), -1, 1) for v in rel]
                parts += [clamp(float(v), -1, 1) for v in vel]
                parts.append(ARCHETYPE_IDS[p.archetype] / 1.5 - 1)
            else:
                parts += [0.0] * 7

        diff = session.difficulty
        span = max(cfg.max_spawn_interval_ms - cfg.min_spawn_interval_ms, 1.0)
        interval = (diff.spawn_interval_ms - cfg.min_spawn_interval_ms) / span
        parts += [diff.skill_rating / 50 - 1, clamp(interval * 2 - 1, -1, 1)]
        flow = [-1.0] * 4
        flow[FLOW_STATE_IDS[diff.flow_state]] = 1.0
        parts += flow

        return np.array(parts, dtype=np.float32)

    def _get_info(self) -> Dict[str, Any]:
        session = self.session
        diff = session.difficulty
        return {
            "health": session.player.health,
            "score": session.clock.state.score,
            "elapsed": session.now,
            "coins_dodged": diff.coins_dodged,
            "coins_hit": diff.coins_hit,
            "near_misses": self._episode_near_misses,
            "skill_rating": diff.skill_rating,
            "flow_state": diff.flow_state.value,
            "spawn_interval_ms": diff.spawn_interval_ms,
            "num_projectiles": len(session.projectiles),
            "step": self._step_count,
        }

    # ----------------------------
    # Rendering with Arcade
    # ----------------------------

    def render(self):
        if self.render_mode is None:
            return None

        if self._window is None and self.render_mode == "human":
            self.attach_window(DodgeWindow(self.width, self.height))

        if self.render_mode == "human" and self._window:
            self._window.render(self.session.frame())
            self._window.on_draw()
            return None
        elif self.render_mode == "rgb_array":
            return self._render_rgb_array()

    def attach_window(self, window):
        """Window shows this session's HUD; the env keeps driving the ticks"""
        window.session = self.session
        self.session.ui = window
        self._window = window

    def _render_rgb_array(self):
        """Top-down occupancy image: missiles red, player green"""
        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        view = DodgeWindow.VIEW_EXTENT
        scale = self.width / (2 * view)

        def to_px(pos):
            return (int((pos[0] + view) * scale), int((pos[2] + view) * scale))

        for p in self.session.projectiles:
            px, py = to_px(p.position)
            r = max(1, int(p.size * scale * 0.5))
            frame[max(0, py - r):py + r, max(0, px - r):px + r] = ARCHETYPE_COLORS[p.archetype]
        px, py = to_px(self.session.player.position)
        frame[max(0, py - 3):py + 3, max(0, px - 3):px + 3] = (80, 200, 120)
        return frame

    def close(self):
        if self._window is not None:
            self._window.close()
            self._window = None


class DodgeWindow(arcade.Window):
    """Top-down Arcade view; doubles as keyboard input source and HUD sink"""

    VIEW_EXTENT = 55.0  # world units from centre to window edge

    def __init__(self, width: int = 800, height: int = 800, title: str = "Memecoin Dodge"):
        super().__init__(width, height, title)
        self.session: Optional[DodgeSession] = None
        self._frame: Optional[SceneFrame] = None

        # Keyboard state
        self._keys = {"forward": False, "backward": False, "left": False, "right": False}
        self._jump = False
        self._dash = False

        # HUD state
        self.score = 0
        self.time_text = "3:00"
        self.health_pct = 100.0
        self.multiplier = False
        self.last_hit: Optional[str] = None
        self.alert: Optional[str] = None
        self.alert_color = (255, 255, 255)
        self.game_over: Optional[GameOverSummary] = None

        # Colors
        self.BG = (18, 18, 22)
        self.PLAYER_C = (33, 148, 206)
        self.PICKUP_C = (76, 175, 80)
        self.HUD_C = (220, 220, 220)

    # Renderer
    def render(self, frame: SceneFrame) -> None:
        self._frame = frame

    # InputSource
    def snapshot(self) -> InputSnapshot:
        snap = InputSnapshot(jump=self._jump, dash=self._dash, **self._keys)
        self._jump = False
        self._dash = False
        return snap

    # UISink
    def show_score(self, score: int) -> None:
        self.score = score

    def show_time(self, remaining: str) -> None:
        self.time_text = remaining

    def show_health(self, percent: float) -> None:
        self.health_pct = percent

    def show_multiplier(self, visible: bool) -> None:
        self.multiplier = visible

    def show_last_hit(self, text: Optional[str]) -> None:
        self.last_hit = text

    def show_alert(self, text: Optional[str], color: str = "#ffffff") -> None:
        self.alert = text
        self.alert_color = _hex_to_rgb(color)

    def show_game_over(self, summary: Optional[GameOverSummary]) -> None:
        self.game_over = summary

    # ----------------------------
    # Arcade callbacks
    # ----------------------------

    def on_key_press(self, symbol: int, modifiers: int):
        if symbol in (arcade.key.UP, arcade.key.W):
            self._keys["forward"] = True
        elif symbol in (arcade.key.DOWN, arcade.key.S):
            self._keys["backward"] = True
        elif symbol in (arcade.key.LEFT, arcade.key.A):
            self._keys["left"] = True
        elif symbol in (arcade.key.RIGHT, arcade.key.D):
            self._keys["right"] = True
        elif symbol == arcade.key.SPACE:
            self._jump = True
        elif symbol in (arcade.key.LSHIFT, arcade.key.RSHIFT):
            self._dash = True
        elif symbol == arcade.key.R and self.session is not None and self.session.ended:
            self.session.restart()
        elif symbol == arcade.key.ESCAPE:
            self.close()

    def on_key_release(self, symbol: int, modifiers: int):
        if symbol in (arcade.key.UP, arcade.key.W):
            self._keys["forward"] = False
        elif symbol in (arcade.key.DOWN, arcade.key.S):
            self._keys["backward"] = False
        elif symbol in (arcade.key.LEFT, arcade.key.A):
            self._keys["left"] = False
        elif symbol in (arcade.key.RIGHT, arcade.key.D):
            self._keys["right"] = False

    def on_update(self, delta_time: float):
        if self.session is not None:
            self.session.tick(delta_time)

    def _to_screen(self, pos):
        scale = self.width / (2 * self.VIEW_EXTENT)
        # forward (-z) is up on screen
        return (pos[0] + self.VIEW_EXTENT) * scale, (self.VIEW_EXTENT - pos[2]) * scale, scale

    def on_draw(self):
        """Draw the last frame pushed by the session"""
        self.clear()
        arcade.set_background_color(self.BG)
        frame = self._frame
        if frame is None:
            return

        for e in frame.effects:
            if isinstance(e, DashBurst):
                for point in e.points:
                    px, py, s = self._to_screen(point)
                    arcade.draw_circle_filled(px, py, max(1.0, 0.1 * s), self.PLAYER_C + (180,))
                continue
            x, y, scale = self._to_screen(e.position)
            if isinstance(e, Crater):
                arcade.draw_circle_filled(x, y, max(1.0, e.radius * scale), e.color + (int(255 * e.opacity),))
            elif isinstance(e, (Spark, Trail)):
                arcade.draw_circle_filled(x, y, max(1.0, 0.1 * e.scale * scale),
                                          e.color + (int(255 * e.opacity),))
            elif isinstance(e, HealthPickup):
                arcade.draw_circle_filled(x, y, e.radius * scale, self.PICKUP_C)

        for p in frame.projectiles:
            x, y, scale = self._to_screen(p.position)
            # Shadow grows as the missile nears the ground
            shadow = max(1.0, p.size * scale * (1.0 - min(p.position[1], 60.0) / 80.0))
            arcade.draw_circle_filled(x, y, shadow, (0, 0, 0, 90))
            arcade.draw_circle_filled(x, y, max(2.0, 0.5 * p.size * scale), ARCHETYPE_COLORS[p.archetype])
            if p.label:
                arcade.draw_text(p.label, x + 6, y + 6, self.HUD_C, 9)

        x, y, scale = self._to_screen(frame.player.position)
        color = self.PLAYER_C
        if frame.player.in_flow:
            color = flow_glow_blend(color)
        alpha = 160 if frame.player.invulnerable else 255
        arcade.draw_circle_filled(x, y, max(4.0, 0.8 * scale * (1 + frame.player.position[1] / 10)), color + (alpha,))

        self._draw_hud()

    def _draw_hud(self):
        bar_w, bar_h = 180, 10
        x0, y0 = 12, self.height - 22
        arcade.draw_lrbt_rectangle_filled(x0, x0 + bar_w, y0, y0 + bar_h, (60, 60, 60))
        fill = bar_w * clamp(self.health_pct / 100.0, 0, 1)
        if self.health_pct < 25:
            hp_color = (244, 67, 54)
        elif self.health_pct < 50:
            hp_color = (255, 152, 0)
        else:
            hp_color = (76, 175, 80)
        if fill > 0:
            arcade.draw_lrbt_rectangle_filled(x0, x0 + fill, y0, y0 + bar_h, hp_color)

        txt = f"Score: {self.score}   Time: {self.time_text}" + ("   x2" if self.multiplier else "")
        arcade.draw_text(txt, 12, self.height - 44, self.HUD_C, 14)
        if self.session is not None:
            diff = self.session.difficulty
            arcade.draw_text(
                f"Skill {diff.skill_rating:.0f}  Band {diff.band_min:.0f}-{diff.band_max:.0f}  "
                f"{diff.flow_state.value.upper()}  Spawn {diff.spawn_interval_ms:.0f}ms",
                12, self.height - 64, self.HUD_C, 11)
        if self.last_hit:
            arcade.draw_text(self.last_hit, 12, 16, (244, 67, 54), 13)
        if self.alert:
            arcade.draw_text(self.alert, self.width / 2, self.height / 2, self.alert_color, 28,
                             anchor_x="center")
        if self.game_over:
            lines = [
                "GAME OVER",
                f"Final Score: {self.game_over.final_score}",
                f"Memecoins Dodged: {self.game_over.coins_dodged}",
                f"Time Survived: {self.game_over.time_survived}",
                "Press R to restart",
            ]
            for i, line in enumerate(lines):
                arcade.draw_text(line, self.width / 2, self.height / 2 - 40 - i * 26, self.HUD_C, 18,
                                 anchor_x="center")


class ArcadeAudio:
    """Plays cue files from a directory; missing files are reported and skipped"""

    FILES = {
        Cue.BACKGROUND: "background.wav",
        Cue.IMPACT: "impact.wav",
        Cue.PLAYER_HIT: "player_hit.wav",
        Cue.GAME_OVER: "game_over.wav",
        Cue.JUMP: "jump.wav",
        Cue.DASH: "dash.wav",
        Cue.ALERT: "alert.wav",
    }

    def __init__(self, sound_dir: str = "fx", verbose: int = 1):
        self.sounds = {}
        for cue, name in self.FILES.items():
            path = os.path.join(sound_dir, name)
            try:
                self.sounds[cue] = arcade.load_sound(path)
            except (FileNotFoundError, OSError) as e:
                if verbose > 0:
                    print(f"[warn] could not load sound {path}: {e}")
                self.sounds[cue] = None

    def play(self, cue: Cue, volume: float = 1.0) -> None:
        sound = self.sounds.get(cue)
        if sound is not None:
            arcade.play_sound(sound, volume=volume)


def _hex_to_rgb(color: str):
    color = color.lstrip("#")
    if len(color) != 6:
        return (255, 255, 255)
    return tuple(int(color[i:i + 2], 16) for i in (0, 2, 4))


def flow_glow_blend(base):
    """Mix the flow-state glow into a base colour"""
    glow = flow_glow(FlowState.FLOW)
    return tuple(min(255, int(b * 0.7 + g * 0.3)) for b, g in zip(base, glow))


# ----------------------------
# Entry points
# ----------------------------

def play(feed_path: Optional[str] = None, seed: Optional[int] = None, sound_dir: str = "fx"):
    """Play with the keyboard: WASD/arrows move, SPACE jumps, SHIFT dashes, R restarts"""
    roster = EntityRoster.load(feed_path, verbose=1) if feed_path else sample_roster(verbose=1)
    window = DodgeWindow()
    session = DodgeSession(
        roster,
        seed=seed,
        renderer=window,
        audio=ArcadeAudio(sound_dir),
        input_source=window,
        ui=window,
        verbose=1,
    )
    window.session = session
    session.start()
    arcade.run()


def run_random_episode(render: bool = True):
    """Run a random episode for testing"""
    env = DodgeEnv(render_mode="human" if render else None)
    obs, info = env.reset(seed=42)

    terminated = False
    truncated = False
    total = 0.0

    print("Running episode... Press ESC or close window to exit early.")

    while not (terminated or truncated):
        action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total += reward

        if render and env._window:
            env._window.dispatch_events()
            env._window.on_draw()
            env._window.flip()
            time.sleep(0.03)

    print(f"Random episode return: {total:.2f}  dodged={info['coins_dodged']}  "
          f"hit={info['coins_hit']}  flow={info['flow_state']}  skill={info['skill_rating']:.1f}")
    env.close()


if __name__ == "__main__":
    # Use: python -m game.memedodge.dodge_env [feed.json]
    import sys
    play(sys.argv[1] if len(sys.argv) > 1 else None)
