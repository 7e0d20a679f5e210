"""
DodgeSession - explicit session context and the fixed-order tick.

Lifecycle:  new -> running -> ended -> (restart) -> running

One tick runs strictly in order:

    1. due deferred events (scheduled on earlier ticks)
    2. player update, pickups, score and clock
    3. missile spawn cadence + difficulty feedback
    4. missile kinematics and retirement handling
    5. effects
    6. HUD push and render

All mutable state is owned here and only touched inside tick(), start(),
end() and restart(). Collaborators are called but never write back.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import List, Optional

from .collaborators import (
    AudioSink,
    Cue,
    GameOverSummary,
    InputSource,
    NullInput,
    NullRenderer,
    NullUI,
    PlayerView,
    ProjectileView,
    Renderer,
    SafeAudio,
    SceneFrame,
    UISink,
)
from .collision import CollisionResolver
from .config import GameConfig
from .difficulty import DifficultyController, FlowState
from .effects import EffectsRegistry
from .entities import Archetype, HomingMotion, Projectile
from .kinematics import KinematicsEngine, TickReport
from .player import InputSnapshot, PlayerController
from .projectiles import ProjectileFactory
from .roster import EntityRoster
from .scheduler import EventKind, EventQueue, ScheduledEvent
from .session import SessionClock, streak_reward
from .utils import clamp


class Lifecycle(str, Enum):
    NEW = "new"
    RUNNING = "running"
    ENDED = "ended"


class DodgeSession:
    """One player's run against the missile rain"""

    def __init__(
        self,
        roster: EntityRoster,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        renderer: Optional[Renderer] = None,
        audio: Optional[AudioSink] = None,
        input_source: Optional[InputSource] = None,
        ui: Optional[UISink] = None,
        verbose: int = 0,
    ):
        self.roster = roster
        self.config = cfg = config or GameConfig()
        self.rng = random.Random(seed)
        self.verbose = verbose

        self.renderer = renderer or NullRenderer()
        self.audio = SafeAudio(audio, verbose=verbose)
        self.input_source = input_source or NullInput()
        self.ui = ui or NullUI()

        self.factory = ProjectileFactory(self.rng, spawn_area=cfg.spawn_area)
        self.resolver = CollisionResolver(cfg.near_miss_min, cfg.near_miss_max)
        self.kinematics = KinematicsEngine(
            self.factory,
            self.resolver,
            rng=self.rng,
            bounds=cfg.bounds,
            ceiling=cfg.ceiling,
            max_wind_speed=cfg.max_wind_speed,
            homing_gain=cfg.homing_gain,
            homing_max_strength=cfg.homing_max_strength,
            homing_speed_factor=cfg.homing_speed_factor,
            fragment_gravity=cfg.fragment_gravity,
            trail_period=cfg.trail_period,
        )
        self.player_controller = PlayerController(cfg)
        self.difficulty_controller = DifficultyController(cfg, rng=self.rng, verbose=verbose)
        self.clock = SessionClock(cfg.max_seconds, cfg.near_miss_bonus)
        self.effects = EffectsRegistry(self.rng)
        self.events = EventQueue()

        self.lifecycle = Lifecycle.NEW
        self._reset_state()

    @classmethod
    def from_feed(cls, path: str, **kwargs) -> "DodgeSession":
        return cls(EntityRoster.load(path, verbose=kwargs.get("verbose", 0)), **kwargs)

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def _reset_state(self):
        self.player = self.player_controller.new_player()
        self.projectiles: List[Projectile] = []
        self.difficulty = self.difficulty_controller.new_state()
        self.clock.reset()
        # First tick spawns immediately
        self._spawn_timer_ms = self.difficulty.spawn_interval_ms
        self._invulnerable_until = 0.0

    @property
    def now(self) -> float:
        return self.clock.state.elapsed_seconds

    @property
    def ended(self) -> bool:
        return self.lifecycle is Lifecycle.ENDED

    def start(self):
        if self.lifecycle is Lifecycle.RUNNING:
            return
        self.lifecycle = Lifecycle.RUNNING
        if self.verbose > 0:
            print(f"[DodgeSession] Started with {len(self.roster)} coins")
        self._alert("Get Ready!", "#4CAF50")
        self.audio.play(Cue.BACKGROUND, 0.5)
        self._push_hud()

    def restart(self):
        """Clear projectiles, effects, pending events and all session state in one step"""
        self.events.cancel_all()
        self.effects.clear()
        self.factory.reset()
        self._reset_state()
        self.ui.show_game_over(None)
        self.ui.show_last_hit(None)
        self.lifecycle = Lifecycle.NEW
        self.start()

    def end(self, reason: str = "ended"):
        if self.lifecycle is Lifecycle.ENDED:
            return
        self.clock.end()
        self.lifecycle = Lifecycle.ENDED
        self.projectiles.clear()
        self.events.cancel_all()
        self.player.invulnerable = False

        summary = self.summary()
        if self.verbose > 0:
            print(f"[DodgeSession] Session over ({reason}): score={summary.final_score} "
                  f"dodged={summary.coins_dodged} survived={summary.time_survived}")
        self.audio.play(Cue.GAME_OVER, 0.7)
        self.ui.show_game_over(summary)

    def summary(self) -> GameOverSummary:
        return GameOverSummary(
            final_score=int(self.clock.state.score),
            coins_dodged=self.difficulty.coins_dodged,
            time_survived=self.clock.time_survived_text(),
        )

    # ----------------------------
    # Tick
    # ----------------------------

    def tick(self, dt: float, inputs: Optional[InputSnapshot] = None) -> Optional[TickReport]:
        """Advance the session by dt seconds (capped); no-op unless running"""
        if self.lifecycle is not Lifecycle.RUNNING:
            return None
        dt = clamp(dt, 0.0, self.config.max_dt)
        if inputs is None:
            inputs = self.input_source.snapshot()

        for event in self.events.pop_due(self.now):
            self._fire(event)

        report = None
        if self._update_player(inputs, dt):
            self._update_spawning(dt)
            report = self.kinematics.tick(self.projectiles, self.player, dt)
            self._apply_report(report)

        self.effects.advance(dt)
        self._push_hud()
        self.renderer.render(self.frame())
        return report

    def run_headless(self, seconds: float, dt: float = 1 / 60,
                     inputs: Optional[InputSnapshot] = None) -> float:
        """Tick until `seconds` of game time pass or the session ends; returns game time run"""
        if self.lifecycle is Lifecycle.NEW:
            self.start()
        start = self.now
        while not self.ended and self.now - start < seconds:
            self.tick(dt, inputs)
        return self.now - start

    def _update_player(self, inputs: InputSnapshot, dt: float) -> bool:
        """Returns False if the session ended during this phase"""
        step = self.player_controller.update(self.player, inputs, dt, self.now)
        if step.jumped:
            self.audio.play(Cue.JUMP, 0.4)
        if step.dashed:
            self.audio.play(Cue.DASH, 0.3)
            self.effects.dash_burst(self.player.position)

        for pickup in self.effects.pickups:
            if pickup.box.intersects(self.player.box):
                pickup.collected = True
                self.player.health = clamp(self.player.health + pickup.heal, 0.0, self.player.max_health)
                self._alert(f"Health +{int(pickup.heal)}!", "#4CAF50")

        self.clock.accrue(dt, step.dash_active)
        if self.clock.advance(dt):
            self.end("time")
            return False
        return True

    def _update_spawning(self, dt: float):
        self._spawn_timer_ms += dt * 1000.0
        if self._spawn_timer_ms < self.difficulty.spawn_interval_ms:
            return
        self._spawn_timer_ms = 0.0
        self.spawn()

        cycle = self.difficulty_controller.on_spawn_cycle(
            self.difficulty, self.now * 1000.0, self.player.health_fraction)
        if cycle.extra_spawn:
            self.events.schedule(self.now + self.config.extra_spawn_delay, EventKind.EXTRA_SPAWN)

    def spawn(self) -> Projectile:
        projectile = self.factory.spawn(self.roster)
        self.projectiles.append(projectile)
        return projectile

    def _apply_report(self, report: TickReport):
        cfg = self.config
        diff = self.difficulty
        ctrl = self.difficulty_controller

        for p in report.impacts:
            self.effects.impact(p.position, p.size, p.archetype)
            self.audio.play(Cue.IMPACT, min(0.4, p.size / 5))
            self._on_dodge(ctrl.record_dodge(diff))

        for _ in report.near_misses:
            ctrl.record_near_miss(diff)
            self.clock.award_near_miss()
            self._slow_down()

        for p in report.hits:
            result = self.resolver.resolve_hit(p, self.player)
            if result.absorbed:
                continue
            ctrl.record_hit(diff)
            if self.verbose > 0:
                print(f"[DodgeSession] Player hit by {p.coin.name} ({p.coin.percent_change:.2f}%)")
            if result.fatal:
                self.end("health")
                return
            self.ui.show_last_hit(
                f"Hit by {p.coin.name} ({p.coin.percent_change:.2f}%) -{result.damage} HP")
            self.events.schedule(self.now + cfg.last_hit_duration, EventKind.CLEAR_LAST_HIT)
            self.audio.play(Cue.PLAYER_HIT, 0.6)

        for position, archetype in report.trails:
            self.effects.trail(position, archetype)

    def _on_dodge(self, streak: int):
        reward = streak_reward(streak)
        if reward is None:
            return
        self.clock.add_bonus(reward.points)
        self._alert(reward.message, reward.color)

        if reward.invulnerability:
            self.player.invulnerable = True
            self._invulnerable_until = self.now + self.config.invulnerability_duration
            self.events.schedule(self._invulnerable_until, EventKind.END_INVULNERABILITY)
        if reward.health_pickup and self.player.health < self.player.max_health:
            self.effects.health_pickup(self.player.position, self.config.pickup_heal,
                                       self.config.pickup_lifetime)

    def _slow_down(self):
        """Near-miss time dilation: scale live missiles now, restore the same ones later"""
        factor = self.config.slowdown_factor
        slowed = frozenset(p.id for p in self.projectiles)
        for p in self.projectiles:
            p.velocity *= factor
        self.events.schedule(self.now + self.config.slowdown_duration, EventKind.RESTORE_SPEED, slowed)

    def _alert(self, message: str, color: str = "#ffffff"):
        self.ui.show_alert(message, color)
        self.audio.play(Cue.ALERT, 0.5)
        self.events.schedule(self.now + self.config.alert_duration, EventKind.CLEAR_ALERT)

    def _fire(self, event: ScheduledEvent):
        kind = event.kind
        if kind is EventKind.EXTRA_SPAWN:
            self.spawn()
        elif kind is EventKind.RESTORE_SPEED:
            factor = self.config.slowdown_factor
            for p in self.projectiles:
                if p.id in event.payload:
                    p.velocity /= factor
        elif kind is EventKind.END_INVULNERABILITY:
            if self.now >= self._invulnerable_until:
                self.player.invulnerable = False
        elif kind is EventKind.CLEAR_LAST_HIT:
            self.ui.show_last_hit(None)
        elif kind is EventKind.CLEAR_ALERT:
            self.ui.show_alert(None)

    # ----------------------------
    # Outputs
    # ----------------------------

    def _push_hud(self):
        self.ui.show_score(int(self.clock.state.score))
        self.ui.show_time(self.clock.time_remaining_text())
        self.ui.show_health(self.player.health_fraction * 100.0)
        self.ui.show_multiplier(self.player.dashing)

    def frame(self) -> SceneFrame:
        views = []
        for p in self.projectiles:
            heading = p.motion.heading if isinstance(p.motion, HomingMotion) else None
            label = None if p.archetype is Archetype.FRAGMENT else p.coin.label(p.archetype)
            views.append(ProjectileView(
                id=p.id,
                archetype=p.archetype,
                position=p.position.copy(),
                size=p.size,
                rotation=p.rotation,
                heading=heading,
                label=label,
            ))
        player = PlayerView(
            position=self.player.position.copy(),
            yaw=self.player.yaw,
            dashing=self.player.dashing,
            invulnerable=self.player.invulnerable,
            in_flow=self.difficulty.flow_state is FlowState.FLOW,
        )
        return SceneFrame(player=player, projectiles=views,
                          effects=list(self.effects.effects), elapsed=self.now)
