import random

import pytest

from game.memedodge.config import GameConfig
from game.memedodge.entities import Coin, Projectile, RegularMotion
from game.memedodge.player import InputSnapshot
from game.memedodge.roster import EntityRoster
from game.memedodge.simulation import DodgeSession
from game.memedodge.utils import vec3


class RecordingUI:
    def __init__(self):
        self.calls = []
        self.alerts = []
        self.last_hits = []
        self.game_over = []

    def show_score(self, score):
        self.calls.append(("score", score))

    def show_time(self, remaining):
        self.calls.append(("time", remaining))

    def show_health(self, percent):
        self.calls.append(("health", percent))

    def show_multiplier(self, visible):
        self.calls.append(("multiplier", visible))

    def show_last_hit(self, text):
        self.last_hits.append(text)

    def show_alert(self, text, color="#ffffff"):
        self.alerts.append(text)

    def show_game_over(self, summary):
        self.game_over.append(summary)


class RecordingAudio:
    def __init__(self):
        self.played = []

    def play(self, cue, volume=1.0):
        self.played.append((cue, volume))


class BrokenAudio:
    def play(self, cue, volume=1.0):
        raise RuntimeError("no audio device")


class RecordingRenderer:
    def __init__(self):
        self.frames = []

    def render(self, frame):
        self.frames.append(frame)


def make_coin(percent_change, name="Test Coin", symbol="TST", coin_id=1):
    return Coin(id=coin_id, name=name, symbol=symbol, percent_change=percent_change)


def make_projectile(coin, position, velocity=(0.0, -1.0, 0.0), pid=1000, motion=None):
    return Projectile(
        id=pid,
        coin=coin,
        motion=motion or RegularMotion(),
        position=vec3(*position),
        velocity=vec3(*velocity),
        size=coin.size,
        damage=coin.damage,
    )


IDLE = InputSnapshot()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def quiet_config():
    """Spawns once on the first tick, then never again"""
    return GameConfig(spawn_interval_ms=1e9, max_spawn_interval_ms=1e9)


@pytest.fixture
def ui():
    return RecordingUI()


@pytest.fixture
def audio():
    return RecordingAudio()


@pytest.fixture
def quiet_session(quiet_config, ui, audio):
    """Running session with an empty sky and no further automatic spawns"""
    roster = EntityRoster([make_coin(-12.7, name="Paper Hands", symbol="PAPR")])
    session = DodgeSession(roster, config=quiet_config, seed=7, ui=ui, audio=audio)
    session.start()
    session.tick(1 / 60, IDLE)
    session.projectiles.clear()
    return session


def impact_batch(coin, count, start_id=5000):
    """Projectiles far from the player that hit the ground on the next tick"""
    return [
        make_projectile(coin, (-30.0 + 4 * (i % 15), 0.01, 30.0 - 4 * (i // 15)),
                        velocity=(0.0, -5.0, 0.0), pid=start_id + i)
        for i in range(count)
    ]
