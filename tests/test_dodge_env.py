import numpy as np
import pytest

pytest.importorskip("arcade")
pytest.importorskip("gymnasium")

from conftest import RecordingUI  # noqa: E402
from game.memedodge.dodge_env import DodgeEnv, action_to_input  # noqa: E402


@pytest.fixture
def env():
    env = DodgeEnv(render_mode=None)
    yield env
    env.close()


def test_spaces(env):
    assert tuple(env.action_space.nvec) == (5, 2, 2)
    assert env.observation_space.shape == (8 + 6 * 7 + 6,)


def test_reset_and_step_contract(env):
    obs, info = env.reset(seed=0)
    assert obs.shape == env.observation_space.shape
    assert obs.dtype == np.float32
    assert env.observation_space.contains(obs)
    assert info["flow_state"] == "neutral"

    obs, reward, terminated, truncated, info = env.step(np.array([1, 0, 0]))
    assert env.observation_space.contains(obs)
    assert isinstance(reward, float)
    assert not terminated and not truncated
    assert info["num_projectiles"] == 1
    for key in ("coins_dodged", "coins_hit", "near_misses", "skill_rating", "spawn_interval_ms"):
        assert key in info


def test_action_mapping():
    snap = action_to_input([3, 1, 1])
    assert snap.left and snap.jump and snap.dash
    assert not (snap.forward or snap.backward or snap.right)


def test_episode_truncates_at_session_ceiling():
    env = DodgeEnv(session_config={"max_seconds": 1.0}, dt=0.1)
    env.reset(seed=1)
    terminated = truncated = False
    steps = 0
    while not (terminated or truncated):
        _, _, terminated, truncated, _ = env.step(env.action_space.sample())
        steps += 1
    assert truncated and not terminated
    assert steps == 10


def test_reset_is_reproducible(env):
    def rollout(seed):
        env.reset(seed=seed)
        env.action_space.seed(seed)
        obs = None
        for _ in range(120):
            obs, *_ = env.step(env.action_space.sample())
        return obs

    np.testing.assert_allclose(rollout(4), rollout(4))


class HeadlessWindow(RecordingUI):
    """Stands in for DodgeWindow without opening a display"""

    def __init__(self):
        super().__init__()
        self.session = None
        self.closed = False

    def close(self):
        self.closed = True


def test_attached_window_sees_the_env_session(env):
    window = HeadlessWindow()
    env.attach_window(window)
    env.reset(seed=0)
    env.step(np.array([0, 0, 0]))

    assert window.session is env.session
    assert env.session.ui is window
    assert any(kind == "score" for kind, _ in window.calls)

    env.close()
    assert window.closed
