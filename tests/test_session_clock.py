import pytest

from game.memedodge.session import SessionClock, streak_reward
from game.memedodge.utils import format_clock


@pytest.mark.parametrize("streak, points, message", [
    (5, 50, "Great dodging!"),
    (10, 100, "Impressive streak!"),
    (15, 200, "UNSTOPPABLE!"),
    (20, 300, "LEGENDARY DODGER!"),
    (40, 300, "LEGENDARY DODGER!"),
])
def test_streak_milestones(streak, points, message):
    reward = streak_reward(streak)
    assert reward.points == points
    assert reward.message == message


@pytest.mark.parametrize("streak", [0, 1, 4, 6, 14, 16, 25, 35])
def test_no_reward_between_milestones(streak):
    assert streak_reward(streak) is None


def test_unstoppable_grants_invulnerability_and_legendary_a_pickup():
    assert streak_reward(15).invulnerability
    assert not streak_reward(15).health_pickup
    assert streak_reward(30).health_pickup


def test_score_accrual_doubles_while_dashing():
    clock = SessionClock()
    clock.accrue(1.0)
    clock.accrue(0.5, dash_active=True)
    assert clock.state.score == pytest.approx(2.0)


def test_clock_ends_at_ceiling():
    clock = SessionClock(max_seconds=1.0)
    assert not clock.advance(0.6)
    assert clock.advance(0.6)
    assert clock.ended
    assert not clock.advance(0.6)
    assert clock.time_remaining == 0.0


def test_no_score_after_end():
    clock = SessionClock()
    clock.end()
    clock.accrue(1.0)
    clock.add_bonus(50)
    clock.award_near_miss()
    assert clock.state.score == 0.0
    assert not clock.end()


def test_reset():
    clock = SessionClock()
    clock.add_bonus(10)
    clock.advance(5)
    clock.end()
    clock.reset()
    assert clock.state.score == 0
    assert clock.state.elapsed_seconds == 0
    assert not clock.ended


@pytest.mark.parametrize("seconds, text", [(180, "3:00"), (65.9, "1:05"), (0, "0:00"), (-3, "0:00")])
def test_format_clock(seconds, text):
    assert format_clock(seconds) == text
