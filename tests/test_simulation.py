import pytest

from conftest import (
    IDLE,
    BrokenAudio,
    RecordingRenderer,
    impact_batch,
    make_coin,
    make_projectile,
)
from game.memedodge.collaborators import Cue, ScriptedInput
from game.memedodge.config import GameConfig
from game.memedodge.difficulty import FlowState
from game.memedodge.effects import HealthPickup
from game.memedodge.player import InputSnapshot
from game.memedodge.roster import EntityRoster, sample_roster
from game.memedodge.scheduler import EventKind
from game.memedodge.simulation import DodgeSession, Lifecycle
from game.memedodge.utils import vec3

DT = 1 / 60


def cues(audio):
    return [cue for cue, _ in audio.played]


def test_tick_is_noop_until_started():
    session = DodgeSession(sample_roster(), seed=1)
    assert session.lifecycle is Lifecycle.NEW
    assert session.tick(DT) is None
    assert session.now == 0.0


def test_start_announces_and_spawns_on_first_tick(ui, audio):
    session = DodgeSession(sample_roster(), seed=1, ui=ui, audio=audio)
    session.start()
    assert ui.alerts == ["Get Ready!"]
    assert Cue.BACKGROUND in cues(audio)

    session.tick(DT, IDLE)
    assert len(session.projectiles) == 1


def test_input_source_drives_ticks_without_explicit_inputs(quiet_config, audio):
    scripted = ScriptedInput([InputSnapshot(jump=True), InputSnapshot(jump=True)])
    session = DodgeSession(sample_roster(), config=quiet_config, seed=3,
                           audio=audio, input_source=scripted)
    session.start()

    session.tick(DT)
    assert not session.player.on_ground
    assert session.player.position[1] > 0.0

    # second scripted jump is ignored mid-air, then the script runs dry and idles
    session.run_headless(1.5, DT)
    assert cues(audio).count(Cue.JUMP) == 1
    assert session.player.on_ground


def test_first_ground_impact_counts_one_dodge():
    roster = EntityRoster([make_coin(-45.0, name="Rugpull", symbol="RUG")])
    session = DodgeSession(roster, seed=11)
    session.start()

    impacts = 0
    while impacts == 0 and session.now < 60 and not session.ended:
        report = session.tick(DT, IDLE)
        if report is not None:
            impacts += len(report.impacts)

    assert impacts == 1
    assert session.difficulty.coins_dodged == 1
    assert session.difficulty.consecutive_dodges == 1


def test_hit_removes_floor_of_percent_change(quiet_session, ui, audio):
    coin = quiet_session.roster[0]
    quiet_session.projectiles.append(make_projectile(coin, (0.0, 1.0, 0.0)))

    report = quiet_session.tick(DT, IDLE)

    assert len(report.hits) == 1
    assert quiet_session.player.health == 88
    assert quiet_session.difficulty.coins_hit == 1
    assert ui.last_hits[-1] == "Hit by Paper Hands (-12.70%) -12 HP"
    assert Cue.PLAYER_HIT in cues(audio)


def test_hit_earns_no_near_miss_bonus(quiet_session):
    coin = quiet_session.roster[0]
    quiet_session.projectiles.append(
        make_projectile(coin, (0.0, 2.5, 0.0), velocity=(0.0, -0.1, 0.0), pid=1))
    before = quiet_session.clock.state.score

    report = quiet_session.tick(DT, IDLE)

    assert [p.id for p in report.hits] == [1]
    assert report.near_misses == []
    assert quiet_session.difficulty.near_miss_count == 0
    assert quiet_session.events.pending(EventKind.RESTORE_SPEED) == 0
    assert quiet_session.clock.state.score == pytest.approx(before + DT)


def test_last_hit_text_clears_after_three_seconds(quiet_session, ui):
    quiet_session.projectiles.append(make_projectile(quiet_session.roster[0], (0.0, 1.0, 0.0)))
    quiet_session.tick(DT, IDLE)
    quiet_session.run_headless(2.9, DT, IDLE)
    assert ui.last_hits[-1] is not None
    quiet_session.run_headless(0.2, DT, IDLE)
    assert ui.last_hits[-1] is None


def test_fatal_hit_ends_session_on_same_tick(quiet_session, ui, audio):
    quiet_session.projectiles.append(make_projectile(make_coin(-150.0), (0.0, 1.0, 0.0)))

    quiet_session.tick(DT, IDLE)

    assert quiet_session.player.health == 0.0
    assert quiet_session.ended
    assert quiet_session.clock.ended
    assert quiet_session.difficulty.coins_hit == 1
    assert quiet_session.projectiles == []
    assert ui.game_over[-1].coins_dodged == 0
    assert cues(audio)[-1] is Cue.GAME_OVER
    assert quiet_session.tick(DT, IDLE) is None


def test_health_never_negative_over_repeated_hits(quiet_session):
    coin = make_coin(-40.0)
    for i in range(5):
        if quiet_session.ended:
            break
        quiet_session.projectiles.append(make_projectile(coin, (0.0, 1.0, 0.0), pid=100 + i))
        quiet_session.tick(DT, IDLE)
        assert quiet_session.player.health >= 0.0
    assert quiet_session.ended
    assert quiet_session.player.health == 0.0


def test_unstoppable_awarded_once(quiet_session, ui):
    coin = quiet_session.roster[0]
    before = quiet_session.clock.state.score

    quiet_session.projectiles.extend(impact_batch(coin, 15))
    quiet_session.tick(DT, IDLE)

    assert quiet_session.difficulty.consecutive_dodges == 15
    assert ui.alerts.count("UNSTOPPABLE!") == 1
    # 50 + 100 + 200 for the 5/10/15 milestones, plus one tick of survival
    assert quiet_session.clock.state.score == pytest.approx(before + 350 + DT)
    assert quiet_session.player.invulnerable

    quiet_session.projectiles.extend(impact_batch(coin, 15, start_id=6000))
    quiet_session.tick(DT, IDLE)

    assert quiet_session.difficulty.consecutive_dodges == 30
    assert ui.alerts.count("UNSTOPPABLE!") == 1
    assert ui.alerts.count("LEGENDARY DODGER!") == 2


def test_invulnerability_absorbs_hits_then_lapses(quiet_session):
    coin = quiet_session.roster[0]
    quiet_session.projectiles.extend(impact_batch(coin, 15))
    quiet_session.tick(DT, IDLE)

    quiet_session.projectiles.append(make_projectile(coin, (0.0, 1.0, 0.0), pid=1))
    report = quiet_session.tick(DT, IDLE)

    assert len(report.hits) == 1
    assert quiet_session.player.health == 100
    assert quiet_session.difficulty.coins_hit == 0
    assert quiet_session.difficulty.consecutive_dodges == 15

    quiet_session.run_headless(3.1, DT, IDLE)
    assert not quiet_session.player.invulnerable


def test_legendary_streak_drops_pickup_only_when_hurt(quiet_session):
    coin = quiet_session.roster[0]
    quiet_session.projectiles.extend(impact_batch(coin, 20))
    quiet_session.tick(DT, IDLE)
    assert quiet_session.effects.pickups == []

    quiet_session.player.health = 50.0
    quiet_session.projectiles.extend(impact_batch(coin, 10, start_id=6000))
    quiet_session.tick(DT, IDLE)
    assert len(quiet_session.effects.pickups) == 1


def test_pickup_heals_up_to_max(quiet_session, ui):
    quiet_session.player.health = 90.0
    quiet_session.effects.add(HealthPickup(position=vec3(0.0, 1.0, 0.0)))
    quiet_session.tick(DT, IDLE)
    assert quiet_session.player.health == 100.0
    assert "Health +20!" in ui.alerts
    assert quiet_session.effects.pickups == []


def test_near_miss_scores_and_slows_then_restores(quiet_session):
    coin = quiet_session.roster[0]
    grazing = make_projectile(coin, (2.0, 1.0, 0.0), velocity=(0.0, -0.1, 0.0), pid=1)
    distant = make_projectile(coin, (30.0, 50.0, 30.0), velocity=(0.0, -1.0, 0.0), pid=2)
    quiet_session.projectiles.extend([grazing, distant])
    before = quiet_session.clock.state.score

    report = quiet_session.tick(DT, IDLE)

    assert report.near_misses == [grazing]
    assert quiet_session.difficulty.near_miss_count == 1
    assert quiet_session.clock.state.score == pytest.approx(before + 5 + DT)
    assert distant.velocity[1] == pytest.approx(-0.7)

    quiet_session.run_headless(0.6, DT, IDLE)
    assert distant.velocity[1] == pytest.approx(-1.0)
    assert grazing.velocity[1] == pytest.approx(-0.1)


def test_slowdown_never_touches_next_session(quiet_session):
    coin = quiet_session.roster[0]
    grazing = make_projectile(coin, (2.0, 1.0, 0.0), velocity=(0.0, -0.1, 0.0), pid=1)
    quiet_session.projectiles.append(grazing)
    quiet_session.tick(DT, IDLE)
    assert quiet_session.events.pending(EventKind.RESTORE_SPEED) == 1

    quiet_session.restart()
    assert quiet_session.events.pending(EventKind.RESTORE_SPEED) == 0
    quiet_session.tick(DT, IDLE)
    quiet_session.projectiles.clear()

    # same id as the projectile slowed before the restart
    fresh = make_projectile(coin, (30.0, 50.0, 30.0), velocity=(0.0, -1.0, 0.0), pid=1)
    quiet_session.projectiles.append(fresh)
    quiet_session.run_headless(1.0, DT, IDLE)
    assert fresh.velocity[1] == pytest.approx(-1.0)


def test_restart_resets_everything(quiet_session, ui):
    coin = quiet_session.roster[0]
    quiet_session.projectiles.extend(impact_batch(coin, 6))
    quiet_session.projectiles.append(make_projectile(coin, (2.0, 1.0, 0.0), velocity=(0.0, -0.1, 0.0), pid=1))
    quiet_session.tick(DT, IDLE)
    quiet_session.projectiles.append(make_projectile(make_coin(-150.0), (0.0, 1.0, 0.0), pid=2))
    quiet_session.tick(DT, IDLE)
    assert quiet_session.ended

    quiet_session.restart()

    diff = quiet_session.difficulty
    assert quiet_session.lifecycle is Lifecycle.RUNNING
    assert quiet_session.projectiles == []
    assert diff.consecutive_dodges == 0
    assert diff.near_miss_count == 0
    assert diff.coins_dodged == 0
    assert diff.skill_rating == 50
    assert diff.flow_state is FlowState.NEUTRAL
    assert quiet_session.player.health == 100
    assert quiet_session.clock.state.score == 0
    assert quiet_session.now == 0
    assert ui.game_over[-1] is None


def test_session_times_out(ui):
    session = DodgeSession(sample_roster(), config=GameConfig(max_seconds=1.0), seed=3, ui=ui)
    session.start()
    session.run_headless(5.0, DT, InputSnapshot(left=True))
    assert session.ended
    assert session.now == pytest.approx(1.0, abs=DT)
    assert ui.game_over[-1].time_survived == "0:01"


def test_dt_is_capped(quiet_session):
    start = quiet_session.now
    quiet_session.tick(5.0, IDLE)
    assert quiet_session.now - start == pytest.approx(0.1)


def test_dash_doubles_score_accrual(quiet_session):
    before = quiet_session.clock.state.score
    quiet_session.tick(0.1, InputSnapshot(dash=True))
    assert quiet_session.clock.state.score - before == pytest.approx(0.2)


def test_extra_spawn_event_adds_a_projectile(quiet_session):
    quiet_session.events.schedule(quiet_session.now, EventKind.EXTRA_SPAWN)
    quiet_session.tick(DT, IDLE)
    assert len(quiet_session.projectiles) == 1


def test_broken_audio_is_reported_once(capsys):
    session = DodgeSession(sample_roster(), seed=1, audio=BrokenAudio(), verbose=1)
    session.start()
    session.run_headless(1.0, DT, InputSnapshot(jump=True))
    out = capsys.readouterr().out
    assert out.count("[warn] audio cue 'background'") == 1
    assert out.count("[warn] audio cue 'jump'") == 1


def test_renderer_receives_frames():
    renderer = RecordingRenderer()
    session = DodgeSession(sample_roster(), seed=5, renderer=renderer)
    session.start()
    session.tick(DT, IDLE)

    frame = renderer.frames[-1]
    assert len(frame.projectiles) == 1
    view = frame.projectiles[0]
    assert view.label.startswith(session.projectiles[0].coin.symbol + ":")
    assert frame.player.position[1] == 0.0


def test_same_seed_same_run():
    def run(seed):
        session = DodgeSession(sample_roster(), seed=seed)
        session.run_headless(20.0, DT, IDLE)
        return (session.difficulty.coins_dodged, session.difficulty.coins_hit,
                round(session.clock.state.score, 6), session.difficulty.spawn_interval_ms)

    assert run(21) == run(21)
