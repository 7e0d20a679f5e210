import math
import random

import pytest

from conftest import make_coin, make_projectile
from game.memedodge.collision import CollisionResolver
from game.memedodge.entities import (
    Archetype,
    ClusterMotion,
    FragmentMotion,
    HomingMotion,
    Player,
)
from game.memedodge.kinematics import KinematicsEngine
from game.memedodge.projectiles import ProjectileFactory, choose_archetype
from game.memedodge.roster import EntityRoster
from game.memedodge.utils import horizontal_speed, vec_len

DT = 1 / 60


@pytest.mark.parametrize("pct, r, expected", [
    (-40.0, 0.5, Archetype.HOMING),
    (-40.0, 0.85, Archetype.REGULAR),
    (-25.0, 0.3, Archetype.CLUSTER),
    (-25.0, 0.5, Archetype.REGULAR),
    (-5.0, 0.05, Archetype.HOMING),
    (-5.0, 0.1, Archetype.CLUSTER),
    (-5.0, 0.2, Archetype.REGULAR),
    (10.0, 0.01, Archetype.HOMING),
])
def test_choose_archetype(pct, r, expected):
    assert choose_archetype(pct, r) is expected


@pytest.fixture
def factory(rng):
    return ProjectileFactory(rng)


@pytest.fixture
def engine(factory, rng):
    return KinematicsEngine(factory, CollisionResolver(), rng=rng)


def test_regular_spawn_envelope(factory):
    coin = make_coin(-20.0)
    for _ in range(50):
        p = factory.build(coin, Archetype.REGULAR)
        assert abs(p.position[0]) <= 40 and abs(p.position[2]) <= 40
        assert 50 <= p.position[1] <= 60
        assert p.velocity[1] == pytest.approx(-coin.fall_speed)


def test_homing_spawns_on_ring(factory):
    coin = make_coin(-40.0)
    for _ in range(50):
        p = factory.build(coin, Archetype.HOMING)
        assert 30 <= horizontal_speed(p.position) <= 50
        assert 20 <= p.position[1] <= 30
        assert p.velocity[1] == pytest.approx(-0.8 * coin.fall_speed)
        assert isinstance(p.motion, HomingMotion)


def test_fragments_are_not_spawnable_from_roster(factory):
    with pytest.raises(ValueError):
        factory.build(make_coin(-10.0), Archetype.FRAGMENT)


def test_spawn_ids_are_unique_and_reset(factory):
    roster = EntityRoster([make_coin(-10.0)])
    ids = [factory.spawn(roster).id for _ in range(5)]
    assert ids == [1, 2, 3, 4, 5]
    factory.reset()
    assert factory.spawn(roster).id == 1


def test_ground_crossing_retires_once_via_impact(engine):
    player = Player()
    coin = make_coin(-12.7)
    # Above the player and out of bounds too: impact still wins
    on_player = make_projectile(coin, (0.0, 0.01, 0.0), velocity=(0.0, -5.0, 0.0), pid=1)
    far_out = make_projectile(coin, (150.0, 0.01, 0.0), velocity=(0.0, -5.0, 0.0), pid=2)
    projectiles = [on_player, far_out]

    report = engine.tick(projectiles, player, DT)

    assert [p.id for p in report.impacts] == [1, 2]
    assert report.hits == []
    assert report.escaped == []
    assert projectiles == []


def test_out_of_bounds_and_ceiling(engine):
    coin = make_coin(-5.0)
    projectiles = [
        make_projectile(coin, (100.5, 10.0, 0.0), velocity=(0.0, -1.0, 0.0), pid=1),
        make_projectile(coin, (0.0, 10.0, -101.0), velocity=(0.0, -1.0, 0.0), pid=2),
        make_projectile(coin, (0.0, 101.0, 0.0), velocity=(0.0, 0.0, 0.0), pid=3),
    ]
    report = engine.tick(projectiles, Player(), DT)
    assert sorted(p.id for p in report.escaped) == [1, 2, 3]
    assert projectiles == []


def test_overlap_is_a_hit(engine):
    projectiles = [make_projectile(make_coin(-12.7), (0.0, 1.0, 0.0))]
    report = engine.tick(projectiles, Player(), DT)
    assert len(report.hits) == 1
    assert projectiles == []


def test_near_miss_latches(engine):
    p = make_projectile(make_coin(-12.7), (2.0, 1.0, 0.0), velocity=(0.0, -0.1, 0.0))
    projectiles = [p]
    player = Player()

    first = engine.tick(projectiles, player, DT)
    second = engine.tick(projectiles, player, DT)

    assert first.near_misses == [p]
    assert second.near_misses == []
    assert p.has_triggered_near_miss
    assert projectiles == [p]


def test_colliding_projectile_is_not_a_near_miss(engine):
    # inside the near-miss distance band and overlapping the player box
    p = make_projectile(make_coin(-12.7), (0.0, 2.5, 0.0), velocity=(0.0, -0.1, 0.0))
    projectiles = [p]

    report = engine.tick(projectiles, Player(), DT)

    assert report.hits == [p]
    assert report.near_misses == []
    assert not p.has_triggered_near_miss


def test_cluster_impact_bursts_into_fragments(engine):
    coin = make_coin(-25.0)
    parent = make_projectile(coin, (10.0, 0.01, -10.0), velocity=(3.0, -5.0, 0.0),
                             pid=42, motion=ClusterMotion())
    projectiles = [parent]

    report = engine.tick(projectiles, Player(), DT)

    assert report.impacts == [parent]
    assert 5 <= len(report.fragments) <= 9
    assert projectiles == report.fragments
    for f in report.fragments:
        assert f.archetype is Archetype.FRAGMENT
        assert isinstance(f.motion, FragmentMotion) and f.motion.parent_id == 42
        assert f.position[1] == pytest.approx(0.2)
        assert f.size == pytest.approx(parent.size * 0.4)
        # purely radial: no inherited horizontal drift
        assert 2.0 <= horizontal_speed(f.velocity) <= 5.0
        assert 2.0 <= f.velocity[1] <= 5.0


def test_fragment_count_covers_full_range():
    factory = ProjectileFactory(random.Random(3))
    parent = make_projectile(make_coin(-25.0), (0.0, 0.0, 0.0), motion=ClusterMotion())
    counts = {len(factory.spawn_fragments(parent)) for _ in range(300)}
    assert counts == {5, 6, 7, 8, 9}


def test_fragments_fall_under_gravity(engine):
    frag = make_projectile(make_coin(-25.0), (20.0, 0.2, 20.0), velocity=(0.0, 3.0, 0.0),
                           motion=FragmentMotion(parent_id=1))
    engine.tick([frag], Player(), 0.1)
    assert frag.velocity[1] == pytest.approx(3.0 - 0.98)


def test_homing_turns_toward_player(engine):
    coin = make_coin(-40.0)
    p = make_projectile(coin, (20.0, 10.0, 0.0), velocity=(0.0, -1.0, 0.0), motion=HomingMotion())
    p.age = 4.0
    engine.tick([p], Player(), 0.1)

    assert p.velocity[0] < 0
    assert vec_len(p.velocity) <= coin.fall_speed * 1.5 + 1e-9
    assert vec_len(p.motion.heading) == pytest.approx(1.0)
    assert 0.5 <= p.motion.pulse <= 1.0


def test_wind_caps_horizontal_drift(engine):
    p = make_projectile(make_coin(-5.0), (0.0, 50.0, 0.0), velocity=(5.0, -1.0, 5.0))
    engine.tick([p], Player(), DT)
    assert horizontal_speed(p.velocity) <= 3.0 + 1e-9


def test_trail_points_follow_period(engine):
    p = make_projectile(make_coin(-5.0), (0.0, 50.0, 0.0))
    projectiles = [p]
    report = engine.tick(projectiles, Player(), 0.01)
    assert len(report.trails) == 1
    assert report.trails[0][1] is Archetype.REGULAR
    # next point not before 50 ms later
    assert engine.tick(projectiles, Player(), 0.01).trails == []
    assert math.isclose(p.next_trail_time, 0.06)
