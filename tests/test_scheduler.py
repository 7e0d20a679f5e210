from game.memedodge.scheduler import EventKind, EventQueue


def test_pop_due_in_deadline_order():
    q = EventQueue()
    q.schedule(2.0, EventKind.CLEAR_ALERT)
    q.schedule(0.5, EventKind.RESTORE_SPEED, payload=frozenset({1}))
    q.schedule(0.5, EventKind.EXTRA_SPAWN)

    assert q.pop_due(0.1) == []
    due = q.pop_due(1.0)
    assert [e.kind for e in due] == [EventKind.RESTORE_SPEED, EventKind.EXTRA_SPAWN]
    assert due[0].payload == frozenset({1})
    assert len(q) == 1
    assert [e.kind for e in q.pop_due(2.0)] == [EventKind.CLEAR_ALERT]


def test_cancel_all_drops_pending_and_bumps_generation():
    q = EventQueue()
    stale = q.schedule(1.0, EventKind.RESTORE_SPEED)
    q.cancel_all()

    assert len(q) == 0
    assert q.generation == stale.generation + 1
    assert q.pending(EventKind.RESTORE_SPEED) == 0

    fresh = q.schedule(1.0, EventKind.EXTRA_SPAWN)
    assert q.pop_due(1.0) == [fresh]


def test_events_from_old_generation_never_fire():
    q = EventQueue()
    old = q.schedule(1.0, EventKind.END_INVULNERABILITY)
    q.generation += 1
    q.schedule(1.0, EventKind.CLEAR_LAST_HIT)
    assert old not in q.pop_due(5.0)
    assert len(q) == 0
