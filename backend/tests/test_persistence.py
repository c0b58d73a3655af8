from datetime import datetime, timedelta, timezone

import pytest

from conftest import ALICE, BOB
from crdo.core.exceptions import NotFoundError
from crdo.models.achievement import Achievement
from crdo.models.run import Run
from crdo.services.achievements import DEFAULT_CATALOG
from crdo.services.completion import RunCompletion
from crdo.services.persistence import SqlAchievementStore, SqlRunStore, SqlStreakStore
from crdo.services.streaks import StreakState

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def _finished(db, user_id, speed, days_ago):
    finished = NOW - timedelta(days=days_ago)
    run = Run(
        user_id=user_id,
        started_at=finished - timedelta(minutes=30),
        finished_at=finished,
        distance_mi=3.0,
        duration_s=1800,
        average_speed_mph=speed,
        peak_speed_mph=speed,
    )
    db.add(run)
    db.commit()
    return run


def test_history_is_most_recent_first_and_finished_only(db_session):
    _finished(db_session, ALICE.id, 8.0, days_ago=3)
    _finished(db_session, ALICE.id, 9.0, days_ago=1)
    latest = _finished(db_session, ALICE.id, 10.0, days_ago=0)
    _finished(db_session, BOB.id, 20.0, days_ago=0)
    SqlRunStore(db_session).start_run(ALICE.id, started_at=NOW)

    store = SqlRunStore(db_session)
    assert [h.average_speed_mph for h in store.history(ALICE.id)] == [10.0, 9.0, 8.0]
    assert [h.average_speed_mph for h in store.history(ALICE.id, exclude_run_id=latest.id)] == [9.0, 8.0]


def test_empty_history(db_session):
    assert SqlRunStore(db_session).history(ALICE.id) == []


def test_complete_run_rejects_other_users_run(db_session):
    store = SqlRunStore(db_session)
    run = store.start_run(ALICE.id)
    completion = RunCompletion(3.0, 1800, 6.0, 6.0, 3, False, NOW)
    with pytest.raises(NotFoundError):
        store.complete_run(BOB.id, run.id, completion)

    store.complete_run(ALICE.id, run.id, completion)
    db_session.refresh(run)
    assert run.distance_mi == 3.0
    assert run.gems_earned == 3
    assert run.finished_at is not None


def test_streak_upsert_creates_then_updates(db_session):
    store = SqlStreakStore(db_session)
    assert store.get(ALICE.id) is None

    store.upsert(ALICE.id, StreakState(1, 1, NOW.date()))
    store.upsert(ALICE.id, StreakState(2, 2, NOW.date() + timedelta(days=1), freeze_count=1))
    assert store.get(ALICE.id) == StreakState(2, 2, NOW.date() + timedelta(days=1), 1)


def test_achievement_grants_are_unique_per_user(db_session):
    store = SqlAchievementStore(db_session)
    five_k = DEFAULT_CATALOG[0]
    store.grant(ALICE.id, five_k, NOW)
    store.grant(ALICE.id, five_k, NOW)
    store.grant(BOB.id, five_k, NOW)

    rows = db_session.query(Achievement).filter(Achievement.description == five_k.description).all()
    assert sorted(r.user_id for r in rows) == sorted([ALICE.id, BOB.id])
    assert rows[0].points == 50
    assert rows[0].gems_balance == 5
