from datetime import timedelta
import random

from crdo.core.time_utils import utcnow
from crdo.db import Base, SessionLocal, engine
from crdo.models import achievement, friend, streak  # noqa: F401
from crdo.models.run import Run
from crdo.models.user import User
from crdo.services.completion import RunCompletionService
from crdo.services.engine_config import get_engine_config
from crdo.services.metrics import RunMetrics
from crdo.services.persistence import SqlAchievementStore, SqlRunStore, SqlStreakStore

TEST_USER_ID = "00000000-0000-4000-8000-000000000001"
TEST_USER_EMAIL = "test@example.com"


def ensure_test_user(db) -> User:
    user = db.query(User).filter(User.id == TEST_USER_ID).first()
    if not user:
        user = User(id=TEST_USER_ID, email=TEST_USER_EMAIL)
        db.add(user)
        db.commit()
    return user


def seed_history(db, user_id: str, days: int = 14) -> None:
    """Insert one finished run per day for the last `days` days (excluding today)."""
    now = utcnow()
    runs_to_add = []
    for offset in range(days, 0, -1):
        finished = now - timedelta(days=offset)
        metrics = RunMetrics.from_miles(
            distance_mi=round(random.uniform(2.0, 6.0), 2),
            duration_s=random.randint(1500, 3600),
            submitted_at=finished,
        )
        runs_to_add.append(
            Run(
                user_id=user_id,
                started_at=finished - timedelta(seconds=metrics.duration_s),
                finished_at=finished,
                distance_mi=metrics.distance_mi,
                duration_s=metrics.duration_s,
                average_speed_mph=metrics.average_speed_mph,
                peak_speed_mph=metrics.peak_speed_mph,
                gems_earned=int(metrics.distance_mi),
            )
        )
    db.add_all(runs_to_add)
    db.commit()
    print(f"Seeded {len(runs_to_add)} historical runs")


def seed_test_run(db, user_id: str) -> None:
    """Finish a 5.2 km / 30 min run today through the completion engine."""
    runs = SqlRunStore(db)
    run = runs.start_run(user_id, started_at=utcnow() - timedelta(hours=1))
    # GPS devices report meters and m/s
    metrics = RunMetrics.from_meters(distance_m=5200, duration_s=1800, average_speed_mps=5200 / 1800)

    service = RunCompletionService(
        get_engine_config(),
        runs=runs,
        streaks=SqlStreakStore(db),
        achievements=SqlAchievementStore(db),
    )
    result = service.finish(
        user_id,
        run.id,
        distance_mi=metrics.distance_mi,
        duration_s=metrics.duration_s,
        average_speed_mph=metrics.reported_average_mph,
    )
    print(f"Test run {run.id} seeded (streak={result.streak.current_streak}, achievements={list(result.achievements)})")


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = ensure_test_user(db)
        seed_history(db, user.id)
        seed_test_run(db, user.id)
    finally:
        db.close()


if __name__ == "__main__":
    main()
