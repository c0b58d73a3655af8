"""
SQLAlchemy-backed stores used by the completion engine and the speed check.

Each write commits its own unit of work. Database errors roll the session
back and surface as DependencyError so the caller can decide whether the
step was essential.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crdo.core.exceptions import DependencyError, NotFoundError
from crdo.core.time_utils import utcnow
from crdo.models.achievement import Achievement
from crdo.models.run import Run
from crdo.models.streak import Streak
from crdo.services.achievements import AchievementDefinition
from crdo.services.completion import RunCompletion
from crdo.services.metrics import HistoricalRun
from crdo.services.streaks import StreakState

logger = logging.getLogger(__name__)


class _SqlStore:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, exc: Exception) -> DependencyError:
        self.db.rollback()
        logger.error("Database error while trying to %s: %s", action, exc)
        return DependencyError()


class SqlRunStore(_SqlStore):
    def start_run(self, user_id: str, started_at: Optional[datetime] = None) -> Run:
        run = Run(user_id=user_id, started_at=started_at or utcnow())
        try:
            self.db.add(run)
            self.db.commit()
            self.db.refresh(run)
        except SQLAlchemyError as exc:
            raise self._fail("create run", exc) from exc
        return run

    def get_run(self, user_id: str, run_id: str) -> Run:
        try:
            run = (
                self.db.query(Run)
                .filter(Run.id == run_id, Run.user_id == user_id)
                .first()
            )
        except SQLAlchemyError as exc:
            raise self._fail("read run", exc) from exc
        if not run:
            raise NotFoundError("Run not found", code="RUN_NOT_FOUND")
        return run

    def complete_run(self, user_id: str, run_id: str, completion: RunCompletion) -> None:
        run = self.get_run(user_id, run_id)
        run.distance_mi = completion.distance_mi
        run.duration_s = completion.duration_s
        run.average_speed_mph = completion.average_speed_mph
        run.peak_speed_mph = completion.peak_speed_mph
        run.gems_earned = completion.gems_earned
        run.is_flagged = completion.is_flagged
        run.finished_at = completion.finished_at
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("update run", exc) from exc

    def history(self, user_id: str, exclude_run_id: Optional[str] = None) -> List[HistoricalRun]:
        """Finished runs of `user_id`, most recent first."""
        query = self.db.query(Run).filter(Run.user_id == user_id, Run.finished_at.isnot(None))
        if exclude_run_id is not None:
            query = query.filter(Run.id != exclude_run_id)
        try:
            rows = query.order_by(Run.finished_at.desc()).all()
        except SQLAlchemyError as exc:
            raise self._fail("read run history", exc) from exc
        return [
            HistoricalRun(
                average_speed_mph=float(r.average_speed_mph or 0.0),
                finished_at=r.finished_at,
                distance_mi=float(r.distance_mi or 0.0),
                duration_s=int(r.duration_s or 0),
            )
            for r in rows
        ]


class SqlStreakStore(_SqlStore):
    def get(self, user_id: str) -> Optional[StreakState]:
        try:
            row = self.db.query(Streak).filter(Streak.user_id == user_id).first()
        except SQLAlchemyError as exc:
            raise self._fail("read streak", exc) from exc
        if not row:
            return None
        return StreakState(
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
            last_run_date=row.last_run_date,
            freeze_count=row.freeze_count,
        )

    def upsert(self, user_id: str, state: StreakState) -> None:
        try:
            row = self.db.query(Streak).filter(Streak.user_id == user_id).first()
            if not row:
                row = Streak(user_id=user_id)
                self.db.add(row)
            row.current_streak = state.current_streak
            row.longest_streak = state.longest_streak
            row.last_run_date = state.last_run_date
            row.freeze_count = state.freeze_count
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("write streak", exc) from exc


class SqlAchievementStore(_SqlStore):
    def grant(self, user_id: str, definition: AchievementDefinition, granted_at: datetime) -> None:
        """Insert a grant, ignoring it when (user, description) already exists."""
        dialect = self.db.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = (
            insert(Achievement)
            .values(
                user_id=user_id,
                description=definition.description,
                points=definition.points,
                gems_balance=definition.gems,
                created_at=granted_at,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "description"])
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("grant achievement", exc) from exc
