"""
Run completion.

Finishing a run validates the submission, flags obviously impossible
speeds, stores the completed run, advances the user's streak and grants
achievements. Steps run in order and each feeds the next:

  1. bounds check        -> ValidationError, nothing written
  2. pace check          -> ValidationError, nothing written
  3. fast-path flag
  4. store run           -> failure aborts
  5. read/advance streak -> read failure aborts, write failure is logged
  6. grant achievements  -> each grant independent, failures logged
"""
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol, Tuple

from crdo.core.exceptions import DependencyError, ValidationError
from crdo.core.time_utils import utcnow
from crdo.services.achievements import AchievementDefinition, evaluate_achievements
from crdo.services.engine_config import CompletionLimits, EngineConfig
from crdo.services.metrics import RunMetrics, implied_speed_mph
from crdo.services.risk import is_suspicious_speed
from crdo.services.streaks import StreakState, advance_streak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunCompletion:
    """Fields written to the run record when it is finished."""

    distance_mi: float
    duration_s: int
    average_speed_mph: float
    peak_speed_mph: float
    gems_earned: int
    is_flagged: bool
    finished_at: datetime


@dataclass(frozen=True)
class CompletionResult:
    run_id: str
    streak: StreakState
    achievements: Tuple[str, ...]
    is_flagged: bool


class RunStore(Protocol):
    def complete_run(self, user_id: str, run_id: str, completion: RunCompletion) -> None: ...


class StreakStore(Protocol):
    def get(self, user_id: str) -> Optional[StreakState]: ...

    def upsert(self, user_id: str, state: StreakState) -> None: ...


class AchievementStore(Protocol):
    def grant(self, user_id: str, definition: AchievementDefinition, granted_at: datetime) -> None: ...


def validate_submission(limits: CompletionLimits, distance_mi: float, duration_s: float) -> None:
    """Reject submissions outside the accepted bounds or with an impossible pace."""
    if not distance_mi or not math.isfinite(distance_mi) or distance_mi <= 0 \
            or distance_mi > limits.max_distance_mi:
        raise ValidationError(
            "Invalid distance",
            f"Distance must be between 0 and {limits.max_distance_mi:g} miles",
            code="DISTANCE_VIOLATION",
        )
    if not duration_s or not math.isfinite(duration_s) or duration_s <= 0 \
            or duration_s > limits.max_duration_s:
        raise ValidationError(
            "Invalid duration",
            f"Duration must be between 0 and {limits.max_duration_s} seconds",
            code="DURATION_VIOLATION",
        )
    speed = implied_speed_mph(distance_mi, duration_s)
    if speed < limits.min_pace_mph and distance_mi > limits.min_pace_distance_mi:
        raise ValidationError(
            "Suspicious activity detected",
            "Distance too high for reported speed. Please ensure accurate tracking.",
            code="PACE_VIOLATION",
        )


class RunCompletionService:
    def __init__(
        self,
        config: EngineConfig,
        runs: RunStore,
        streaks: StreakStore,
        achievements: AchievementStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.runs = runs
        self.streaks = streaks
        self.achievements = achievements
        self.clock = clock

    def finish(
        self,
        user_id: str,
        run_id: str,
        distance_mi: float,
        duration_s: int,
        average_speed_mph: Optional[float] = None,
        peak_speed_mph: Optional[float] = None,
    ) -> CompletionResult:
        started = time.monotonic()
        logger.info("Finishing run %s for user %s", run_id, user_id)

        validate_submission(self.config.limits, distance_mi, duration_s)

        now = self.clock()
        try:
            metrics = RunMetrics.from_miles(
                distance_mi,
                duration_s,
                average_speed_mph=average_speed_mph,
                peak_speed_mph=peak_speed_mph,
                submitted_at=now,
            )
        except ValueError as e:
            raise ValidationError("Invalid submission", str(e))

        flagged = is_suspicious_speed(self.config.scoring, metrics)
        if flagged:
            logger.warning(
                "Suspicious speed for user %s on run %s: %.2f mph",
                user_id, run_id, metrics.reported_average_mph,
            )

        self.runs.complete_run(
            user_id,
            run_id,
            RunCompletion(
                distance_mi=metrics.distance_mi,
                duration_s=metrics.duration_s,
                average_speed_mph=metrics.average_speed_mph,
                peak_speed_mph=metrics.peak_speed_mph,
                gems_earned=math.floor(metrics.distance_mi),
                is_flagged=flagged,
                finished_at=now,
            ),
        )

        streak = self._advance_streak(user_id, metrics)
        granted = self._grant_achievements(user_id, metrics, streak, now)

        logger.info(
            "Run %s finished in %dms (streak=%d, achievements=%d)",
            run_id, (time.monotonic() - started) * 1000, streak.current_streak, len(granted),
        )
        return CompletionResult(
            run_id=run_id,
            streak=streak,
            achievements=tuple(d.description for d in granted),
            is_flagged=flagged,
        )

    def _advance_streak(self, user_id: str, metrics: RunMetrics) -> StreakState:
        prior = self.streaks.get(user_id)
        streak = advance_streak(prior, metrics.run_date)
        if streak == prior:
            return streak
        try:
            self.streaks.upsert(user_id, streak)
        except DependencyError:
            logger.exception("Streak write failed for user %s", user_id)
        return streak

    def _grant_achievements(
        self,
        user_id: str,
        metrics: RunMetrics,
        streak: StreakState,
        now: datetime,
    ) -> Tuple[AchievementDefinition, ...]:
        proposed = evaluate_achievements(self.config.catalog, metrics, streak.current_streak)
        for definition in proposed:
            try:
                self.achievements.grant(user_id, definition, now)
            except DependencyError:
                logger.exception(
                    "Achievement grant %r failed for user %s", definition.description, user_id
                )
        return proposed
