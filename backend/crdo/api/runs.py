import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crdo.core.auth import AuthUser, get_current_user
from crdo.core.exceptions import ValidationError
from crdo.db import get_db
from crdo.schemas.run import (
    EvidenceRead,
    FinishRunRequest,
    FinishRunResponse,
    RiskAssessmentRead,
    SpeedValidationRequest,
    StartRunResponse,
    StreakRead,
)
from crdo.services.completion import RunCompletionService
from crdo.services.engine_config import EngineConfig, get_engine_config
from crdo.services.metrics import RunMetrics
from crdo.services.persistence import SqlAchievementStore, SqlRunStore, SqlStreakStore
from crdo.services.risk import assess_run

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/runs", tags=["runs"])


def get_completion_service(
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config),
) -> RunCompletionService:
    return RunCompletionService(
        config,
        runs=SqlRunStore(db),
        streaks=SqlStreakStore(db),
        achievements=SqlAchievementStore(db),
    )


@router.post("/start", response_model=StartRunResponse)
def start_run(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    run = SqlRunStore(db).start_run(user.id)
    logger.info("Run %s started for user %s", run.id, user.id)
    return StartRunResponse(
        message="Run started successfully",
        run_id=run.id,
        started_at=run.started_at,
    )


@router.post("/finish", response_model=FinishRunResponse)
def finish_run(
    payload: FinishRunRequest,
    user: AuthUser = Depends(get_current_user),
    service: RunCompletionService = Depends(get_completion_service),
):
    result = service.finish(
        user.id,
        payload.run_id,
        distance_mi=payload.distance,
        duration_s=payload.duration,
        average_speed_mph=payload.average_speed,
        peak_speed_mph=payload.peak_speed,
    )
    return FinishRunResponse(
        message="Run completed successfully",
        run_id=result.run_id,
        streak=StreakRead.model_validate(result.streak),
        achievements=list(result.achievements),
    )


@router.post("/validate-speed", response_model=RiskAssessmentRead)
def validate_speed(
    payload: SpeedValidationRequest,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config),
):
    """
    Full authenticity review of a submission against the user's history.

    Nothing is stored; the assessment is returned for the caller to act on.
    """
    try:
        metrics = RunMetrics.from_miles(
            payload.distance,
            payload.duration,
            average_speed_mph=payload.average_speed,
            peak_speed_mph=payload.peak_speed,
        )
    except ValueError as e:
        raise ValidationError("Invalid submission", str(e))

    history = SqlRunStore(db).history(user.id, exclude_run_id=payload.run_id)
    assessment = assess_run(config.scoring, metrics, history)
    if not assessment.is_legitimate:
        logger.warning(
            "Run %s for user %s assessed %s (score %d)",
            payload.run_id, user.id, assessment.risk_level.value, assessment.risk_score,
        )

    return RiskAssessmentRead(
        is_legitimate=assessment.is_legitimate,
        confidence=assessment.confidence,
        risk_level=assessment.risk_level.value,
        risk_score=assessment.risk_score,
        violations=list(assessment.violations),
        warnings=list(assessment.warnings),
        evidence=EvidenceRead(**assessment.evidence),
        recommendations=list(assessment.recommendations),
    )
