from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire format is camelCase; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartRunResponse(CamelModel):
    message: str
    run_id: str
    started_at: datetime


class FinishRunRequest(CamelModel):
    run_id: str
    distance: float = 0.0       # miles
    duration: int = 0           # seconds
    average_speed: Optional[float] = None  # mph
    peak_speed: Optional[float] = None     # mph


class StreakRead(BaseModel):
    current_streak: int
    longest_streak: int
    last_run_date: Optional[date] = None
    freeze_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class FinishRunResponse(CamelModel):
    message: str
    run_id: str
    streak: StreakRead
    achievements: list[str]


class SpeedValidationRequest(CamelModel):
    run_id: Optional[str] = None
    distance: float             # miles
    duration: int               # seconds
    average_speed: float        # mph
    peak_speed: float           # mph


class EvidenceRead(CamelModel):
    speed_analysis: str = ""
    peak_analysis: str = ""
    consistency_analysis: str = ""
    pattern_analysis: str = ""


class RiskAssessmentRead(CamelModel):
    is_legitimate: bool
    confidence: int
    risk_level: str
    risk_score: int
    violations: list[str]
    warnings: list[str]
    evidence: EvidenceRead
    recommendations: list[str]


class RecentRunRead(CamelModel):
    id: str
    distance: Optional[float] = None
    duration: Optional[int] = None
    pace: Optional[str] = None   # e.g. "8:30/mi"
    average_speed: Optional[float] = None
    peak_speed: Optional[float] = None
    gems_earned: int = 0
    is_flagged: bool = False
    started_at: datetime
    finished_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AchievementRead(BaseModel):
    description: str
    points: int
    gems_balance: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
