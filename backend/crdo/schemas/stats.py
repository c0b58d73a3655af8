from typing import Optional

from pydantic import BaseModel

from crdo.schemas.run import AchievementRead, CamelModel, RecentRunRead, StreakRead


class GemsRead(BaseModel):
    balance: int


class DashboardRead(CamelModel):
    streak: Optional[StreakRead] = None
    gems: GemsRead
    recent_runs: list[RecentRunRead]
    recent_achievements: list[AchievementRead]


class UserRead(BaseModel):
    id: str
    email: Optional[str] = None


class AggregateStats(CamelModel):
    total_runs: int
    total_distance: float
    total_duration: int
    average_distance: float
    average_duration: int
    total_points: int
    total_gems: int
    weekly_runs: int
    weekly_distance: float
    weekly_duration: int


class FriendCounts(CamelModel):
    accepted: int
    pending_requests: int
    sent_requests: int
    total: int


class UserStatsRead(CamelModel):
    user: UserRead
    stats: AggregateStats
    streak: StreakRead
    achievements: list[AchievementRead]
    friends: FriendCounts
    recent_runs: list[RecentRunRead]


class HealthRead(BaseModel):
    status: str
    timestamp: str
    version: str
    database: dict
