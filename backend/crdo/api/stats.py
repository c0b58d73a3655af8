from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from crdo.core.auth import AuthUser, get_current_user
from crdo.core.constants import RECENT_ACHIEVEMENTS_LIMIT, RECENT_RUNS_LIMIT
from crdo.core.time_utils import compute_pace, to_utc, utcnow
from crdo.db import get_db
from crdo.models.achievement import Achievement
from crdo.models.friend import Friend
from crdo.models.run import Run
from crdo.models.streak import Streak
from crdo.schemas.run import AchievementRead, RecentRunRead, StreakRead
from crdo.schemas.stats import (
    AggregateStats,
    DashboardRead,
    FriendCounts,
    GemsRead,
    UserRead,
    UserStatsRead,
)
from crdo.services.streaks import EMPTY_STREAK

router = APIRouter(tags=["stats"])


def _recent_run(run: Run) -> RecentRunRead:
    pace = None
    if run.distance_mi and run.duration_s:
        pace = compute_pace(run.duration_s, float(run.distance_mi))
    return RecentRunRead(
        id=run.id,
        distance=run.distance_mi,
        duration=run.duration_s,
        pace=pace,
        average_speed=run.average_speed_mph,
        peak_speed=run.peak_speed_mph,
        gems_earned=run.gems_earned or 0,
        is_flagged=bool(run.is_flagged),
        started_at=run.started_at,
        finished_at=run.finished_at,
        created_at=run.created_at,
    )


@router.get("/dashboard", response_model=DashboardRead)
def get_dashboard(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    streak = db.query(Streak).filter(Streak.user_id == user.id).first()
    runs = (
        db.query(Run)
        .filter(Run.user_id == user.id)
        .order_by(Run.started_at.desc())
        .limit(RECENT_RUNS_LIMIT)
        .all()
    )
    achievements = (
        db.query(Achievement)
        .filter(Achievement.user_id == user.id)
        .order_by(Achievement.created_at.desc())
        .limit(RECENT_ACHIEVEMENTS_LIMIT)
        .all()
    )

    # Balance counts the achievements shown here only
    balance = sum(a.gems_balance or 0 for a in achievements)

    return DashboardRead(
        streak=StreakRead.model_validate(streak) if streak else None,
        gems=GemsRead(balance=balance),
        recent_runs=[_recent_run(r) for r in runs],
        recent_achievements=[AchievementRead.model_validate(a) for a in achievements],
    )


@router.get("/stats", response_model=UserStatsRead)
def get_user_stats(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    runs = (
        db.query(Run)
        .filter(Run.user_id == user.id)
        .order_by(Run.started_at.desc())
        .all()
    )
    streak = db.query(Streak).filter(Streak.user_id == user.id).first()
    achievements = (
        db.query(Achievement)
        .filter(Achievement.user_id == user.id)
        .order_by(Achievement.created_at.desc())
        .all()
    )
    friends = (
        db.query(Friend)
        .filter(or_(Friend.user_id == user.id, Friend.friend_id == user.id))
        .all()
    )

    total_runs = len(runs)
    total_distance = sum(r.distance_mi or 0.0 for r in runs)
    total_duration = sum(r.duration_s or 0 for r in runs)
    total_points = sum(a.points or 0 for a in achievements)
    total_gems = sum(a.gems_balance or 0 for a in achievements) + sum(r.gems_earned or 0 for r in runs)

    week_ago = utcnow() - timedelta(days=7)
    weekly = [r for r in runs if to_utc(r.started_at) >= week_ago]

    accepted = [f for f in friends if f.status == "accepted"]
    pending = [f for f in friends if f.status == "pending" and f.friend_id == user.id]
    sent = [f for f in friends if f.status == "pending" and f.user_id == user.id]

    return UserStatsRead(
        user=UserRead(id=user.id, email=user.email),
        stats=AggregateStats(
            total_runs=total_runs,
            total_distance=round(total_distance, 2),
            total_duration=round(total_duration),
            average_distance=round(total_distance / total_runs, 2) if total_runs else 0.0,
            average_duration=round(total_duration / total_runs) if total_runs else 0,
            total_points=total_points,
            total_gems=total_gems,
            weekly_runs=len(weekly),
            weekly_distance=round(sum(r.distance_mi or 0.0 for r in weekly), 2),
            weekly_duration=round(sum(r.duration_s or 0 for r in weekly)),
        ),
        streak=StreakRead.model_validate(streak or EMPTY_STREAK),
        achievements=[AchievementRead.model_validate(a) for a in achievements],
        friends=FriendCounts(
            accepted=len(accepted),
            pending_requests=len(pending),
            sent_requests=len(sent),
            total=len(accepted) + len(pending) + len(sent),
        ),
        recent_runs=[_recent_run(r) for r in runs[:RECENT_RUNS_LIMIT]],
    )
