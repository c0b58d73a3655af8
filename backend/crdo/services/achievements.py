"""
Achievement catalog and evaluation.

Evaluation is stateless: every finished run is checked against the whole
catalog and may propose achievements the user already holds. Duplicates
are dropped by the store's unique (user, description) constraint.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from crdo.services.metrics import RunMetrics


class AchievementCategory(str, Enum):
    distance = "distance"
    streak = "streak"
    speed = "speed"


@dataclass(frozen=True)
class AchievementDefinition:
    category: AchievementCategory
    threshold: float
    description: str
    points: int
    gems: int


DEFAULT_CATALOG: Tuple[AchievementDefinition, ...] = (
    AchievementDefinition(AchievementCategory.distance, 3.1, "Complete a 5km run", 50, 5),
    AchievementDefinition(AchievementCategory.distance, 6.2, "Complete a 10km run", 100, 10),
    AchievementDefinition(AchievementCategory.streak, 7, "Maintain a 7-day streak", 75, 7),
    AchievementDefinition(AchievementCategory.streak, 30, "Maintain a 30-day streak", 200, 30),
    # 3 m/s in mph
    AchievementDefinition(AchievementCategory.speed, 10.8, "Maintain an average speed of 3 m/s", 150, 15),
)


def load_catalog(path: str) -> Tuple[AchievementDefinition, ...]:
    """Read a catalog from a JSON list of
    {category, threshold, description, points, gems} objects."""
    with open(path, "r", encoding="utf-8") as f:
        rows = json.load(f)
    return tuple(
        AchievementDefinition(
            category=AchievementCategory(row["category"]),
            threshold=float(row["threshold"]),
            description=row["description"],
            points=int(row["points"]),
            gems=int(row["gems"]),
        )
        for row in rows
    )


def is_satisfied(
    definition: AchievementDefinition,
    distance_mi: float,
    current_streak: int,
    average_speed_mph: Optional[float],
) -> bool:
    if definition.category is AchievementCategory.distance:
        return distance_mi >= definition.threshold
    if definition.category is AchievementCategory.streak:
        return current_streak >= definition.threshold
    if definition.category is AchievementCategory.speed:
        return average_speed_mph is not None and average_speed_mph >= definition.threshold
    return False


def evaluate_achievements(
    catalog: Iterable[AchievementDefinition],
    metrics: RunMetrics,
    current_streak: int,
) -> Tuple[AchievementDefinition, ...]:
    # Speed achievements only count a speed the client actually reported
    return tuple(
        d for d in catalog
        if is_satisfied(d, metrics.distance_mi, current_streak, metrics.reported_average_mph)
    )
