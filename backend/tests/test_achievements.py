import json

from crdo.services.achievements import (
    DEFAULT_CATALOG,
    AchievementCategory,
    evaluate_achievements,
    load_catalog,
)
from crdo.services.metrics import RunMetrics


def descriptions(distance, streak=1, avg=None):
    run = RunMetrics.from_miles(distance, 3600, average_speed_mph=avg)
    return [d.description for d in evaluate_achievements(DEFAULT_CATALOG, run, streak)]


def test_short_slow_run_earns_nothing():
    assert descriptions(2.0) == []


def test_distance_thresholds_are_inclusive():
    assert descriptions(3.1) == ["Complete a 5km run"]
    assert descriptions(6.2) == ["Complete a 5km run", "Complete a 10km run"]


def test_streak_achievements():
    assert descriptions(1.0, streak=7) == ["Maintain a 7-day streak"]
    assert descriptions(1.0, streak=30) == ["Maintain a 7-day streak", "Maintain a 30-day streak"]


def test_speed_achievement_needs_reported_speed():
    # 11 miles in an hour implies 11 mph, but nothing was reported
    assert "Maintain an average speed of 3 m/s" not in descriptions(11.0)
    assert "Maintain an average speed of 3 m/s" in descriptions(2.0, avg=10.8)


def test_more_distance_streak_or_speed_never_removes_achievements():
    previous = set()
    for step in range(0, 40):
        current = set(descriptions((step + 1) * 0.25, streak=step, avg=step * 0.5))
        assert previous <= current
        previous = current


def test_evaluation_is_repeatable():
    run = RunMetrics.from_miles(6.5, 3000, average_speed_mph=11.0)
    first = evaluate_achievements(DEFAULT_CATALOG, run, 8)
    second = evaluate_achievements(DEFAULT_CATALOG, run, 8)
    assert first == second
    assert len(first) == 4


def test_load_catalog(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([
        {"category": "distance", "threshold": 13.1, "description": "Run a half marathon", "points": 300, "gems": 40},
        {"category": "streak", "threshold": 3, "description": "Run three days in a row", "points": 20, "gems": 2},
    ]))
    catalog = load_catalog(str(path))
    assert [d.category for d in catalog] == [AchievementCategory.distance, AchievementCategory.streak]

    run = RunMetrics.from_miles(13.1, 7200)
    assert [d.description for d in evaluate_achievements(catalog, run, 3)] == [
        "Run a half marathon",
        "Run three days in a row",
    ]
