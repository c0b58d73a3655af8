"""Immutable configuration handed to the scoring and completion engines.

Built once from `Settings`; tests build their own with other thresholds.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from crdo.core.config import Settings, settings
from crdo.services.achievements import DEFAULT_CATALOG, AchievementDefinition, load_catalog
from crdo.services.risk import ScoringConfig


@dataclass(frozen=True)
class CompletionLimits:
    max_distance_mi: float = 100.0
    max_duration_s: int = 86400
    min_pace_mph: float = 0.5
    min_pace_distance_mi: float = 1.0


@dataclass(frozen=True)
class EngineConfig:
    scoring: ScoringConfig = ScoringConfig()
    limits: CompletionLimits = CompletionLimits()
    catalog: Tuple[AchievementDefinition, ...] = DEFAULT_CATALOG


def build_engine_config(s: Settings) -> EngineConfig:
    catalog = load_catalog(s.achievement_catalog_path) if s.achievement_catalog_path else DEFAULT_CATALOG
    return EngineConfig(
        scoring=ScoringConfig(
            max_average_speed_mph=s.max_average_speed_mph,
            max_peak_speed_mph=s.max_peak_speed_mph,
            # the peak warning band starts where the average ceiling ends
            high_peak_speed_mph=s.max_average_speed_mph,
        ),
        limits=CompletionLimits(
            max_distance_mi=s.max_distance_mi,
            max_duration_s=s.max_duration_s,
            min_pace_mph=s.min_pace_mph,
            min_pace_distance_mi=s.min_pace_distance_mi,
        ),
        catalog=catalog,
    )


@lru_cache
def get_engine_config() -> EngineConfig:
    return build_engine_config(settings)
