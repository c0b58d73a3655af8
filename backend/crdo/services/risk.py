"""
Run authenticity scoring.

A rule-based scorer: each analysis dimension walks an ordered table of
bands (highest threshold first, first match wins) and adds that band's
points to the risk score. The final score is clamped to [0, 100] and then
classified into a risk level.

Dimensions:
  - speed:       reported average speed against absolute ceilings
  - peak:        reported peak speed against absolute ceilings
  - consistency: spread of the most recent historical speeds
  - pattern:     recent vs older historical speeds (sudden improvement)
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from crdo.services.metrics import HistoricalRun, RunMetrics


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


@dataclass(frozen=True)
class Band:
    """One row of a first-match-wins table.

    `threshold` of None matches everything and closes the table.
    """

    threshold: Optional[float]
    points: int
    narrative: str
    violation: Optional[str] = None
    warning: Optional[str] = None


@dataclass(frozen=True)
class ScoringConfig:
    # Average speed ceilings (mph)
    max_average_speed_mph: float = 27.0
    elite_speed_mph: float = 22.0
    advanced_speed_mph: float = 18.0
    good_speed_mph: float = 13.0

    # Peak speed ceilings (mph)
    max_peak_speed_mph: float = 33.0
    high_peak_speed_mph: float = 27.0

    # Consistency analysis
    consistency_window: int = 5
    consistency_min_history: int = 3
    # The automation violation additionally needs more history than the
    # branch itself, so histories of 4-5 runs can never trigger it.
    consistency_strict_min_history: int = 5
    min_speed_deviation: float = 0.5
    high_speed_deviation: float = 4.0

    # Progression analysis
    progression_min_history: int = 10
    progression_window: int = 5
    impossible_improvement_ratio: float = 1.5
    suspicious_improvement_ratio: float = 1.2
    natural_improvement_ratio: float = 1.1

    # Risk level cutoffs (score >= cutoff)
    critical_score: int = 80
    high_score: int = 60
    medium_score: int = 40

    @property
    def speed_bands(self) -> Tuple[Band, ...]:
        return (
            Band(self.max_average_speed_mph, 40,
                 "Impossible speed detected - likely cheating",
                 violation=f"Speed exceeds human limits ({self.max_average_speed_mph:g} mph)"),
            Band(self.elite_speed_mph, 20,
                 "Very high speed - requires verification",
                 warning="Elite athlete speed detected"),
            Band(self.advanced_speed_mph, 5, "Advanced runner speed - plausible"),
            Band(self.good_speed_mph, 0, "Good runner speed - normal range"),
            Band(None, 0, "Recreational runner speed - normal"),
        )

    @property
    def peak_bands(self) -> Tuple[Band, ...]:
        return (
            Band(self.max_peak_speed_mph, 30,
                 "Peak speed beyond human capability",
                 violation=f"Peak speed exceeds human limits ({self.max_peak_speed_mph:g} mph)"),
            Band(self.high_peak_speed_mph, 15,
                 "Peak speed in sprint range - requires verification",
                 warning="Very high peak speed detected"),
            Band(None, 0, "Peak speed within human range"),
        )

    @property
    def progression_bands(self) -> Tuple[Band, ...]:
        return (
            Band(self.impossible_improvement_ratio, 30,
                 "Sudden 50%+ speed improvement",
                 violation="Impossible performance improvement"),
            Band(self.suspicious_improvement_ratio, 15,
                 "20%+ speed improvement",
                 warning="Suspicious performance improvement"),
            Band(self.natural_improvement_ratio, 0, "Natural progression"),
            Band(None, 0, "Stable performance"),
        )


RECOMMENDATIONS: Dict[RiskLevel, Tuple[str, ...]] = {
    RiskLevel.critical: (
        "Immediate manual review required",
        "Consider account suspension",
    ),
    RiskLevel.high: (
        "Flag for manual review",
        "Monitor user activity closely",
    ),
    RiskLevel.medium: ("Monitor user activity",),
    RiskLevel.low: ("Normal validation - no action required",),
}

EVIDENCE_KEYS = ("speed_analysis", "peak_analysis", "consistency_analysis", "pattern_analysis")


@dataclass
class RiskScore:
    score: int = 0
    violations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    evidence: Dict[str, str] = field(default_factory=lambda: {k: "" for k in EVIDENCE_KEYS})

    def apply(self, dimension: str, band: Band) -> None:
        self.score += band.points
        self.evidence[dimension] = band.narrative
        if band.violation:
            self.violations.append(band.violation)
        if band.warning:
            self.warnings.append(band.warning)


@dataclass(frozen=True)
class RiskAssessment:
    risk_score: int
    risk_level: RiskLevel
    is_legitimate: bool
    confidence: int
    violations: Tuple[str, ...]
    warnings: Tuple[str, ...]
    evidence: Dict[str, str]
    recommendations: Tuple[str, ...]


def _first_match(bands: Sequence[Band], exceeds: Callable[[float], bool]) -> Band:
    for band in bands:
        if band.threshold is None or exceeds(band.threshold):
            return band
    raise ValueError("band table has no catch-all row")


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _speeds(history: Sequence[HistoricalRun]) -> List[float]:
    return [run.average_speed_mph or 0.0 for run in history]


def clamp_score(score: float) -> int:
    return int(max(0, min(100, score)))


def score_run(
    config: ScoringConfig,
    metrics: RunMetrics,
    history: Sequence[HistoricalRun],
) -> RiskScore:
    """Accumulate risk points for one submission against the user's history.

    `history` is most recent first and may be empty.
    """
    result = RiskScore()

    # 1. Average speed
    avg = metrics.average_speed_mph
    result.apply("speed_analysis", _first_match(config.speed_bands, lambda t: avg > t))

    # 2. Peak speed (only when the client reported one)
    if metrics.reported_peak_mph is not None:
        peak = metrics.reported_peak_mph
        result.apply("peak_analysis", _first_match(config.peak_bands, lambda t: peak > t))

    speeds = _speeds(history)

    # 3. Consistency
    if len(speeds) > config.consistency_min_history:
        recent = speeds[: config.consistency_window]
        center = _mean(recent)
        deviation = _mean([abs(s - center) for s in recent])
        if deviation < config.min_speed_deviation and len(speeds) > config.consistency_strict_min_history:
            band = Band(None, 30, "Perfect consistency suggests automation",
                        violation="Suspiciously consistent speeds")
        elif deviation > config.high_speed_deviation:
            band = Band(None, -10, "High variation - natural human performance")
        else:
            band = Band(None, 0, "Normal speed variation")
        result.apply("consistency_analysis", band)

    # 4. Progression
    if len(speeds) > config.progression_min_history:
        window = config.progression_window
        recent_avg = _mean(speeds[:window])
        older_avg = _mean(speeds[window: 2 * window])
        result.apply(
            "pattern_analysis",
            _first_match(config.progression_bands, lambda ratio: recent_avg > older_avg * ratio),
        )

    result.score = clamp_score(result.score)
    return result


def classify(config: ScoringConfig, score: int) -> RiskLevel:
    if score >= config.critical_score:
        return RiskLevel.critical
    if score >= config.high_score:
        return RiskLevel.high
    if score >= config.medium_score:
        return RiskLevel.medium
    return RiskLevel.low


def assess_run(
    config: ScoringConfig,
    metrics: RunMetrics,
    history: Sequence[HistoricalRun],
) -> RiskAssessment:
    scored = score_run(config, metrics, history)
    level = classify(config, scored.score)
    return RiskAssessment(
        risk_score=scored.score,
        risk_level=level,
        is_legitimate=level.rank < RiskLevel.high.rank,
        confidence=clamp_score(100 - scored.score),
        violations=tuple(scored.violations),
        warnings=tuple(scored.warnings),
        evidence=dict(scored.evidence),
        recommendations=RECOMMENDATIONS[level],
    )


def is_suspicious_speed(config: ScoringConfig, metrics: RunMetrics) -> bool:
    """Fast-path flag used when a run is finished.

    Only a reported average speed above the absolute ceiling counts; the
    full assessment is available separately.
    """
    reported = metrics.reported_average_mph
    return reported is not None and reported > config.max_average_speed_mph
