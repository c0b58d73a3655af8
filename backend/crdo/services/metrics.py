"""Normalized run quantities.

Everything downstream of this module works in miles, seconds and mph.
Metric inputs are converted here and nowhere else.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from crdo.core.constants import MILE_M, MPS_TO_MPH, SECONDS_PER_HOUR
from crdo.core.time_utils import to_utc, utc_date_of, utcnow


def implied_speed_mph(distance_mi: float, duration_s: float) -> float:
    return distance_mi / duration_s * SECONDS_PER_HOUR


@dataclass(frozen=True)
class RunMetrics:
    distance_mi: float
    duration_s: int
    submitted_at: datetime
    reported_average_mph: Optional[float] = None
    reported_peak_mph: Optional[float] = None

    def __post_init__(self):
        if not math.isfinite(self.distance_mi) or self.distance_mi <= 0:
            raise ValueError("distance must be > 0")
        if self.duration_s <= 0:
            raise ValueError("duration must be > 0")
        for speed in (self.reported_average_mph, self.reported_peak_mph):
            if speed is not None and not math.isfinite(speed):
                raise ValueError("speeds must be finite numbers")

    @classmethod
    def from_miles(
        cls,
        distance_mi: float,
        duration_s: int,
        average_speed_mph: Optional[float] = None,
        peak_speed_mph: Optional[float] = None,
        submitted_at: Optional[datetime] = None,
    ) -> "RunMetrics":
        return cls(
            distance_mi=float(distance_mi),
            duration_s=int(duration_s),
            submitted_at=to_utc(submitted_at) if submitted_at else utcnow(),
            reported_average_mph=average_speed_mph,
            reported_peak_mph=peak_speed_mph,
        )

    @classmethod
    def from_meters(
        cls,
        distance_m: float,
        duration_s: int,
        average_speed_mps: Optional[float] = None,
        peak_speed_mps: Optional[float] = None,
        submitted_at: Optional[datetime] = None,
    ) -> "RunMetrics":
        """Build from meters and m/s, as GPS devices report them."""
        return cls.from_miles(
            distance_mi=distance_m / MILE_M,
            duration_s=duration_s,
            average_speed_mph=average_speed_mps * MPS_TO_MPH if average_speed_mps is not None else None,
            peak_speed_mph=peak_speed_mps * MPS_TO_MPH if peak_speed_mps is not None else None,
            submitted_at=submitted_at,
        )

    @property
    def implied_speed_mph(self) -> float:
        return implied_speed_mph(self.distance_mi, self.duration_s)

    @property
    def average_speed_mph(self) -> float:
        """Reported average speed, falling back to the implied one."""
        if self.reported_average_mph is not None:
            return self.reported_average_mph
        return self.implied_speed_mph

    @property
    def peak_speed_mph(self) -> float:
        if self.reported_peak_mph is not None:
            return self.reported_peak_mph
        return self.implied_speed_mph

    @property
    def run_date(self) -> date:
        return utc_date_of(self.submitted_at)


@dataclass(frozen=True)
class HistoricalRun:
    """A finished run as read back from storage."""

    average_speed_mph: float
    finished_at: datetime
    distance_mi: float
    duration_s: int
