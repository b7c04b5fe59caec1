"""
Plain, ORM-independent view of a user's daily metric row.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from app.schemas.enums import METRIC_SCALE, METRIC_SOURCE_FIELD, MetricType


@dataclass(frozen=True)
class DailyMetricRecord:
    """One day of normalized wearable data. None means no data that day."""

    date: date
    steps: Optional[int] = None
    sleep_duration_minutes: Optional[int] = None
    hrv: Optional[float] = None
    resting_heart_rate: Optional[int] = None
    recovery_score: Optional[float] = None
    weight_kg: Optional[float] = None
    data_sources: tuple[str, ...] = field(default_factory=tuple)

    def value(self, metric_type: MetricType) -> Optional[float]:
        """Value of a metric type in its baseline unit, or None if missing."""
        raw = getattr(self, METRIC_SOURCE_FIELD[metric_type])
        if raw is None:
            return None
        return float(raw) / METRIC_SCALE.get(metric_type, 1.0)

    @classmethod
    def from_row(cls, row) -> "DailyMetricRecord":
        """Build from a DailyMetrics ORM row."""
        return cls(
            date=row.date,
            steps=row.steps,
            sleep_duration_minutes=row.sleep_duration_minutes,
            hrv=row.hrv,
            resting_heart_rate=row.resting_heart_rate,
            recovery_score=row.recovery_score,
            weight_kg=row.weight_kg,
            data_sources=tuple(row.data_sources or ()),
        )
