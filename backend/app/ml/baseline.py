"""
Baseline calculation for user normalization.

Calculates rolling 7/14/30-day baselines for every metric type from a user's
daily metric history. Pure: reading history and storing results are done by
BaselineService.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from app.ml.records import DailyMetricRecord
from app.ml.stats import round_or_none, safe_mean, safe_pstdev
from app.schemas.enums import MetricType
from app.services.analytics_config import BaselineConfig


@dataclass
class BaselineSnapshot:
    """Rolling statistics for one metric type."""

    metric_type: MetricType
    avg_7day: Optional[float] = None
    avg_14day: Optional[float] = None
    avg_30day: Optional[float] = None
    stddev_7day: Optional[float] = None
    stddev_14day: Optional[float] = None
    stddev_30day: Optional[float] = None
    min_7day: Optional[float] = None
    max_7day: Optional[float] = None
    sample_count_7day: int = 0
    sample_count_14day: int = 0
    sample_count_30day: int = 0
    computed_at: Optional[datetime] = None


class BaselineCalculator:
    """Calculates rolling baselines from daily metric records."""

    def __init__(self, config: BaselineConfig | None = None):
        self.config = config or BaselineConfig()

    def window_start(self, today: date) -> date:
        """First calendar day of the longest window."""
        return today - timedelta(days=self.config.long_window_days - 1)

    def calculate(
        self, records: Iterable[DailyMetricRecord], today: date
    ) -> list[BaselineSnapshot]:
        """
        Calculate baselines for every metric type with data in the long window.

        Windows are inclusive of `today`: the 7-day window covers
        today - 6 .. today. Records dated after `today` are ignored.
        """
        records = [r for r in records if self.window_start(today) <= r.date <= today]

        baselines = []
        for metric_type in MetricType:
            baseline = self._calculate_metric(records, metric_type, today)
            if baseline is not None:
                baselines.append(baseline)
        return baselines

    def _calculate_metric(
        self,
        records: list[DailyMetricRecord],
        metric_type: MetricType,
        today: date,
    ) -> Optional[BaselineSnapshot]:
        dated_values = [
            (r.date, r.value(metric_type))
            for r in records
            if r.value(metric_type) is not None
        ]
        if not dated_values:
            return None

        values_7 = self._window(dated_values, today, self.config.short_window_days)
        values_14 = self._window(dated_values, today, self.config.mid_window_days)
        values_30 = self._window(dated_values, today, self.config.long_window_days)

        digits = self.config.precision
        return BaselineSnapshot(
            metric_type=metric_type,
            avg_7day=round_or_none(safe_mean(values_7), digits),
            avg_14day=round_or_none(safe_mean(values_14), digits),
            avg_30day=round_or_none(safe_mean(values_30), digits),
            stddev_7day=round_or_none(safe_pstdev(values_7), digits),
            stddev_14day=round_or_none(safe_pstdev(values_14), digits),
            stddev_30day=round_or_none(safe_pstdev(values_30), digits),
            min_7day=min(values_7) if values_7 else None,
            max_7day=max(values_7) if values_7 else None,
            sample_count_7day=len(values_7),
            sample_count_14day=len(values_14),
            sample_count_30day=len(values_30),
        )

    @staticmethod
    def _window(
        dated_values: list[tuple[date, float]], today: date, days: int
    ) -> list[float]:
        start = today - timedelta(days=days - 1)
        return [value for day, value in dated_values if start <= day <= today]
