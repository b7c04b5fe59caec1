"""
Lagged correlation detection between pairs of daily metrics.

For every configured (leading, following) metric pair and every candidate lag
L, values of the leading metric on day T are paired with the following metric
on day T + L. Pairs with enough observations and a strong enough Pearson r
become candidate patterns; per metric pair only the strongest lag is kept.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from app.ml.records import DailyMetricRecord
from app.ml.stats import clamp, pearson
from app.schemas.enums import METRIC_DISPLAY_NAME, MetricType, PatternDirection, PatternType
from app.services.analytics_config import (
    DEFAULT_DESCRIPTION_TEMPLATES,
    CorrelationConfig,
)
from app.services.user_clock import utcnow

# (|r|, sample_size) -> confidence in [0, 1]
ConfidenceScorer = Callable[[float, int], float]


@dataclass
class DetectedPattern:
    """A correlation that cleared the significance bar."""

    user_id: int
    metric_a: MetricType
    metric_b: MetricType
    correlation_strength: float
    direction: PatternDirection
    confidence: float
    sample_size: int
    time_lag_days: int
    description: str
    last_observed: datetime
    is_active: bool = True
    pattern_type: PatternType = PatternType.CORRELATION

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.metric_a.value, self.metric_b.value, self.time_lag_days)


@dataclass
class PairedSeries:
    """Aligned observations of two metrics at a given lag."""

    metric_a: MetricType
    metric_b: MetricType
    lag: int
    x: list[float] = field(default_factory=list)
    y: list[float] = field(default_factory=list)

    @property
    def sample_size(self) -> int:
        return len(self.x)


def saturating_confidence(saturation_samples: int) -> ConfidenceScorer:
    """Confidence = |r| scaled down until `saturation_samples` pairs exist."""

    def score(strength: float, sample_size: int) -> float:
        coverage = min(1.0, sample_size / saturation_samples) if saturation_samples > 0 else 1.0
        return clamp(abs(strength) * coverage)

    return score


def build_paired_series(
    records: Iterable[DailyMetricRecord],
    metric_a: MetricType,
    metric_b: MetricType,
    lag: int,
) -> PairedSeries:
    """Pair metric_a on day T with metric_b on day T + lag (both present)."""
    by_date = {r.date: r for r in records}
    series = PairedSeries(metric_a=metric_a, metric_b=metric_b, lag=lag)

    for day in sorted(by_date):
        x = by_date[day].value(metric_a)
        if x is None:
            continue
        follower = by_date.get(day + timedelta(days=lag))
        if follower is None:
            continue
        y = follower.value(metric_b)
        if y is None:
            continue
        series.x.append(x)
        series.y.append(y)

    return series


def lag_phrase(lag: int) -> str:
    """Lag wording used inside catalog templates."""
    if lag == 0:
        return "on the same day as"
    if lag == 1:
        return "the day after"
    return f"{lag} days after"


class CorrelationDetector:
    """Detects lagged correlations in a user's daily metric history."""

    def __init__(
        self,
        config: CorrelationConfig | None = None,
        templates: dict[str, str] | None = None,
        confidence_scorer: ConfidenceScorer | None = None,
    ):
        self.config = config or CorrelationConfig()
        self.templates = templates if templates is not None else DEFAULT_DESCRIPTION_TEMPLATES
        self.confidence_scorer = confidence_scorer or saturating_confidence(
            self.config.confidence_saturation_samples
        )

    def window_start(self, today: date) -> date:
        return today - timedelta(days=self.config.lookback_days - 1)

    def detect(
        self,
        records: Iterable[DailyMetricRecord],
        today: date,
        user_id: int,
        observed_at: datetime | None = None,
    ) -> list[DetectedPattern]:
        """Detect the strongest qualifying lag for every configured metric pair."""
        if observed_at is None:
            observed_at = utcnow()

        start = self.window_start(today)
        records = [r for r in records if start <= r.date <= today]
        if not records:
            return []

        patterns = []
        for metric_a, metric_b in self.config.metric_pairs():
            best = self._best_lag(records, metric_a, metric_b)
            if best is None:
                continue
            strength, series = best
            patterns.append(self._build_pattern(user_id, strength, series, observed_at))
        return patterns

    def evaluate(self, series: PairedSeries) -> Optional[float]:
        """
        Rounded Pearson r of a paired series, or None if it does not qualify.

        Too few pairs means the combination is not evaluated at all; it is not
        reported as "no correlation".
        """
        if series.sample_size < self.config.min_sample_size:
            return None
        r = pearson(series.x, series.y)
        if r is None or abs(r) < self.config.min_strength:
            return None
        return round(r, self.config.precision)

    def _best_lag(
        self,
        records: list[DailyMetricRecord],
        metric_a: MetricType,
        metric_b: MetricType,
    ) -> Optional[tuple[float, PairedSeries]]:
        best = None
        for lag in sorted(self.config.lags):
            series = build_paired_series(records, metric_a, metric_b, lag)
            strength = self.evaluate(series)
            if strength is None:
                continue
            # Strictly greater: ties keep the shorter lag
            if best is None or abs(strength) > abs(best[0]):
                best = (strength, series)
        return best

    def _build_pattern(
        self,
        user_id: int,
        strength: float,
        series: PairedSeries,
        observed_at: datetime,
    ) -> DetectedPattern:
        direction = PatternDirection.POSITIVE if strength > 0 else PatternDirection.NEGATIVE
        confidence = round(
            clamp(self.confidence_scorer(abs(strength), series.sample_size)),
            self.config.precision,
        )
        return DetectedPattern(
            user_id=user_id,
            metric_a=series.metric_a,
            metric_b=series.metric_b,
            correlation_strength=strength,
            direction=direction,
            confidence=confidence,
            sample_size=series.sample_size,
            time_lag_days=series.lag,
            description=self.describe(series.metric_a, series.metric_b, strength, series.lag),
            last_observed=observed_at,
        )

    def describe(
        self,
        metric_a: MetricType,
        metric_b: MetricType,
        strength: float,
        lag: int,
    ) -> str:
        """Human-readable summary from the template catalog, or a generic sentence."""
        direction = PatternDirection.POSITIVE if strength > 0 else PatternDirection.NEGATIVE
        template = self.templates.get(f"{metric_a.value}:{metric_b.value}:{direction.value}")
        if template:
            return template.format(when=lag_phrase(lag))

        a_name = METRIC_DISPLAY_NAME[metric_a]
        b_name = METRIC_DISPLAY_NAME[metric_b]
        adverb = "positively" if direction == PatternDirection.POSITIVE else "negatively"
        if abs(strength) >= self.config.strong_threshold:
            level = "strongly"
        elif abs(strength) >= self.config.moderate_threshold:
            level = "moderately"
        else:
            level = "weakly"

        if lag == 0:
            return f"Your {a_name} {level} {adverb} correlates with {b_name} on the same day"
        if lag == 1:
            return f"Your {a_name} {level} {adverb} correlates with next-day {b_name}"
        return f"Your {a_name} {level} {adverb} correlates with {b_name} {lag} days later"
