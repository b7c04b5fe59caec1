"""
Analytics Configuration - Windows, thresholds and description templates.

All tunable numbers of the baseline and correlation pipeline live here so they
can be changed from a YAML file without touching detection logic.
"""
from dataclasses import dataclass, field
from itertools import combinations
from typing import Optional

import yaml
from pathlib import Path

from app.schemas.enums import MetricType


@dataclass
class BaselineConfig:
    """Rolling window lengths (calendar days, today included)."""
    short_window_days: int = 7
    mid_window_days: int = 14
    long_window_days: int = 30

    # Decimal places kept on stored averages / stddevs
    precision: int = 2


@dataclass
class CorrelationConfig:
    """Lagged correlation detection configuration."""
    lookback_days: int = 90

    # Metrics eligible for pairing. Weight moves too slowly to correlate daily.
    metrics: list[str] = field(default_factory=lambda: [
        MetricType.STEPS.value,
        MetricType.SLEEP_HOURS.value,
        MetricType.HRV.value,
        MetricType.RHR.value,
        MetricType.RECOVERY.value,
    ])

    # Explicit (leading, following) pairs. Empty = every combination of
    # `metrics` in list order.
    pairs: list[list[str]] = field(default_factory=list)

    lags: list[int] = field(default_factory=lambda: [0, 1, 2])

    # Significance bar
    min_sample_size: int = 14
    min_strength: float = 0.5

    # Confidence reaches |r| once this many pairs are observed
    confidence_saturation_samples: int = 30

    # Strength wording for generic descriptions
    strong_threshold: float = 0.7
    moderate_threshold: float = 0.5

    # Decimal places kept on strength / confidence
    precision: int = 3

    def metric_pairs(self) -> list[tuple[MetricType, MetricType]]:
        """Ordered (leading, following) metric pairs to evaluate."""
        if self.pairs:
            return [(MetricType(a), MetricType(b)) for a, b in self.pairs]
        return [
            (MetricType(a), MetricType(b))
            for a, b in combinations(self.metrics, 2)
        ]


# Keyed by "metric_a:metric_b:direction". `{when}` is replaced with a lag
# phrase such as "on the same day as", "the day after" or "2 days after".
DEFAULT_DESCRIPTION_TEMPLATES: dict[str, str] = {
    "steps:sleep_hours:positive": "You tend to sleep longer {when} high-step days",
    "steps:sleep_hours:negative": "You tend to sleep less {when} high-step days",
    "steps:hrv:positive": "Your HRV tends to be higher {when} active days",
    "steps:hrv:negative": "Your HRV tends to dip {when} high-step days",
    "steps:rhr:positive": "Your resting heart rate tends to run higher {when} high-step days",
    "steps:rhr:negative": "Your resting heart rate tends to be lower {when} active days",
    "steps:recovery:positive": "Your recovery tends to improve {when} active days",
    "steps:recovery:negative": "Your recovery tends to drop {when} high-step days",
    "sleep_hours:hrv:positive": "Your HRV tends to be higher {when} longer nights of sleep",
    "sleep_hours:hrv:negative": "Your HRV tends to be lower {when} longer nights of sleep",
    "sleep_hours:rhr:positive": "Your resting heart rate tends to be higher {when} longer sleep",
    "sleep_hours:rhr:negative": "Your resting heart rate tends to drop {when} longer sleep",
    "sleep_hours:recovery:positive": "Your recovery tends to be better {when} longer sleep",
    "sleep_hours:recovery:negative": "Your recovery tends to be worse {when} longer sleep",
    "hrv:rhr:positive": "Your resting heart rate tends to be higher {when} high-HRV days",
    "hrv:rhr:negative": "Your resting heart rate tends to be lower {when} high-HRV days",
    "hrv:recovery:positive": "Your recovery tends to be better {when} high-HRV days",
    "hrv:recovery:negative": "Your recovery tends to be worse {when} high-HRV days",
    "rhr:recovery:positive": "Your recovery tends to be better {when} days with a higher resting heart rate",
    "rhr:recovery:negative": "Your recovery tends to suffer {when} days with an elevated resting heart rate",
}


@dataclass
class AnalyticsConfig:
    """Master configuration for the analytics pipeline."""
    baseline: BaselineConfig = field(default_factory=BaselineConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    description_templates: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DESCRIPTION_TEMPLATES)
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AnalyticsConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "baseline" in data:
            config.baseline = BaselineConfig(**data["baseline"])
        if "correlation" in data:
            config.correlation = CorrelationConfig(**data["correlation"])
        if "description_templates" in data:
            # Merged so a file only needs to carry the phrasings it changes
            config.description_templates.update(data["description_templates"])

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            "baseline": dict(self.baseline.__dict__),
            "correlation": dict(self.correlation.__dict__),
            "description_templates": dict(self.description_templates),
        }


# Global default configuration instance
_default_config: Optional[AnalyticsConfig] = None


def get_analytics_config() -> AnalyticsConfig:
    """Get the current analytics configuration (singleton pattern)."""
    global _default_config
    if _default_config is None:
        _default_config = AnalyticsConfig()
    return _default_config


def set_analytics_config(config: AnalyticsConfig) -> None:
    """Set a custom analytics configuration."""
    global _default_config
    _default_config = config


def load_analytics_config_from_yaml(path: str | Path) -> AnalyticsConfig:
    """Load and set analytics configuration from YAML file."""
    config = AnalyticsConfig.from_yaml(path)
    set_analytics_config(config)
    return config
