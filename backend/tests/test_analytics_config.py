"""Tests for AnalyticsConfig and configurable detection."""
import tempfile
from datetime import date, timedelta

import pytest

from app.ml.correlation import CorrelationDetector
from app.ml.records import DailyMetricRecord
from app.schemas.enums import MetricType
from app.services.analytics_config import (
    DEFAULT_DESCRIPTION_TEMPLATES,
    AnalyticsConfig,
    BaselineConfig,
    CorrelationConfig,
    get_analytics_config,
    load_analytics_config_from_yaml,
    set_analytics_config,
)


class TestAnalyticsConfigDefaults:
    """Tests for default configuration values."""

    def test_default_baseline_windows(self):
        config = AnalyticsConfig()
        assert config.baseline.short_window_days == 7
        assert config.baseline.mid_window_days == 14
        assert config.baseline.long_window_days == 30

    def test_default_significance_bar(self):
        config = AnalyticsConfig()
        assert config.correlation.min_sample_size == 14
        assert config.correlation.min_strength == 0.5
        assert config.correlation.lags == [0, 1, 2]
        assert config.correlation.lookback_days == 90

    def test_default_pairs_exclude_weight(self):
        pairs = CorrelationConfig().metric_pairs()
        assert len(pairs) == 10
        assert all(MetricType.WEIGHT not in pair for pair in pairs)

    def test_default_pairs_are_ordered(self):
        pairs = CorrelationConfig().metric_pairs()
        assert pairs[0] == (MetricType.STEPS, MetricType.SLEEP_HOURS)
        assert (MetricType.SLEEP_HOURS, MetricType.STEPS) not in pairs

    def test_every_default_pair_has_templates(self):
        for metric_a, metric_b in CorrelationConfig().metric_pairs():
            for direction in ("positive", "negative"):
                assert f"{metric_a.value}:{metric_b.value}:{direction}" in DEFAULT_DESCRIPTION_TEMPLATES


class TestAnalyticsConfigCustomization:
    """Tests for custom configuration values."""

    def test_explicit_pairs(self):
        config = CorrelationConfig(pairs=[["hrv", "steps"]])
        assert config.metric_pairs() == [(MetricType.HRV, MetricType.STEPS)]

    def test_custom_baseline_config(self):
        config = AnalyticsConfig(baseline=BaselineConfig(short_window_days=5))
        assert config.baseline.short_window_days == 5
        # Other values should still be defaults
        assert config.baseline.long_window_days == 30

    def test_templates_not_shared(self):
        config1 = AnalyticsConfig()
        config2 = AnalyticsConfig()
        config1.description_templates["steps:hrv:positive"] = "changed"
        assert config2.description_templates["steps:hrv:positive"] != "changed"


class TestAnalyticsConfigYAML:
    """Tests for YAML loading."""

    def test_load_from_yaml(self):
        yaml_content = """
baseline:
  short_window_days: 5

correlation:
  min_strength: 0.6
  lags: [0, 1]
  metrics: [steps, hrv]

description_templates:
  "steps:hrv:positive": "More steps, more HRV {when}"
"""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write(yaml_content)
            f.flush()

            config = AnalyticsConfig.from_yaml(f.name)

            assert config.baseline.short_window_days == 5
            assert config.correlation.min_strength == 0.6
            assert config.correlation.lags == [0, 1]
            assert config.correlation.metric_pairs() == [(MetricType.STEPS, MetricType.HRV)]
            assert config.description_templates["steps:hrv:positive"] == "More steps, more HRV {when}"

            # Non-specified values should be defaults
            assert config.correlation.min_sample_size == 14
            assert config.baseline.long_window_days == 30
            assert (
                config.description_templates["steps:sleep_hours:negative"]
                == DEFAULT_DESCRIPTION_TEMPLATES["steps:sleep_hours:negative"]
            )

    def test_empty_yaml_gives_defaults(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("")
            f.flush()
            config = AnalyticsConfig.from_yaml(f.name)
        assert config.to_dict() == AnalyticsConfig().to_dict()

    def test_to_dict(self):
        config_dict = AnalyticsConfig().to_dict()

        assert "baseline" in config_dict
        assert "correlation" in config_dict
        assert "description_templates" in config_dict
        assert config_dict["correlation"]["min_strength"] == 0.5


class TestAnalyticsConfigSingleton:
    """Tests for global config management."""

    def test_get_default_config(self):
        config = get_analytics_config()
        assert isinstance(config, AnalyticsConfig)

    def test_set_custom_config(self):
        set_analytics_config(AnalyticsConfig(correlation=CorrelationConfig(min_sample_size=7)))
        assert get_analytics_config().correlation.min_sample_size == 7

    def test_load_sets_global(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("correlation:\n  lookback_days: 60\n")
            f.flush()
            load_analytics_config_from_yaml(f.name)
        assert get_analytics_config().correlation.lookback_days == 60


class TestDetectionWithConfig:
    """Detection follows configured thresholds."""

    @pytest.fixture
    def short_history(self) -> list[DailyMetricRecord]:
        today = date(2026, 3, 31)
        return [
            DailyMetricRecord(
                date=today - timedelta(days=9 - i),
                steps=8000 + 100 * i,
                hrv=40.0 + i,
            )
            for i in range(10)
        ]

    def test_lower_min_sample_size(self, short_history):
        today = date(2026, 3, 31)
        assert CorrelationDetector().detect(short_history, today, user_id=1) == []

        config = CorrelationConfig(min_sample_size=7)
        patterns = CorrelationDetector(config).detect(short_history, today, user_id=1)
        assert len(patterns) == 1
        assert patterns[0].metric_b == MetricType.HRV
