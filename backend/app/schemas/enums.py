from enum import Enum


class MetricType(str, Enum):
    STEPS = "steps"
    SLEEP_HOURS = "sleep_hours"
    HRV = "hrv"
    RHR = "rhr"  # Resting heart rate
    RECOVERY = "recovery"
    WEIGHT = "weight"


class JobType(str, Enum):
    BASELINE = "baseline"
    PATTERN = "pattern"


class PatternDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class PatternType(str, Enum):
    CORRELATION = "correlation"


# Column on daily_metrics each metric type is read from
METRIC_SOURCE_FIELD = {
    MetricType.STEPS: "steps",
    MetricType.SLEEP_HOURS: "sleep_duration_minutes",
    MetricType.HRV: "hrv",
    MetricType.RHR: "resting_heart_rate",
    MetricType.RECOVERY: "recovery_score",
    MetricType.WEIGHT: "weight_kg",
}

# Divisor applied to the raw column value (sleep is stored in minutes)
METRIC_SCALE = {
    MetricType.SLEEP_HOURS: 60.0,
}

# Human-readable names used in generated descriptions
METRIC_DISPLAY_NAME = {
    MetricType.STEPS: "steps",
    MetricType.SLEEP_HOURS: "sleep duration",
    MetricType.HRV: "HRV",
    MetricType.RHR: "resting heart rate",
    MetricType.RECOVERY: "recovery score",
    MetricType.WEIGHT: "weight",
}
