# SQLAlchemy Models
from app.models.user import User
from app.models.daily_metrics import DailyMetrics
from app.models.metric_baseline import MetricBaseline
from app.models.correlation_pattern import CorrelationPattern
from app.models.refresh_state import RefreshState

__all__ = [
    "User",
    "DailyMetrics",
    "MetricBaseline",
    "CorrelationPattern",
    "RefreshState",
]
