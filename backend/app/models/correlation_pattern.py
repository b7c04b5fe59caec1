from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class CorrelationPattern(Base):
    """A lagged correlation between two metrics found by the last detection run."""
    __tablename__ = "correlation_patterns"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "metric_a", "metric_b", "time_lag_days",
            name="uq_user_pattern_key",
        ),
        Index("ix_correlation_patterns_user_active", "user_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    pattern_type: Mapped[str] = mapped_column(String(20), default="correlation")

    # metric_a leads, metric_b is observed time_lag_days later
    metric_a: Mapped[str] = mapped_column(String(20), nullable=False)
    metric_b: Mapped[str] = mapped_column(String(20), nullable=False)
    time_lag_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    correlation_strength: Mapped[float] = mapped_column(Float, nullable=False)  # -1 to 1
    direction: Mapped[str] = mapped_column(String(10), nullable=False)  # positive, negative
    confidence: Mapped[float] = mapped_column(Float, nullable=False)  # 0 to 1
    sample_size: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    last_observed: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="patterns")
