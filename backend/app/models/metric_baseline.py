from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class MetricBaseline(Base):
    """Last computed rolling baseline for one metric type of one user."""
    __tablename__ = "metric_baselines"
    __table_args__ = (
        UniqueConstraint("user_id", "metric_type", name="uq_user_metric_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    metric_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Rolling averages (None when the window has no samples)
    avg_7day: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg_14day: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg_30day: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Spread
    stddev_7day: Mapped[float | None] = mapped_column(Float, nullable=True)
    stddev_14day: Mapped[float | None] = mapped_column(Float, nullable=True)
    stddev_30day: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_7day: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_7day: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Non-missing days in each window
    sample_count_7day: Mapped[int] = mapped_column(Integer, default=0)
    sample_count_14day: Mapped[int] = mapped_column(Integer, default=0)
    sample_count_30day: Mapped[int] = mapped_column(Integer, default=0)

    computed_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="baselines")
