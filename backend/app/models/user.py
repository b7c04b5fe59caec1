from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), default="UTC")  # IANA name, defines the user's calendar day
    device_sources: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    daily_metrics = relationship("DailyMetrics", back_populates="user", cascade="all, delete-orphan")
    baselines = relationship("MetricBaseline", back_populates="user", cascade="all, delete-orphan")
    patterns = relationship("CorrelationPattern", back_populates="user", cascade="all, delete-orphan")
    refresh_states = relationship("RefreshState", back_populates="user", cascade="all, delete-orphan")
