from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class RefreshState(Base):
    """When a refresh job (baseline or pattern) last completed for a user."""
    __tablename__ = "refresh_states"
    __table_args__ = (
        UniqueConstraint("user_id", "job_type", name="uq_user_job_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    job_type: Mapped[str] = mapped_column(String(20), nullable=False)
    last_run_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)  # naive UTC

    # Relationships
    user = relationship("User", back_populates="refresh_states")
