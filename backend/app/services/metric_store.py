"""
Read access to users' daily metric rows.

The analytics pipeline only ever reads daily_metrics; ingestion owns writes.
"""
import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.ml.records import DailyMetricRecord
from app.models import DailyMetrics
from app.services.errors import DataUnavailable

logger = logging.getLogger(__name__)


class MetricStore:
    """Reads DailyMetricRecord history for a user."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_daily_metrics(self, user_id: int, since_date: date) -> list[DailyMetricRecord]:
        """Records on or after `since_date`, ascending by date, one per date."""
        try:
            result = await self.db.execute(
                select(DailyMetrics)
                .where(
                    DailyMetrics.user_id == user_id,
                    DailyMetrics.date >= since_date,
                )
                .order_by(DailyMetrics.date.asc())
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to read daily metrics: {e}",
                extra={"user_id": user_id, "since_date": since_date.isoformat()},
                exc_info=True,
            )
            raise DataUnavailable(
                f"Daily metrics unavailable for user {user_id}", user_id=user_id
            ) from e

        return [DailyMetricRecord.from_row(row) for row in rows]
