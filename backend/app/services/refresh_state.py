"""
Keyed last-run timestamps backing the once-per-day refresh gate.

Contract: read the timestamp, compute, then write the timestamp in the same
transaction as the results. The gate is therefore never advanced for a run
that failed or timed out before committing.
"""
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import RefreshState
from app.schemas.enums import JobType
from app.services.errors import DataUnavailable
from app.services.persistence import upsert_rows
from app.services.user_clock import local_date


class RefreshStateStore:
    """Per-(user, job) last-run timestamps."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_last_run(self, user_id: int, job: JobType) -> datetime | None:
        try:
            result = await self.db.execute(
                select(RefreshState.last_run_at).where(
                    RefreshState.user_id == user_id,
                    RefreshState.job_type == job.value,
                )
            )
        except SQLAlchemyError as e:
            raise DataUnavailable(
                f"Could not read {job.value} refresh state", user_id=user_id, job=job.value
            ) from e
        return result.scalar_one_or_none()

    async def ran_today(self, user_id: int, job: JobType, now: datetime, tz: ZoneInfo) -> bool:
        """True if the job already completed on the user's current calendar day."""
        last_run = await self.get_last_run(user_id, job)
        if last_run is None:
            return False
        return local_date(last_run, tz) == local_date(now, tz)

    async def mark_ran(self, user_id: int, job: JobType, at: datetime) -> None:
        """Stage the new timestamp; committed by the caller with the results."""
        await upsert_rows(
            self.db,
            RefreshState,
            [{"user_id": user_id, "job_type": job.value, "last_run_at": at}],
            conflict_columns=["user_id", "job_type"],
            update_columns=["last_run_at"],
        )
