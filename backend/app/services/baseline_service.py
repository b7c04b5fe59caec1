"""
Baseline Service - compute, persist and serve per-metric rolling baselines.

The computation itself is pure (see app.ml.baseline); this service adds the
history read, the upsert into metric_baselines and the once-per-day gate.
"""
import logging
from datetime import date, datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.ml.baseline import BaselineCalculator, BaselineSnapshot
from app.models import MetricBaseline
from app.schemas.enums import JobType, MetricType
from app.services.analytics_config import BaselineConfig, get_analytics_config
from app.services.errors import DataUnavailable, PersistenceFailure
from app.services.metric_store import MetricStore
from app.services.persistence import upsert_rows
from app.services.refresh_state import RefreshStateStore
from app.services.user_clock import UserClock, local_date, utcnow

logger = logging.getLogger(__name__)

_STAT_COLUMNS = [
    "avg_7day",
    "avg_14day",
    "avg_30day",
    "stddev_7day",
    "stddev_14day",
    "stddev_30day",
    "min_7day",
    "max_7day",
    "sample_count_7day",
    "sample_count_14day",
    "sample_count_30day",
]


class BaselineService:
    """Baseline operations for the analytics pipeline."""

    def __init__(
        self,
        db: AsyncSession,
        config: BaselineConfig | None = None,
        default_timezone: str | None = None,
    ):
        self.db = db
        self.calculator = BaselineCalculator(config or get_analytics_config().baseline)
        self.metric_store = MetricStore(db)
        self.clock = UserClock(db, default_timezone)
        self.refresh_state = RefreshStateStore(db)

    async def compute_baselines(
        self, user_id: int, now: datetime | None = None
    ) -> list[BaselineSnapshot]:
        """Compute baselines from the last 30 user-local days. Nothing is stored."""
        now = now or utcnow()
        today = await self.clock.today(user_id, now)
        return await self._compute(user_id, today, now)

    async def save_baselines(
        self,
        user_id: int,
        baselines: list[BaselineSnapshot],
        now: datetime | None = None,
    ) -> bool:
        """
        Replace the user's stored baselines with `baselines`.

        Rows are upserted by (user, metric_type); metric types missing from
        the new set are removed. Returns False if the write failed.
        """
        try:
            await self._stage(user_id, baselines, now or utcnow())
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Error saving baselines: {e}",
                extra={"user_id": user_id},
                exc_info=True,
            )
            return False
        return True

    async def get_cached_baselines(self, user_id: int) -> list[BaselineSnapshot] | None:
        """Currently stored baselines, or None if none were ever saved."""
        try:
            result = await self.db.execute(
                select(MetricBaseline)
                .where(MetricBaseline.user_id == user_id)
                .order_by(MetricBaseline.metric_type)
                .execution_options(populate_existing=True)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise DataUnavailable(
                f"Could not read baselines for user {user_id}", user_id=user_id
            ) from e

        if not rows:
            return None
        return [_to_snapshot(row) for row in rows]

    async def update_baselines_if_needed(
        self,
        user_id: int,
        now: datetime | None = None,
        force: bool = False,
    ) -> bool:
        """
        Recompute and store baselines unless they already ran today.

        Returns True only if new baselines were persisted. The refresh gate is
        advanced in the same transaction as the baselines. When the window no
        longer holds any data the stored baselines are removed and the gate is
        left alone.
        """
        now = now or utcnow()
        tz = await self.clock.timezone(user_id)

        if not force and await self.refresh_state.ran_today(user_id, JobType.BASELINE, now, tz):
            logger.debug(f"Baselines for user {user_id} are up to date")
            return False

        baselines = await self._compute(user_id, local_date(now, tz), now)
        if not baselines:
            logger.info(f"No data to compute baselines for user {user_id}")
            await self._clear(user_id)
            return False

        try:
            await self._stage(user_id, baselines, now)
            await self.refresh_state.mark_ran(user_id, JobType.BASELINE, now)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure(
                f"Could not persist baselines for user {user_id}",
                user_id=user_id,
                job=JobType.BASELINE.value,
            ) from e

        logger.info(
            "Baselines updated",
            extra={"user_id": user_id, "metric_types": len(baselines)},
        )
        return True

    async def _clear(self, user_id: int) -> None:
        """Drop stored baselines whose windows no longer hold any data. Gate untouched."""
        try:
            await self._stage(user_id, [], utcnow())
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure(
                f"Could not clear baselines for user {user_id}",
                user_id=user_id,
                job=JobType.BASELINE.value,
            ) from e

    async def _compute(
        self, user_id: int, today: date, now: datetime
    ) -> list[BaselineSnapshot]:
        records = await self.metric_store.get_daily_metrics(
            user_id, self.calculator.window_start(today)
        )
        baselines = self.calculator.calculate(records, today)
        for baseline in baselines:
            baseline.computed_at = now
        return baselines

    async def _stage(
        self, user_id: int, baselines: list[BaselineSnapshot], computed_at: datetime
    ) -> None:
        rows = []
        for baseline in baselines:
            row = {column: getattr(baseline, column) for column in _STAT_COLUMNS}
            row.update(
                user_id=user_id,
                metric_type=baseline.metric_type.value,
                computed_at=baseline.computed_at or computed_at,
            )
            rows.append(row)

        await upsert_rows(
            self.db,
            MetricBaseline,
            rows,
            conflict_columns=["user_id", "metric_type"],
            update_columns=_STAT_COLUMNS + ["computed_at"],
        )

        # Superseded entirely: drop metric types the new computation no longer has
        stale = delete(MetricBaseline).where(MetricBaseline.user_id == user_id)
        kept = [baseline.metric_type.value for baseline in baselines]
        if kept:
            stale = stale.where(MetricBaseline.metric_type.not_in(kept))
        await self.db.execute(stale.execution_options(synchronize_session=False))


def _to_snapshot(row: MetricBaseline) -> BaselineSnapshot:
    return BaselineSnapshot(
        metric_type=MetricType(row.metric_type),
        avg_7day=row.avg_7day,
        avg_14day=row.avg_14day,
        avg_30day=row.avg_30day,
        stddev_7day=row.stddev_7day,
        stddev_14day=row.stddev_14day,
        stddev_30day=row.stddev_30day,
        min_7day=row.min_7day,
        max_7day=row.max_7day,
        sample_count_7day=row.sample_count_7day,
        sample_count_14day=row.sample_count_14day,
        sample_count_30day=row.sample_count_30day,
        computed_at=row.computed_at,
    )
