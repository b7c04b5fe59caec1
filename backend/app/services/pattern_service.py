"""
Pattern Service - detect, persist and serve lagged metric correlations.

Saving a detection run refreshes reproduced patterns in place and retires
every previously active pattern the run did not reproduce, so stale patterns
never stay visible.
"""
import logging
from datetime import date, datetime

from sqlalchemy import and_, not_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.ml.correlation import ConfidenceScorer, CorrelationDetector, DetectedPattern
from app.models import CorrelationPattern
from app.schemas.enums import JobType, MetricType, PatternDirection, PatternType
from app.services.analytics_config import AnalyticsConfig, get_analytics_config
from app.services.errors import DataUnavailable, PersistenceFailure
from app.services.metric_store import MetricStore
from app.services.persistence import upsert_rows
from app.services.refresh_state import RefreshStateStore
from app.services.user_clock import UserClock, local_date, utcnow

logger = logging.getLogger(__name__)

_VALUE_COLUMNS = [
    "pattern_type",
    "correlation_strength",
    "direction",
    "confidence",
    "sample_size",
    "description",
    "last_observed",
    "is_active",
    "updated_at",
]


class PatternService:
    """Correlation pattern operations for the analytics pipeline."""

    def __init__(
        self,
        db: AsyncSession,
        config: AnalyticsConfig | None = None,
        confidence_scorer: ConfidenceScorer | None = None,
        default_timezone: str | None = None,
    ):
        config = config or get_analytics_config()
        self.db = db
        self.detector = CorrelationDetector(
            config.correlation,
            templates=config.description_templates,
            confidence_scorer=confidence_scorer,
        )
        self.metric_store = MetricStore(db)
        self.clock = UserClock(db, default_timezone)
        self.refresh_state = RefreshStateStore(db)

    async def detect_patterns(
        self, user_id: int, now: datetime | None = None
    ) -> list[DetectedPattern]:
        """Detect patterns over the lookback window. Nothing is stored."""
        now = now or utcnow()
        today = await self.clock.today(user_id, now)
        return await self._detect(user_id, today, now)

    async def save_patterns(
        self,
        patterns: list[DetectedPattern],
        user_id: int | None = None,
        now: datetime | None = None,
    ) -> bool:
        """
        Persist a detection run and retire patterns it did not reproduce.

        The run's user comes from the patterns themselves, or from `user_id`
        when the run found nothing. Returns False if the write failed.
        """
        user_ids = {p.user_id for p in patterns}
        if user_id is not None:
            user_ids.add(user_id)
        if not user_ids:
            return True

        now = now or utcnow()
        try:
            for uid in sorted(user_ids):
                await self._stage(uid, [p for p in patterns if p.user_id == uid], now)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Error saving patterns: {e}",
                extra={"user_ids": sorted(user_ids)},
                exc_info=True,
            )
            return False
        return True

    async def get_active_patterns(self, user_id: int) -> list[DetectedPattern]:
        """Active patterns, most confident first."""
        try:
            result = await self.db.execute(
                select(CorrelationPattern)
                .where(
                    CorrelationPattern.user_id == user_id,
                    CorrelationPattern.is_active.is_(True),
                )
                .order_by(CorrelationPattern.confidence.desc(), CorrelationPattern.id)
                .execution_options(populate_existing=True)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise DataUnavailable(
                f"Could not read patterns for user {user_id}", user_id=user_id
            ) from e
        return [_to_pattern(row) for row in rows]

    async def detect_patterns_if_needed(
        self,
        user_id: int,
        now: datetime | None = None,
        force: bool = False,
    ) -> list[DetectedPattern] | None:
        """
        Detect and store patterns unless detection already ran today.

        Returns None when skipped, otherwise the (possibly empty) new set.
        """
        now = now or utcnow()
        tz = await self.clock.timezone(user_id)

        if not force and await self.refresh_state.ran_today(user_id, JobType.PATTERN, now, tz):
            logger.debug(f"Patterns for user {user_id} are up to date")
            return None

        patterns = await self._detect(user_id, local_date(now, tz), now)

        try:
            await self._stage(user_id, patterns, now)
            await self.refresh_state.mark_ran(user_id, JobType.PATTERN, now)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure(
                f"Could not persist patterns for user {user_id}",
                user_id=user_id,
                job=JobType.PATTERN.value,
            ) from e

        if patterns:
            logger.info(
                f"Saved {len(patterns)} patterns",
                extra={"user_id": user_id},
            )
        else:
            logger.info(f"No significant patterns found for user {user_id}")
        return patterns

    async def _detect(
        self, user_id: int, today: date, now: datetime
    ) -> list[DetectedPattern]:
        records = await self.metric_store.get_daily_metrics(
            user_id, self.detector.window_start(today)
        )
        return self.detector.detect(records, today, user_id, observed_at=now)

    async def _stage(
        self, user_id: int, patterns: list[DetectedPattern], now: datetime
    ) -> None:
        rows = [
            {
                "user_id": user_id,
                "metric_a": p.metric_a.value,
                "metric_b": p.metric_b.value,
                "time_lag_days": p.time_lag_days,
                "pattern_type": p.pattern_type.value,
                "correlation_strength": p.correlation_strength,
                "direction": p.direction.value,
                "confidence": p.confidence,
                "sample_size": p.sample_size,
                "description": p.description,
                "last_observed": p.last_observed,
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            }
            for p in patterns
        ]
        await upsert_rows(
            self.db,
            CorrelationPattern,
            rows,
            conflict_columns=["user_id", "metric_a", "metric_b", "time_lag_days"],
            update_columns=_VALUE_COLUMNS,
        )

        # Retire whatever this run did not reproduce
        retire = update(CorrelationPattern).where(
            CorrelationPattern.user_id == user_id,
            CorrelationPattern.is_active.is_(True),
        )
        if patterns:
            reproduced = or_(*[
                and_(
                    CorrelationPattern.metric_a == p.metric_a.value,
                    CorrelationPattern.metric_b == p.metric_b.value,
                    CorrelationPattern.time_lag_days == p.time_lag_days,
                )
                for p in patterns
            ])
            retire = retire.where(not_(reproduced))
        await self.db.execute(
            retire.values(is_active=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )


def _to_pattern(row: CorrelationPattern) -> DetectedPattern:
    return DetectedPattern(
        user_id=row.user_id,
        metric_a=MetricType(row.metric_a),
        metric_b=MetricType(row.metric_b),
        correlation_strength=row.correlation_strength,
        direction=PatternDirection(row.direction),
        confidence=row.confidence,
        sample_size=row.sample_size,
        time_lag_days=row.time_lag_days,
        description=row.description,
        last_observed=row.last_observed,
        is_active=row.is_active,
        pattern_type=PatternType(row.pattern_type),
    )
