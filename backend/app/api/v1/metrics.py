import logging
from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, DbSession, Orchestrator
from app.models import DailyMetrics
from app.schemas.metrics import (
    DailyMetricsCreate,
    DailyMetricsListResponse,
    DailyMetricsResponse,
    IngestResponse,
)
from app.services.user_clock import UserClock

logger = logging.getLogger(__name__)

router = APIRouter()

METRIC_FIELDS = [
    "steps",
    "sleep_duration_minutes",
    "hrv",
    "resting_heart_rate",
    "recovery_score",
    "weight_kg",
]


def _merge(row: DailyMetrics, metrics_in: DailyMetricsCreate) -> None:
    """Copy the provided (non-null) metrics onto the row."""
    for field in METRIC_FIELDS:
        value = getattr(metrics_in, field)
        if value is not None:
            setattr(row, field, value)

    if metrics_in.source and metrics_in.source not in (row.data_sources or []):
        # Reassign so the JSON column is flagged dirty
        row.data_sources = [*(row.data_sources or []), metrics_in.source]


async def _get_day(db: AsyncSession, user_id: int, day: date) -> DailyMetrics | None:
    result = await db.execute(
        select(DailyMetrics).where(
            DailyMetrics.user_id == user_id,
            DailyMetrics.date == day,
        )
    )
    return result.scalar_one_or_none()


@router.post("", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest_daily_metrics(
    metrics_in: DailyMetricsCreate,
    current_user: CurrentUser,
    db: DbSession,
    orchestrator: Orchestrator,
) -> IngestResponse:
    """
    Store one day of metrics and schedule an analytics refresh.

    A second submission for the same day is merged into the existing row.
    The refresh runs in the background; this call does not wait for it.
    """
    user_id = current_user.id
    row = await _get_day(db, user_id, metrics_in.date)
    created = row is None

    if created:
        row = DailyMetrics(user_id=user_id, date=metrics_in.date, data_sources=[])
        db.add(row)
    _merge(row, metrics_in)

    try:
        await db.commit()
    except IntegrityError:
        # Another request inserted the same day first; merge into that row
        await db.rollback()
        row = await _get_day(db, user_id, metrics_in.date)
        if row is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Conflicting write for this day, please retry",
            )
        created = False
        _merge(row, metrics_in)
        await db.commit()

    await db.refresh(row)
    record = DailyMetricsResponse.model_validate(row)

    tasks = orchestrator.trigger(user_id)
    logger.info(
        f"Ingested metrics for {metrics_in.date}",
        extra={"user_id": user_id, "created": created, "refreshes": len(tasks)},
    )

    return IngestResponse(
        created=created,
        record=record,
        refresh_scheduled=[task.get_name() for task in tasks],
    )


@router.get("", response_model=DailyMetricsListResponse)
async def list_daily_metrics(
    current_user: CurrentUser,
    db: DbSession,
    days: int = Query(30, ge=1, le=365),
) -> DailyMetricsListResponse:
    """List the user's daily metrics for the last `days` local days, newest first."""
    today = await UserClock(db).today(current_user.id)
    since = today - timedelta(days=days - 1)

    result = await db.execute(
        select(DailyMetrics)
        .where(
            DailyMetrics.user_id == current_user.id,
            DailyMetrics.date >= since,
        )
        .order_by(DailyMetrics.date.desc())
    )
    rows = result.scalars().all()

    return DailyMetricsListResponse(
        metrics=[DailyMetricsResponse.model_validate(row) for row in rows],
        total=len(rows),
    )
