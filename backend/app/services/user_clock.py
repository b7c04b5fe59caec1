"""
User-local calendar days.

Baseline windows, lookback windows and the once-per-day refresh gate all work
on the user's own calendar day, derived from users.timezone.
"""
import logging
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models import User
from app.services.errors import DataUnavailable

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current time as naive UTC, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def resolve_timezone(name: str | None, default: str = "UTC") -> ZoneInfo:
    """ZoneInfo for `name`, falling back to `default` for unknown names."""
    try:
        return ZoneInfo(name or default)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, falling back to {default}")
        return ZoneInfo(default)


def local_date(moment: datetime, tz: ZoneInfo) -> date:
    """Calendar day of a naive-UTC (or aware) moment in `tz`."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


class UserClock:
    """Resolves a user's timezone and current local day."""

    def __init__(self, db: AsyncSession, default_timezone: str | None = None):
        self.db = db
        self.default_timezone = default_timezone or get_settings().default_timezone

    async def timezone(self, user_id: int) -> ZoneInfo:
        try:
            result = await self.db.execute(select(User.timezone).where(User.id == user_id))
            name = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DataUnavailable(
                f"Could not load timezone for user {user_id}", user_id=user_id
            ) from e
        return resolve_timezone(name, self.default_timezone)

    async def today(self, user_id: int, now: datetime | None = None) -> date:
        tz = await self.timezone(user_id)
        return local_date(now or utcnow(), tz)
