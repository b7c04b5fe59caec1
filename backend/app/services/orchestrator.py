"""
Refresh Orchestrator - fire-and-forget analytics refresh on new data.

Ingestion calls `trigger(user_id)` after committing a user's new metric row.
Baseline and pattern refreshes are scheduled as independent asyncio tasks and
the call returns immediately. Every task:

1. opens its own database session,
2. runs the freshness-gated service operation under a timeout,
3. logs (never raises) any failure.

Within one process a refresh of the same (user, job) that is still running
absorbs further triggers instead of starting a duplicate.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.enums import JobType
from app.services.baseline_service import BaselineService
from app.services.errors import AnalyticsError, ComputationTimeout
from app.services.pattern_service import PatternService
from app.services.user_clock import utcnow

logger = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    """What a single refresh task did.

    Attributes:
        user_id:  User the refresh ran for.
        job:      Baseline or pattern refresh.
        status:   'updated', 'skipped' or 'failed'.
        error:    Exception that caused a failure, if any.
        finished_at: UTC timestamp of completion.
    """

    user_id: int
    job: JobType
    status: str = "skipped"
    error: Optional[BaseException] = None
    finished_at: datetime = field(default_factory=utcnow)


class RefreshOrchestrator:
    """Dispatches per-user analytics refreshes without blocking the caller.

    Usage::

        orchestrator = RefreshOrchestrator(async_session_maker, timeout_seconds=5)
        orchestrator.trigger(user_id)      # returns immediately
        await orchestrator.drain()         # on shutdown / in tests
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        timeout_seconds: float = 5.0,
        max_outcomes: int = 1000,
    ) -> None:
        self._session_factory = session_factory
        self._timeout = timeout_seconds
        self._max_outcomes = max_outcomes
        self._in_flight: dict[tuple[int, JobType], asyncio.Task] = {}
        self.outcomes: list[RefreshOutcome] = []

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def trigger(self, user_id: int) -> list[asyncio.Task]:
        """Schedule baseline and pattern refreshes for a user.

        Returns the tasks that were newly scheduled; a job already running for
        this user is not scheduled again.
        """
        scheduled = []
        for job in (JobType.BASELINE, JobType.PATTERN):
            key = (user_id, job)
            if key in self._in_flight:
                logger.debug(f"{job.value} refresh already running for user {user_id}")
                continue
            task = asyncio.create_task(
                self._run(user_id, job), name=f"refresh-{job.value}-{user_id}"
            )
            self._in_flight[key] = task
            task.add_done_callback(lambda _t, key=key: self._in_flight.pop(key, None))
            scheduled.append(task)
        return scheduled

    async def drain(self) -> list[RefreshOutcome]:
        """Wait for every in-flight refresh to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)
        return list(self.outcomes)

    async def shutdown(self) -> None:
        """Drain, cancelling whatever is still running after the timeout."""
        if not self._in_flight:
            return
        tasks = list(self._in_flight.values())
        _, pending = await asyncio.wait(tasks, timeout=self._timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"Cancelled {len(pending)} refresh task(s) on shutdown")

    async def _run(self, user_id: int, job: JobType) -> RefreshOutcome:
        outcome = RefreshOutcome(user_id=user_id, job=job)
        try:
            updated = await asyncio.wait_for(self._refresh(user_id, job), timeout=self._timeout)
            outcome.status = "updated" if updated else "skipped"
        except asyncio.TimeoutError:
            outcome.status = "failed"
            outcome.error = ComputationTimeout(
                f"{job.value} refresh exceeded {self._timeout}s",
                user_id=user_id,
                job=job.value,
            )
            logger.error(
                f"{job.value} refresh timed out for user {user_id}",
                extra={"user_id": user_id, "job": job.value},
            )
        except AnalyticsError as e:
            outcome.status = "failed"
            outcome.error = e
            logger.error(
                f"{job.value} refresh failed for user {user_id}: {e}",
                extra={"user_id": user_id, "job": job.value},
                exc_info=True,
            )
        except Exception as e:
            # Refresh failures must never surface to the ingestion path
            outcome.status = "failed"
            outcome.error = e
            logger.error(
                f"Unexpected error in {job.value} refresh for user {user_id}: {e}",
                extra={"user_id": user_id, "job": job.value},
                exc_info=True,
            )

        outcome.finished_at = utcnow()
        self._record(outcome)
        return outcome

    async def _refresh(self, user_id: int, job: JobType) -> bool:
        async with self._session_factory() as session:
            if job == JobType.BASELINE:
                return await BaselineService(session).update_baselines_if_needed(user_id)
            patterns = await PatternService(session).detect_patterns_if_needed(user_id)
            return patterns is not None

    def _record(self, outcome: RefreshOutcome) -> None:
        self.outcomes.append(outcome)
        if len(self.outcomes) > self._max_outcomes:
            del self.outcomes[: len(self.outcomes) - self._max_outcomes]
