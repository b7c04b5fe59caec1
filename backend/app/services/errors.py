"""
Analytics pipeline errors.

None of these ever reach the ingestion response; the orchestrator logs them.
API routes that compute on demand translate them to HTTP status codes.
"""
from typing import Optional


class AnalyticsError(Exception):
    """Base class for baseline / pattern pipeline failures."""

    def __init__(self, message: str, user_id: Optional[int] = None, job: Optional[str] = None):
        super().__init__(message)
        self.user_id = user_id
        self.job = job


class DataUnavailable(AnalyticsError):
    """Reading the user's metric history failed. Safe to retry on the next trigger."""


class PersistenceFailure(AnalyticsError):
    """Writing baselines, patterns or refresh state failed."""


class ComputationTimeout(AnalyticsError):
    """A refresh exceeded its execution budget; nothing was persisted."""
