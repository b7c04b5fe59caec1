from datetime import date, datetime

from pydantic import BaseModel, Field


class DailyMetricsBase(BaseModel):
    """A normalized day of wearable data. Omitted fields mean no data."""
    date: date
    steps: int | None = Field(None, ge=0)
    sleep_duration_minutes: int | None = Field(None, ge=0, le=24 * 60)
    hrv: float | None = Field(None, gt=0, description="HRV (RMSSD) in ms")
    resting_heart_rate: int | None = Field(None, gt=0, le=250)
    recovery_score: float | None = Field(None, ge=0, le=100)
    weight_kg: float | None = Field(None, gt=0)


class DailyMetricsCreate(DailyMetricsBase):
    source: str | None = Field(None, description="Source tag, e.g. 'garmin' or 'manual'")


class DailyMetricsResponse(DailyMetricsBase):
    id: int
    user_id: int
    data_sources: list[str] = []
    updated_at: datetime

    class Config:
        from_attributes = True


class IngestResponse(BaseModel):
    """Acknowledgement for ingested data; analytics refresh runs in the background."""
    accepted: bool = True
    created: bool
    record: DailyMetricsResponse
    refresh_scheduled: list[str] = []


class DailyMetricsListResponse(BaseModel):
    metrics: list[DailyMetricsResponse]
    total: int
