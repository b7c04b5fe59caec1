from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.enums import MetricType, PatternDirection, PatternType


class BaselineResponse(BaseModel):
    metric_type: MetricType
    avg_7day: float | None = None
    avg_14day: float | None = None
    avg_30day: float | None = None
    stddev_7day: float | None = None
    stddev_14day: float | None = None
    stddev_30day: float | None = None
    min_7day: float | None = None
    max_7day: float | None = None
    sample_count_7day: int = Field(..., ge=0)
    sample_count_14day: int = Field(0, ge=0)
    sample_count_30day: int = Field(..., ge=0)
    computed_at: datetime | None = None

    class Config:
        from_attributes = True


class BaselineListResponse(BaseModel):
    """`baselines` is null until the first computation has been stored."""
    baselines: list[BaselineResponse] | None
    message: str | None = None


class ComputeBaselinesRequest(BaseModel):
    force: bool = False
    dry_run: bool = Field(False, description="Compute without storing")


class ComputeBaselinesResponse(BaseModel):
    success: bool
    message: str
    saved: bool = False
    baselines: list[BaselineResponse] = []


class PatternResponse(BaseModel):
    pattern_type: PatternType = PatternType.CORRELATION
    metric_a: MetricType
    metric_b: MetricType
    correlation_strength: float = Field(..., ge=-1, le=1)
    direction: PatternDirection
    confidence: float = Field(..., ge=0, le=1)
    sample_size: int
    time_lag_days: int = Field(..., ge=0)
    description: str
    last_observed: datetime
    is_active: bool = True

    class Config:
        from_attributes = True


class PatternListResponse(BaseModel):
    patterns: list[PatternResponse]
    total: int


class DetectPatternsRequest(BaseModel):
    dry_run: bool = Field(False, description="Detect without storing")


class DetectPatternsResponse(BaseModel):
    success: bool
    message: str
    saved: bool = False
    patterns: list[PatternResponse] = []
