from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.analytics import (
    BaselineListResponse,
    BaselineResponse,
    ComputeBaselinesRequest,
    ComputeBaselinesResponse,
)
from app.services.baseline_service import BaselineService
from app.services.errors import DataUnavailable, PersistenceFailure

router = APIRouter()


@router.get("", response_model=BaselineListResponse)
async def get_baselines(
    current_user: CurrentUser,
    db: DbSession,
) -> BaselineListResponse:
    """Get the user's stored baselines."""
    try:
        baselines = await BaselineService(db).get_cached_baselines(current_user.id)
    except DataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if baselines is None:
        return BaselineListResponse(
            baselines=None,
            message="No baselines computed yet",
        )
    return BaselineListResponse(
        baselines=[BaselineResponse.model_validate(b) for b in baselines],
    )


@router.post("/compute", response_model=ComputeBaselinesResponse)
async def compute_baselines(
    current_user: CurrentUser,
    db: DbSession,
    request: ComputeBaselinesRequest | None = None,
) -> ComputeBaselinesResponse:
    """
    Compute baselines on demand.

    - `dry_run`: return the computation without storing it
    - `force`: recompute even if baselines already ran today
    """
    request = request or ComputeBaselinesRequest()
    service = BaselineService(db)

    try:
        if request.dry_run:
            baselines = await service.compute_baselines(current_user.id)
            return ComputeBaselinesResponse(
                success=True,
                message=f"Computed {len(baselines)} baselines (not saved)",
                baselines=[BaselineResponse.model_validate(b) for b in baselines],
            )

        saved = await service.update_baselines_if_needed(current_user.id, force=request.force)
        stored = await service.get_cached_baselines(current_user.id) or []
    except DataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if saved:
        message = f"Updated {len(stored)} baselines"
    elif stored:
        message = "Baselines already computed today"
    else:
        message = "No metric data to compute baselines from"

    return ComputeBaselinesResponse(
        success=True,
        message=message,
        saved=saved,
        baselines=[BaselineResponse.model_validate(b) for b in stored],
    )
