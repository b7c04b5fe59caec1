from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.analytics import (
    DetectPatternsRequest,
    DetectPatternsResponse,
    PatternListResponse,
    PatternResponse,
)
from app.services.errors import DataUnavailable, PersistenceFailure
from app.services.pattern_service import PatternService

router = APIRouter()


@router.get("", response_model=PatternListResponse)
async def list_patterns(
    current_user: CurrentUser,
    db: DbSession,
) -> PatternListResponse:
    """List the user's active patterns, most confident first."""
    try:
        patterns = await PatternService(db).get_active_patterns(current_user.id)
    except DataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return PatternListResponse(
        patterns=[PatternResponse.model_validate(p) for p in patterns],
        total=len(patterns),
    )


@router.post("/detect", response_model=DetectPatternsResponse)
async def detect_patterns(
    current_user: CurrentUser,
    db: DbSession,
    request: DetectPatternsRequest | None = None,
) -> DetectPatternsResponse:
    """
    Run pattern detection now, bypassing the daily gate.

    With `dry_run` the detected patterns are returned but not stored.
    """
    request = request or DetectPatternsRequest()
    service = PatternService(db)

    try:
        if request.dry_run:
            patterns = await service.detect_patterns(current_user.id)
            saved = False
        else:
            patterns = await service.detect_patterns_if_needed(current_user.id, force=True) or []
            saved = True
    except DataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return DetectPatternsResponse(
        success=True,
        message=f"Detected {len(patterns)} patterns" + ("" if saved else " (not saved)"),
        saved=saved,
        patterns=[PatternResponse.model_validate(p) for p in patterns],
    )
