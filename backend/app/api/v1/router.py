from fastapi import APIRouter

from app.api.v1 import (
    users,
    metrics,
    baselines,
    patterns,
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(metrics.router, prefix="/metrics", tags=["metrics"])
api_router.include_router(baselines.router, prefix="/baselines", tags=["baselines"])
api_router.include_router(patterns.router, prefix="/patterns", tags=["patterns"])
