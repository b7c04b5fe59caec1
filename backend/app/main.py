import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.database import engine, Base, async_session_maker
from app.services.analytics_config import load_analytics_config_from_yaml
from app.services.orchestrator import RefreshOrchestrator

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on startup
    async with engine.begin() as conn:
        # Import all models to register them with Base
        from app import models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)

    if settings.analytics_config_path:
        load_analytics_config_from_yaml(settings.analytics_config_path)
        logger.info(f"Loaded analytics config from {settings.analytics_config_path}")

    app.state.orchestrator = RefreshOrchestrator(
        async_session_maker,
        timeout_seconds=settings.refresh_timeout_seconds,
    )
    yield
    # Cleanup on shutdown
    await app.state.orchestrator.shutdown()
    await engine.dispose()


app = FastAPI(
    title="Health Signals API",
    description="Daily wearable metrics ingestion with personal baselines and pattern detection",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.environment}


# API routers
from app.api.v1.router import api_router

app.include_router(api_router, prefix="/api/v1")
