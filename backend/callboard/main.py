"""
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callboard.api.v1.endpoints import health
from callboard.api.v1.routes import api_router
from callboard.core.config import get_settings
from callboard.core.tenant_middleware import OrganizationMiddleware

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan - startup and shutdown events.

    Startup validates configuration; missing settings only stop the
    process in production.
    """
    logger.info("Starting Callboard API...")

    strict_validation = settings.environment == "production"

    try:
        from callboard.core.validation import validate_config_on_startup
        validate_config_on_startup(strict=strict_validation)
    except RuntimeError as e:
        if strict_validation:
            logger.error(f"Startup failed: {e}")
            raise
        logger.warning(f"Configuration warnings (non-fatal in {settings.environment}): {e}")

    logger.info("Callboard API started successfully")

    yield

    logger.info("Callboard API shutdown complete")


app = FastAPI(
    title="Callboard",
    description="Campaign dashboard backend for AI voice calling",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# MULTI-TENANT: organization id from the bearer token
app.add_middleware(OrganizationMiddleware)

app.include_router(api_router, prefix=settings.api_prefix)

# Unprefixed root and health for load balancers
app.include_router(health.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
