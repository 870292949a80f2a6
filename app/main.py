from __future__ import annotations

import logging
from fastapi import FastAPI

from app.core.config import settings
from app.core.context import build_context
from app.modules.api.router import router as api_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)
app.state.ctx = build_context(settings)

app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup():
    """Log configuration and start watching the backend."""
    logger.info(f"{settings.APP_NAME} starting")
    logger.info(f"AgroSmart API base URL: {settings.AGROSMART_API_BASE_URL}")
    logger.info(f"Health probe: {settings.AGROSMART_HEALTH_PATH} every {settings.AGROSMART_PROBE_INTERVAL}s "
                f"(timeout {settings.AGROSMART_PROBE_TIMEOUT}s)")
    await app.state.ctx.init()


@app.on_event("shutdown")
async def shutdown():
    """Stop polling and abandon in-flight probes."""
    logger.info("Stopping connectivity supervisor...")
    await app.state.ctx.teardown()


@app.get("/healthz")
def healthz():
    """Health check endpoint."""
    return {
        "ok": True,
        "app": settings.APP_NAME,
        "env": settings.APP_ENV,
        "backend_url": settings.AGROSMART_API_BASE_URL,
        "port": settings.AGROSMART_PORT,
    }
