# main.py
"""Application entry point"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from config import settings
from services.logger_config import setup_logging
from api.endpoints import router
from services.factory import get_http_client

logger = logging.getLogger(settings.LOGGER_NAME)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    setup_logging()
    logger.info(f"Starting {settings.APP_TITLE} {settings.APP_VERSION}...")

    missing = settings.missing_credentials(for_chat=True)
    if missing:
        logger.warning(f"Missing configuration: {', '.join(missing)}; requests will be refused until set")

    yield

    if get_http_client.cache_info().currsize:
        await get_http_client().aclose()
        get_http_client.cache_clear()
    logger.info("Application shutdown complete")

app = FastAPI(
    title=settings.APP_TITLE,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.include_router(router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
