"""
Stream Cipher API - FastAPI application entry point.

Resolves playable stream URLs from a video platform's player responses:
extracts the signature decipher and n-transform functions from the player
script, applies them to every format, and picks the best format for the
requested media type.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .routes.api import router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Stream Cipher API starting up...")

    settings = get_settings()
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Script timeout: {settings.script_timeout}s, decipher workers: {settings.decipher_workers}")

    from .core.invoker import get_invoker

    invoker = get_invoker()
    runtime = invoker.runtime_name
    if runtime:
        logger.info(f"JavaScript runtime: {runtime}")
    else:
        logger.warning("No JavaScript runtime found - URLs will not be deciphered")

    yield

    invoker.close()
    logger.info("Stream Cipher API shutting down...")


app = FastAPI(
    title="Stream Cipher API",
    description=(
        "Extracts the signature decipher and n-transform functions from a player "
        "script, resolves playable format URLs and selects the best format."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# CORS: use CORS_ORIGINS env (comma-separated) for explicit origins; empty = "*" without credentials
_origins = [o.strip() for o in get_settings().cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["*"],
    allow_credentials=bool(_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/", tags=["root"])
async def root():
    return {
        "name": "Stream Cipher API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "formats": "/api/formats",
            "video": "/api/video/{video_id}",
            "functions": "/api/functions",
            "health": "/api/health",
        },
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "streamcipher.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
