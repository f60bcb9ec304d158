# src/zcorp_launcher/main.py
"""Main entry point for the ZCORP Token Launcher API."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from zcorp_launcher.api.v1 import auth_router, deploy_router, system_router, tokens_router
from zcorp_launcher.api.v1.dependencies import enforce_api_rate_limit
from zcorp_launcher.core.settings import settings
from zcorp_launcher.db.session import create_tables
from zcorp_launcher.services.nonce_store import NonceStoreError, NonceSweeper, get_nonce_store

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="ZCORP Token Launcher API",
    description="Token deployments gated by proof of ZCORP ownership",
    version=settings.app_version,
    dependencies=[Depends(enforce_api_rate_limit)],
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=["X-Total-Count"],
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api")
app.include_router(deploy_router, prefix="/api")
app.include_router(tokens_router, prefix="/api")
app.include_router(system_router)


@app.exception_handler(NonceStoreError)
async def nonce_store_unavailable(request: Request, exc: NonceStoreError) -> JSONResponse:
    logger.error("Replay protection unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Replay protection unavailable, please retry later"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    sweeper: NonceSweeper | None = None
    if settings.nonce_backend != "redis":
        sweeper = NonceSweeper(
            get_nonce_store(),
            settings.nonce_max_age_seconds,
            settings.nonce_sweep_interval_seconds,
        )
        await sweeper.start()
    app.state.nonce_sweeper = sweeper
    logger.info(
        "%s started (chain %d, environment %s, nonce backend %s)",
        settings.app_name,
        settings.chain_id,
        settings.environment,
        settings.nonce_backend,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    sweeper: NonceSweeper | None = getattr(app.state, "nonce_sweeper", None)
    if sweeper:
        await sweeper.stop()


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("zcorp_launcher.main:app", host="0.0.0.0", port=3003, reload=settings.debug)
