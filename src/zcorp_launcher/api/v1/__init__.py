# src/zcorp_launcher/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    deploy_router,
    system_router,
    tokens_router,
)

__all__ = [
    "auth_router",
    "deploy_router",
    "system_router",
    "tokens_router",
]
