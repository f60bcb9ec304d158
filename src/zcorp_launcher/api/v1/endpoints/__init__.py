# src/zcorp_launcher/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .deploy import router as deploy_router
from .system import router as system_router
from .tokens import router as tokens_router

__all__ = [
    "auth_router",
    "deploy_router",
    "system_router",
    "tokens_router",
]
