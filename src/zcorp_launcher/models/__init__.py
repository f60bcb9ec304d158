# src/zcorp_launcher/models/__init__.py
"""SQLAlchemy models for the ZCORP Token Launcher."""

from .deployment import Deployment, UserSession
from .replay_protection import UsedNonce

__all__ = [
    "Deployment",
    "UserSession",
    "UsedNonce",
]
