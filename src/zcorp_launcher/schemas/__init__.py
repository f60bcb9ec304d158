# src/zcorp_launcher/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import EligibilityResponse, VerifySignatureRequest, VerifySignatureResponse
from .deploy import (
    DeployTokenRequest,
    DeployTokenResponse,
    SimulateRequest,
    SimulateResponse,
    TokenConfig,
)
from .tokens import DeploymentDetail, DeploymentHistoryResponse, UserStats

__all__ = [
    "EligibilityResponse", "VerifySignatureRequest", "VerifySignatureResponse",
    "DeployTokenRequest", "DeployTokenResponse",
    "SimulateRequest", "SimulateResponse",
    "TokenConfig",
    "DeploymentDetail", "DeploymentHistoryResponse", "UserStats",
]
