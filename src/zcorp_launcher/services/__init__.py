# src/zcorp_launcher/services/__init__.py
"""Business logic services for the ZCORP Token Launcher."""

from .authenticator import RequestAuthenticator
from .eligibility import EligibilityChecker
from .nonce_store import DatabaseNonceStore, InMemoryNonceStore, RedisNonceStore
from .orchestrator import DeploymentOrchestrator
from .recorder import OutcomeRecorder

__all__ = [
    "RequestAuthenticator",
    "EligibilityChecker",
    "InMemoryNonceStore",
    "RedisNonceStore",
    "DatabaseNonceStore",
    "DeploymentOrchestrator",
    "OutcomeRecorder",
]
