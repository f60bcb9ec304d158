"""Value types passed between the deployment core and the HTTP layer.

Expected failures (stale timestamps, replays, thin balances, ...) travel as
values tagged with an `ErrorKind`; only infrastructure faults are raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced to callers."""

    EXPIRED = "expired"
    FUTURE_TIMESTAMP = "future_timestamp"
    REPLAYED = "replayed"
    INVALID_SIGNATURE = "invalid_signature"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    MESSAGE_MISMATCH = "message_mismatch"
    LEDGER_UNAVAILABLE = "ledger_unavailable"
    DEPLOYMENT_FAILED = "deployment_failed"
    RECORDED_PARTIALLY = "recorded_partially"

    @property
    def is_authentication_failure(self) -> bool:
        return self in _AUTH_FAILURES


_AUTH_FAILURES = frozenset(
    {
        ErrorKind.EXPIRED,
        ErrorKind.FUTURE_TIMESTAMP,
        ErrorKind.REPLAYED,
        ErrorKind.INVALID_SIGNATURE,
    }
)


@dataclass(frozen=True)
class AuthRequest:
    """A signed, time-bounded request as handed over by the HTTP layer."""

    caller_address: str
    signature: str
    message: str
    timestamp: int


@dataclass(frozen=True)
class AuthResult:
    ok: bool
    caller_address: str | None = None
    error: ErrorKind | None = None
    detail: str | None = None

    @classmethod
    def success(cls, caller_address: str) -> AuthResult:
        return cls(ok=True, caller_address=caller_address)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str) -> AuthResult:
        return cls(ok=False, error=error, detail=detail)


@dataclass(frozen=True)
class EligibilityResult:
    """Balance snapshot of an address against the configured minimum.

    ``balance`` and ``min_required`` are in the asset's smallest unit.
    """

    balance: int
    decimals: int
    is_qualified: bool
    min_required: int
    checked_at: datetime


class DeploymentStage(str, Enum):
    """Linear progress of a deployment request."""

    RECEIVED = "received"
    AUTHENTICATED = "authenticated"
    ELIGIBLE = "eligible"
    MESSAGE_VALIDATED = "message_validated"
    SUBMITTED = "submitted"
    RECORDED = "recorded"


class OutcomeStatus(str, Enum):
    RECORDED = "recorded"
    RECORDED_PARTIALLY = "recorded_partially"
    REJECTED = "rejected"


@dataclass
class DeploymentOutcome:
    """Terminal result of `DeploymentOrchestrator.deploy`.

    ``stage`` is the last state the request reached. A partially recorded
    outcome always carries the on-chain token address and transaction hash.
    """

    status: OutcomeStatus
    stage: DeploymentStage
    error: ErrorKind | None = None
    detail: str | None = None
    deployment_id: str | None = None
    token_address: str | None = None
    tx_hash: str | None = None
    explorer_url: str | None = None
    eligibility: EligibilityResult | None = field(default=None, repr=False)

    @property
    def succeeded_on_chain(self) -> bool:
        return self.status in (OutcomeStatus.RECORDED, OutcomeStatus.RECORDED_PARTIALLY)

    @classmethod
    def rejected(
        cls,
        stage: DeploymentStage,
        error: ErrorKind,
        detail: str,
        **extra: Any,
    ) -> DeploymentOutcome:
        return cls(status=OutcomeStatus.REJECTED, stage=stage, error=error, detail=detail, **extra)
