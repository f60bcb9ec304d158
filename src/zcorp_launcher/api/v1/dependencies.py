"""Shared API dependencies wiring the deployment core."""

from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from zcorp_launcher.core.config import GateConfig
from zcorp_launcher.core.settings import settings
from zcorp_launcher.db.session import SessionLocal, get_db
from zcorp_launcher.services.authenticator import RequestAuthenticator
from zcorp_launcher.services.deployer import DeploymentError, TokenDeployer, get_deployer
from zcorp_launcher.services.eligibility import EligibilityChecker, LedgerClient
from zcorp_launcher.services.ledger import Web3Ledger, connect_web3
from zcorp_launcher.services.nonce_store import NonceStore, get_nonce_store
from zcorp_launcher.services.orchestrator import DeploymentOrchestrator
from zcorp_launcher.services.rate_limiter import RateLimiter
from zcorp_launcher.services.recorder import OutcomeRecorder

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_gate_config() -> GateConfig:
    return GateConfig.from_settings(settings)


def get_session_factory() -> Callable[[], Session]:
    """Factory used by components that manage their own transactions."""
    return SessionLocal


def get_nonce_store_dep() -> NonceStore:
    return get_nonce_store()


@lru_cache(maxsize=1)
def _reference_ledger() -> Web3Ledger:
    return Web3Ledger(
        connect_web3(settings.rpc_url, settings.rpc_timeout_seconds),
        settings.reference_token_address,
    )


def get_ledger() -> LedgerClient:
    return _reference_ledger()


def get_deployer_dep() -> TokenDeployer:
    """Return the token deployer or fail with 503 when it is not configured."""
    try:
        return get_deployer()
    except DeploymentError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(err),
        ) from err


GateConfigDep = Annotated[GateConfig, Depends(get_gate_config)]


def get_authenticator(
    config: GateConfigDep,
    nonce_store: Annotated[NonceStore, Depends(get_nonce_store_dep)],
) -> RequestAuthenticator:
    return RequestAuthenticator(config, nonce_store)


def get_eligibility_checker(
    config: GateConfigDep,
    ledger: Annotated[LedgerClient, Depends(get_ledger)],
) -> EligibilityChecker:
    return EligibilityChecker(config, ledger)


def get_recorder(
    session_factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
) -> OutcomeRecorder:
    return OutcomeRecorder(session_factory)


AuthenticatorDep = Annotated[RequestAuthenticator, Depends(get_authenticator)]
EligibilityDep = Annotated[EligibilityChecker, Depends(get_eligibility_checker)]


def get_orchestrator(
    config: GateConfigDep,
    authenticator: AuthenticatorDep,
    eligibility: EligibilityDep,
    deployer: Annotated[TokenDeployer, Depends(get_deployer_dep)],
    recorder: Annotated[OutcomeRecorder, Depends(get_recorder)],
) -> DeploymentOrchestrator:
    return DeploymentOrchestrator(
        config,
        authenticator,
        eligibility,
        deployer,
        recorder,
        explorer_base_url=settings.explorer_base_url,
    )


OrchestratorDep = Annotated[DeploymentOrchestrator, Depends(get_orchestrator)]


@lru_cache(maxsize=1)
def get_api_rate_limiter() -> RateLimiter:
    return RateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)


@lru_cache(maxsize=1)
def get_deploy_rate_limiter() -> RateLimiter:
    return RateLimiter(
        settings.deploy_rate_limit_max_requests, settings.deploy_rate_limit_window_seconds
    )


def _enforce(limiter: RateLimiter, request: Request, message: str) -> None:
    key = f"ip:{request.client.host if request.client else 'unknown'}"
    if not limiter.allow(key):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": message},
            headers={"Retry-After": str(limiter.retry_after(key))},
        )


def enforce_api_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_api_rate_limiter)],
) -> None:
    """Apply the per-IP limit shared by every endpoint."""
    _enforce(limiter, request, "Too many requests from this IP, please try again later.")


def enforce_deploy_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_deploy_rate_limiter)],
) -> None:
    """Apply the stricter per-IP limit on deployment endpoints."""
    _enforce(
        limiter,
        request,
        "Too many deployment attempts. Please wait an hour before trying again.",
    )
