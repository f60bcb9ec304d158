# src/zcorp_launcher/api/v1/endpoints/deploy.py
"""Token deployment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from zcorp_launcher.api.v1.dependencies import (
    GateConfigDep,
    OrchestratorDep,
    enforce_deploy_rate_limit,
)
from zcorp_launcher.core.results import AuthRequest, DeploymentOutcome, ErrorKind, OutcomeStatus
from zcorp_launcher.core.security import normalize_address
from zcorp_launcher.schemas.deploy import (
    DeployTokenRequest,
    DeployTokenResponse,
    SimulateRequest,
    SimulateResponse,
)
from zcorp_launcher.services.deployer import DeploymentError
from zcorp_launcher.services.eligibility import LedgerUnavailableError
from zcorp_launcher.services.messages import create_deployment_message

router = APIRouter(
    prefix="/deploy",
    tags=["deployment"],
    dependencies=[Depends(enforce_deploy_rate_limit)],
)

_REJECTION_STATUS: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.INSUFFICIENT_BALANCE: (status.HTTP_403_FORBIDDEN, "Insufficient balance"),
    ErrorKind.MESSAGE_MISMATCH: (status.HTTP_400_BAD_REQUEST, "Invalid message format"),
    ErrorKind.LEDGER_UNAVAILABLE: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Failed to verify reference balance",
    ),
    ErrorKind.DEPLOYMENT_FAILED: (status.HTTP_502_BAD_GATEWAY, "Token deployment failed"),
}


def _rejection(outcome: DeploymentOutcome) -> HTTPException:
    assert outcome.error is not None
    if outcome.error.is_authentication_failure:
        code, message = status.HTTP_401_UNAUTHORIZED, "Authentication failed"
    else:
        code, message = _REJECTION_STATUS[outcome.error]
    detail: dict[str, object] = {
        "error": message,
        "kind": outcome.error.value,
        "details": outcome.detail,
    }
    if outcome.tx_hash:
        detail["txHash"] = outcome.tx_hash
    return HTTPException(status_code=code, detail=detail)


@router.post("/token", response_model=DeployTokenResponse)
def deploy_token(
    payload: DeployTokenRequest,
    response: Response,
    orchestrator: OrchestratorDep,
    config: GateConfigDep,
) -> DeployTokenResponse:
    """Deploy a token for a verified holder of the reference token."""
    message = payload.message or create_deployment_message(
        payload.token_config,
        payload.user_address,
        payload.timestamp,
        config.deploy_action_tag,
    )
    outcome = orchestrator.deploy(
        payload.token_config,
        AuthRequest(
            caller_address=payload.user_address,
            signature=payload.signature,
            message=message,
            timestamp=payload.timestamp,
        ),
    )
    if outcome.status is OutcomeStatus.REJECTED:
        raise _rejection(outcome)

    partial = outcome.status is OutcomeStatus.RECORDED_PARTIALLY
    if partial:
        response.status_code = status.HTTP_202_ACCEPTED
    return DeployTokenResponse(
        success=True,
        status=outcome.status.value,
        deployment_id=outcome.deployment_id,
        token_address=outcome.token_address,
        tx_hash=outcome.tx_hash,
        explorer_url=outcome.explorer_url,
        reconciliation_required=partial,
    )


@router.post("/simulate", response_model=SimulateResponse)
def simulate_deployment(
    payload: SimulateRequest,
    orchestrator: OrchestratorDep,
) -> SimulateResponse:
    """Dry-run a deployment for a qualifying address without a signature."""
    try:
        eligibility, predicted = orchestrator.simulate(
            payload.token_config, normalize_address(payload.user_address)
        )
    except LedgerUnavailableError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "Failed to verify reference balance", "details": str(err)},
        ) from err
    except DeploymentError as err:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "Simulation failed", "details": str(err)},
        ) from err

    if predicted is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Insufficient balance for simulation",
                "balance": str(eligibility.balance),
                "minRequired": str(eligibility.min_required),
            },
        )
    return SimulateResponse(success=True, estimated_address=predicted)
