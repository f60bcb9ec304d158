# src/zcorp_launcher/api/v1/endpoints/auth.py
"""Holder verification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Path, status

from zcorp_launcher.api.v1.dependencies import AuthenticatorDep, EligibilityDep
from zcorp_launcher.core.results import AuthRequest
from zcorp_launcher.core.security import normalize_address
from zcorp_launcher.schemas.auth import (
    EligibilityResponse,
    VerifySignatureRequest,
    VerifySignatureResponse,
)
from zcorp_launcher.schemas.common import ADDRESS_PATTERN
from zcorp_launcher.services.eligibility import LedgerUnavailableError

router = APIRouter(prefix="/auth", tags=["authentication"])


def _ledger_unavailable(err: LedgerUnavailableError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"error": "Failed to verify reference balance", "details": str(err)},
    )


@router.get("/verify-balance/{address}", response_model=EligibilityResponse)
def verify_balance(
    eligibility: EligibilityDep,
    address: str = Path(..., pattern=ADDRESS_PATTERN),
) -> EligibilityResponse:
    """Report whether ``address`` holds enough of the reference token to deploy."""
    try:
        result = eligibility.check_eligibility(normalize_address(address))
    except LedgerUnavailableError as err:
        raise _ledger_unavailable(err) from err
    return EligibilityResponse.from_result(result)


@router.post("/verify-signature", response_model=VerifySignatureResponse)
def verify_signature(
    payload: VerifySignatureRequest,
    authenticator: AuthenticatorDep,
    eligibility: EligibilityDep,
) -> VerifySignatureResponse:
    """Authenticate a signed holder proof and check the signer's balance."""
    auth = authenticator.authenticate(
        AuthRequest(
            caller_address=payload.user_address,
            signature=payload.signature,
            message=payload.message,
            timestamp=payload.timestamp,
        )
    )
    if not auth.ok:
        assert auth.error is not None
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "success": False,
                "error": auth.error.value,
                "details": auth.detail,
                "isQualified": False,
            },
        )
    assert auth.caller_address is not None

    try:
        result = eligibility.check_eligibility(auth.caller_address)
    except LedgerUnavailableError as err:
        raise _ledger_unavailable(err) from err
    if not result.is_qualified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "success": False,
                "error": "insufficient_balance",
                "details": "Insufficient balance of the reference token to deploy.",
                "isQualified": False,
            },
        )

    return VerifySignatureResponse(
        success=True,
        user_address=auth.caller_address,
        balance=str(result.balance),
        decimals=result.decimals,
        is_qualified=True,
    )
