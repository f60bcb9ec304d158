"""Authentication and eligibility schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from zcorp_launcher.core.results import EligibilityResult

from .common import ADDRESS_PATTERN, HEX_PATTERN, CamelModel


class VerifySignatureRequest(CamelModel):
    """Signed holder proof submitted to ``POST /api/auth/verify-signature``."""

    user_address: str = Field(..., pattern=ADDRESS_PATTERN)
    signature: str = Field(..., pattern=HEX_PATTERN)
    message: str = Field(..., min_length=1)
    timestamp: int


class EligibilityResponse(CamelModel):
    """Balance snapshot; amounts are decimal strings in the smallest unit."""

    balance: str
    decimals: int
    is_qualified: bool
    min_required: str
    last_checked: datetime

    @classmethod
    def from_result(cls, result: EligibilityResult) -> EligibilityResponse:
        return cls(
            balance=str(result.balance),
            decimals=result.decimals,
            is_qualified=result.is_qualified,
            min_required=str(result.min_required),
            last_checked=result.checked_at,
        )


class VerifySignatureResponse(CamelModel):
    success: bool
    user_address: str
    balance: str
    decimals: int
    is_qualified: bool
