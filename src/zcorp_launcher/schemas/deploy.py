"""Token configuration and deployment request schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from .common import ADDRESS_PATTERN, HEX_PATTERN, CamelModel


class PoolConfig(CamelModel):
    """Liquidity pool the new token is paired into."""

    paired_token: str = Field(..., pattern=ADDRESS_PATTERN, description="Paired token address")
    positions: Literal["Standard", "Project"] = Field(..., description="Position layout")


class VaultConfig(CamelModel):
    percentage: float = Field(..., ge=0, le=30, description="Share of supply vaulted (0-30)")
    lockup_duration: int = Field(..., ge=0, description="Lockup in seconds")
    vesting_duration: int = Field(..., ge=0, description="Vesting in seconds")


class AirdropConfig(CamelModel):
    merkle_root: str = Field(..., pattern=r"^0x[a-fA-F0-9]{64}$")
    amount: float = Field(..., ge=0)
    lockup_duration: int = Field(..., ge=0)
    vesting_duration: int = Field(..., ge=0)


class TokenConfig(CamelModel):
    """User-chosen configuration of the token to deploy."""

    name: str = Field(..., min_length=1, max_length=50)
    symbol: str = Field(..., min_length=1, max_length=10, pattern=r"^[A-Z0-9]+$")
    image: str = Field(..., pattern=r"^https?://\S+$", description="Token image URL")
    description: str | None = Field(None, max_length=500)
    pool: PoolConfig
    vault: VaultConfig | None = None
    airdrop: AirdropConfig | None = None
    fees: Literal["DynamicBasic", "StaticBasic"] | dict[str, Any] | None = None

    def wire_dict(self) -> dict[str, Any]:
        """Return the camelCase, null-free form that clients sign."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DeployTokenRequest(CamelModel):
    """Body of ``POST /api/deploy/token``.

    ``message`` is optional: when omitted the canonical message is rebuilt
    from the other fields.
    """

    token_config: TokenConfig
    signature: str = Field(..., pattern=HEX_PATTERN)
    user_address: str = Field(..., pattern=ADDRESS_PATTERN)
    timestamp: int
    message: str | None = None


class DeployTokenResponse(CamelModel):
    success: bool
    status: str
    deployment_id: str | None = None
    token_address: str | None = None
    tx_hash: str | None = None
    explorer_url: str | None = None
    reconciliation_required: bool = False


class SimulateRequest(CamelModel):
    token_config: TokenConfig
    user_address: str = Field(..., pattern=ADDRESS_PATTERN)


class SimulateResponse(CamelModel):
    success: bool
    estimated_address: str | None = None
