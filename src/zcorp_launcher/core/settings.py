"""Application settings and configuration.

This module defines all configuration options for the ZCORP Token Launcher.
Settings are loaded from environment variables with sensible defaults.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
_PRIVATE_KEY_PATTERN = r"^0x[a-fA-F0-9]{64}$"

# Default funded accounts of local development chains (Hardhat, Anvil).
_DEVELOPMENT_KEYS = frozenset(
    {
        "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80",
        "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d",
    }
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="ZCORP Token Launcher", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: Literal["development", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./zcorp.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Replay protection backend
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    nonce_backend: Literal["memory", "redis", "database"] = Field(
        default="memory", alias="NONCE_BACKEND"
    )

    # Blockchain
    rpc_url: str = Field(default="https://mainnet.base.org", alias="RPC_URL")
    chain_id: int = Field(default=8453, alias="CHAIN_ID")
    reference_token_address: str = Field(
        alias="ZCORP_TOKEN_ADDRESS", pattern=_ADDRESS_PATTERN
    )
    deployer_private_key: str | None = Field(
        default=None, alias="ZCORP_PRIVATE_KEY", pattern=_PRIVATE_KEY_PATTERN
    )
    factory_address: str | None = Field(
        default=None, alias="TOKEN_FACTORY_ADDRESS", pattern=_ADDRESS_PATTERN
    )
    explorer_base_url: str = Field(default="https://basescan.org", alias="EXPLORER_BASE_URL")
    rpc_timeout_seconds: float = Field(default=10.0, alias="RPC_TIMEOUT_SECONDS")
    deploy_receipt_timeout_seconds: float = Field(
        default=120.0, alias="DEPLOY_RECEIPT_TIMEOUT_SECONDS"
    )

    # Request authentication and eligibility
    freshness_window_seconds: int = Field(default=300, ge=1, alias="FRESHNESS_WINDOW_SECONDS")
    future_tolerance_seconds: int = Field(default=60, ge=0, alias="FUTURE_TOLERANCE_SECONDS")
    nonce_max_age_seconds: int = Field(default=600, ge=1, alias="NONCE_MAX_AGE_SECONDS")
    nonce_sweep_interval_seconds: float = Field(
        default=60.0, alias="NONCE_SWEEP_INTERVAL_SECONDS"
    )
    min_balance_fraction: Decimal = Field(default=Decimal("0.01"), alias="MIN_BALANCE_FRACTION")
    deploy_action_tag: str = Field(default="deploy_token_as_zcorp", alias="DEPLOY_ACTION_TAG")
    record_attempts: int = Field(default=2, ge=1, alias="RECORD_ATTEMPTS")

    # Per-IP request limits
    rate_limit_max_requests: int = Field(default=100, ge=1, alias="RATE_LIMIT_MAX_REQUESTS")
    rate_limit_window_seconds: float = Field(
        default=900.0, gt=0, alias="RATE_LIMIT_WINDOW_SECONDS"
    )
    deploy_rate_limit_max_requests: int = Field(
        default=5, ge=1, alias="DEPLOY_RATE_LIMIT_MAX_REQUESTS"
    )
    deploy_rate_limit_window_seconds: float = Field(
        default=3600.0, gt=0, alias="DEPLOY_RATE_LIMIT_WINDOW_SECONDS"
    )

    # CORS configuration for web frontend access
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization", "X-Requested-With"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("min_balance_fraction")
    @classmethod
    def _positive_fraction(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("MIN_BALANCE_FRACTION must be greater than zero")
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> Settings:
        # A nonce must outlive every timestamp the authenticator still accepts.
        horizon = self.freshness_window_seconds + self.future_tolerance_seconds
        if self.nonce_max_age_seconds < horizon:
            raise ValueError(
                "NONCE_MAX_AGE_SECONDS must be at least "
                f"FRESHNESS_WINDOW_SECONDS + FUTURE_TOLERANCE_SECONDS ({horizon})"
            )

        if self.environment == "production":
            if (self.deployer_private_key or "").lower() in _DEVELOPMENT_KEYS:
                raise ValueError("Development private keys are not allowed in production")
            if "localhost" in self.frontend_url or "127.0.0.1" in self.frontend_url:
                logger.warning("Using localhost frontend URL in production")
        return self

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def cors_origins(self) -> list[str]:
        """Origins allowed to call the API from a browser."""
        origins = [self.frontend_url, "http://localhost:3000", "http://127.0.0.1:3000"]
        return list(dict.fromkeys(origins))


settings = Settings()  # type: ignore[call-arg]
