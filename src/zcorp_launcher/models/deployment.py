# src/zcorp_launcher/models/deployment.py
"""SQLAlchemy models for recorded deployments and per-user sessions."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from zcorp_launcher.db.session import Base
from zcorp_launcher.db.time import utcnow

DEPLOYMENT_STATUS_PENDING = "pending"
DEPLOYMENT_STATUS_COMPLETED = "completed"
DEPLOYMENT_STATUS_FAILED = "failed"

DEPLOYMENT_STATUSES = (
    DEPLOYMENT_STATUS_PENDING,
    DEPLOYMENT_STATUS_COMPLETED,
    DEPLOYMENT_STATUS_FAILED,
)


class Deployment(Base):
    """A token deployment that reached the chain.

    The id is minted before the transaction is submitted, so it doubles as
    the idempotency key for recording.
    """

    __tablename__ = "deployments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    token_address: Mapped[str] = mapped_column(String(42), nullable=False)
    deployed_by: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    tx_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    token_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # Only "completed" is written today; the others are reserved for async confirmation.
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=DEPLOYMENT_STATUS_PENDING, index=True
    )

    @property
    def token_name(self) -> str | None:
        return self.token_config.get("name")

    @property
    def token_symbol(self) -> str | None:
        return self.token_config.get("symbol")


class UserSession(Base):
    """Per-address bookkeeping refreshed on every successful deployment."""

    __tablename__ = "user_sessions"

    user_address: Mapped[str] = mapped_column(String(42), primary_key=True)
    # uint256 balances do not fit in BIGINT.
    last_known_balance: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    deployment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
