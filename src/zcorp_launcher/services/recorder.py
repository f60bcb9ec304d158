"""Atomic persistence of completed deployments."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import Insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from zcorp_launcher.db.time import utcnow
from zcorp_launcher.models import Deployment, UserSession
from zcorp_launcher.models.deployment import DEPLOYMENT_STATUS_COMPLETED

logger = logging.getLogger(__name__)


class RecordingError(RuntimeError):
    """Raised when a deployment could not be written to the store."""


class DuplicateDeploymentError(RecordingError):
    """Raised when a deployment id has already been recorded."""


@dataclass(frozen=True)
class DeploymentRecord:
    id: str
    token_address: str
    deployed_by: str
    tx_hash: str
    token_config: dict[str, Any]
    status: str = DEPLOYMENT_STATUS_COMPLETED
    created_at: datetime = field(default_factory=utcnow)


def _session_upsert(dialect_name: str, address: str, balance: str, now: datetime) -> Insert | None:
    """Build ``INSERT ... ON CONFLICT`` that increments the count server-side."""
    if dialect_name == "postgresql":
        insert = postgresql.insert
    elif dialect_name == "sqlite":
        insert = sqlite.insert
    else:
        return None

    stmt = insert(UserSession).values(
        user_address=address,
        last_known_balance=balance,
        last_verified_at=now,
        deployment_count=1,
    )
    return stmt.on_conflict_do_update(
        index_elements=[UserSession.user_address],
        set_={
            "last_known_balance": stmt.excluded.last_known_balance,
            "last_verified_at": stmt.excluded.last_verified_at,
            "deployment_count": UserSession.deployment_count + 1,
        },
    )


class OutcomeRecorder:
    """Write the deployment row and bump the user's session in one transaction."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def record(self, deployment: DeploymentRecord, balance_at_verification: int) -> None:
        """Persist ``deployment`` exactly once.

        Raises:
            DuplicateDeploymentError: If ``deployment.id`` is already stored.
            RecordingError: On any other storage failure; nothing is written.
        """
        try:
            with self._session_factory() as session, session.begin():
                session.add(
                    Deployment(
                        id=deployment.id,
                        token_address=deployment.token_address,
                        deployed_by=deployment.deployed_by,
                        tx_hash=deployment.tx_hash,
                        token_config=deployment.token_config,
                        status=deployment.status,
                        created_at=deployment.created_at,
                    )
                )
                session.flush()
                self._bump_session(session, deployment.deployed_by, str(balance_at_verification))
        except IntegrityError as exc:
            if self._exists(deployment.id):
                raise DuplicateDeploymentError(
                    f"Deployment {deployment.id} is already recorded"
                ) from exc
            raise RecordingError(f"Failed to record deployment {deployment.id}: {exc}") from exc
        except SQLAlchemyError as exc:
            raise RecordingError(f"Failed to record deployment {deployment.id}: {exc}") from exc

        logger.info("Deployment recorded: %s", deployment.id)

    def _bump_session(self, session: Session, address: str, balance: str) -> None:
        now = utcnow()
        stmt = _session_upsert(session.get_bind().dialect.name, address, balance, now)
        if stmt is not None:
            session.execute(stmt)
            return

        # Generic path: lock the row for the read-modify-write.
        current = session.execute(
            select(UserSession).where(UserSession.user_address == address).with_for_update()
        ).scalar_one_or_none()
        if current is None:
            session.add(
                UserSession(
                    user_address=address,
                    last_known_balance=balance,
                    last_verified_at=now,
                    deployment_count=1,
                )
            )
        else:
            current.last_known_balance = balance
            current.last_verified_at = now
            current.deployment_count = current.deployment_count + 1

    def _exists(self, deployment_id: str) -> bool:
        try:
            with self._session_factory() as session:
                return session.get(Deployment, deployment_id) is not None
        except SQLAlchemyError:
            return False
