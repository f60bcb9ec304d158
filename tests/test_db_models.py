from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from zcorp_launcher.models import Deployment, UsedNonce, UserSession

USER = "0x1234567890123456789012345678901234567890"


def test_deployment_defaults(db_session: Session) -> None:
    deployment = Deployment(
        id="deployment-0001",
        token_address="0x" + "a" * 40,
        deployed_by=USER,
        tx_hash="0x" + "b" * 64,
        token_config={"name": "Alpha", "symbol": "ALPHA", "pool": {"positions": "Standard"}},
    )
    db_session.add(deployment)
    db_session.commit()
    db_session.refresh(deployment)

    assert deployment.status == "pending"
    assert deployment.created_at is not None
    assert deployment.token_name == "Alpha"
    assert deployment.token_symbol == "ALPHA"
    assert deployment.token_config["pool"] == {"positions": "Standard"}


def test_user_session_stores_large_balances(db_session: Session) -> None:
    balance = str(2**256 - 1)
    db_session.add(UserSession(user_address=USER, last_known_balance=balance))
    db_session.commit()

    stored = db_session.get(UserSession, USER)
    assert stored is not None
    assert stored.last_known_balance == balance
    assert stored.deployment_count == 0


def test_used_nonce_is_unique(db_session: Session) -> None:
    db_session.add(UsedNonce(nonce="1700000000-0xabc-hello", issued_at=1_700_000_000))
    db_session.commit()
    db_session.expunge_all()

    db_session.add(UsedNonce(nonce="1700000000-0xabc-hello", issued_at=1_700_000_000))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
