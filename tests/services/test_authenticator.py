from __future__ import annotations

import pytest
from eth_account.signers.local import LocalAccount

from tests.conftest import NOW, FakeClock, sign_text
from zcorp_launcher.core.config import GateConfig
from zcorp_launcher.core.results import AuthRequest, ErrorKind
from zcorp_launcher.services.authenticator import RequestAuthenticator
from zcorp_launcher.services.nonce_store import InMemoryNonceStore


@pytest.fixture()
def authenticator(
    gate_config: GateConfig, nonce_store: InMemoryNonceStore, clock: FakeClock
) -> RequestAuthenticator:
    return RequestAuthenticator(gate_config, nonce_store, clock=clock)


def _signed(account: LocalAccount, timestamp: int, message: str = "prove ownership") -> AuthRequest:
    return AuthRequest(
        caller_address=account.address,
        signature=sign_text(account, message),
        message=message,
        timestamp=timestamp,
    )


@pytest.mark.parametrize(
    ("offset", "expected"),
    [
        (-300, None),
        (-301, ErrorKind.EXPIRED),
        (60, None),
        (61, ErrorKind.FUTURE_TIMESTAMP),
        (0, None),
    ],
)
def test_freshness_window_boundaries(
    authenticator: RequestAuthenticator,
    holder: LocalAccount,
    offset: int,
    expected: ErrorKind | None,
) -> None:
    result = authenticator.authenticate(_signed(holder, NOW + offset))

    assert result.ok is (expected is None)
    assert result.error == expected


def test_success_returns_checksummed_caller(
    authenticator: RequestAuthenticator, holder: LocalAccount
) -> None:
    request = _signed(holder, NOW)
    lowered = AuthRequest(
        caller_address=holder.address.lower(),
        signature=request.signature,
        message=request.message,
        timestamp=request.timestamp,
    )

    result = authenticator.authenticate(lowered)

    assert result.ok
    assert result.caller_address == holder.address


def test_replayed_request_is_rejected(
    authenticator: RequestAuthenticator, holder: LocalAccount
) -> None:
    request = _signed(holder, NOW)

    assert authenticator.authenticate(request).ok
    replay = authenticator.authenticate(request)

    assert not replay.ok
    assert replay.error is ErrorKind.REPLAYED


def test_replay_with_different_address_case_is_rejected(
    authenticator: RequestAuthenticator, holder: LocalAccount
) -> None:
    request = _signed(holder, NOW)
    assert authenticator.authenticate(request).ok

    variant = AuthRequest(
        caller_address=holder.address.lower(),
        signature=request.signature,
        message=request.message,
        timestamp=request.timestamp,
    )
    assert authenticator.authenticate(variant).error is ErrorKind.REPLAYED


def test_signature_from_another_account_is_invalid(
    authenticator: RequestAuthenticator, holder: LocalAccount, other_account: LocalAccount
) -> None:
    message = "prove ownership"
    request = AuthRequest(
        caller_address=holder.address,
        signature=sign_text(other_account, message),
        message=message,
        timestamp=NOW,
    )

    result = authenticator.authenticate(request)

    assert result.error is ErrorKind.INVALID_SIGNATURE


def test_failed_signature_still_consumes_nonce(
    authenticator: RequestAuthenticator,
    nonce_store: InMemoryNonceStore,
    holder: LocalAccount,
    other_account: LocalAccount,
) -> None:
    message = "prove ownership"
    forged = AuthRequest(
        caller_address=holder.address,
        signature=sign_text(other_account, message),
        message=message,
        timestamp=NOW,
    )
    assert authenticator.authenticate(forged).error is ErrorKind.INVALID_SIGNATURE
    assert len(nonce_store) == 1

    genuine = _signed(holder, NOW, message)
    assert authenticator.authenticate(genuine).error is ErrorKind.REPLAYED


def test_stale_request_does_not_consume_nonce(
    authenticator: RequestAuthenticator, nonce_store: InMemoryNonceStore, holder: LocalAccount
) -> None:
    authenticator.authenticate(_signed(holder, NOW - 301))

    assert len(nonce_store) == 0


def test_malformed_signature_is_invalid(
    authenticator: RequestAuthenticator, holder: LocalAccount
) -> None:
    request = AuthRequest(
        caller_address=holder.address,
        signature="0x1234",
        message="prove ownership",
        timestamp=NOW,
    )

    assert authenticator.authenticate(request).error is ErrorKind.INVALID_SIGNATURE


def test_custom_window_is_honoured(holder: LocalAccount) -> None:
    config = GateConfig(freshness_window_seconds=10, future_tolerance_seconds=0)
    authenticator = RequestAuthenticator(config, InMemoryNonceStore(), clock=FakeClock())

    assert authenticator.authenticate(_signed(holder, NOW - 11)).error is ErrorKind.EXPIRED
    assert authenticator.authenticate(_signed(holder, NOW + 1)).error is (
        ErrorKind.FUTURE_TIMESTAMP
    )
    assert authenticator.authenticate(_signed(holder, NOW - 10)).ok
