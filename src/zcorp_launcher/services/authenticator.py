"""Freshness, replay and signature checks for signed requests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from zcorp_launcher.core.config import GateConfig
from zcorp_launcher.core.results import AuthRequest, AuthResult, ErrorKind
from zcorp_launcher.core.security import normalize_address, verify_signature
from zcorp_launcher.services.nonce_store import NonceStore, derive_nonce

logger = logging.getLogger(__name__)

SignatureVerifier = Callable[[str, str, str], bool]


class RequestAuthenticator:
    """Validate that a signed request is fresh, unused and authentic.

    The nonce is consumed before the signature is checked and stays consumed
    when verification fails: a rejected payload cannot be resubmitted as-is,
    the caller has to sign again with a new timestamp.
    """

    def __init__(
        self,
        config: GateConfig,
        nonce_store: NonceStore,
        verifier: SignatureVerifier = verify_signature,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self._nonces = nonce_store
        self._verify = verifier
        self._clock = clock

    def authenticate(self, request: AuthRequest) -> AuthResult:
        """Run the checks in order and stop at the first failure."""
        now = int(self._clock())

        if now - request.timestamp > self.config.freshness_window_seconds:
            return self._reject(request, ErrorKind.EXPIRED, "Request expired. Please try again.")
        if request.timestamp > now + self.config.future_tolerance_seconds:
            return self._reject(
                request, ErrorKind.FUTURE_TIMESTAMP, "Request timestamp is in the future."
            )

        nonce = derive_nonce(request.timestamp, request.caller_address, request.message)
        if not self._nonces.accept(nonce):
            return self._reject(
                request,
                ErrorKind.REPLAYED,
                "Request already processed. Please create a new request.",
            )

        if not self._verify(request.caller_address, request.message, request.signature):
            return self._reject(request, ErrorKind.INVALID_SIGNATURE, "Invalid signature")

        try:
            caller = normalize_address(request.caller_address)
        except ValueError as exc:
            return self._reject(request, ErrorKind.INVALID_SIGNATURE, str(exc))

        logger.info("Authenticated request from %s (ts=%d)", caller, request.timestamp)
        return AuthResult.success(caller)

    @staticmethod
    def _reject(request: AuthRequest, error: ErrorKind, detail: str) -> AuthResult:
        logger.warning(
            "Rejected request from %s: %s (ts=%d)",
            request.caller_address,
            error.value,
            request.timestamp,
        )
        return AuthResult.failure(error, detail)
