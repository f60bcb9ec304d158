"""Reference-asset balance checks gating deployments."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from fractions import Fraction
from typing import Protocol

from zcorp_launcher.core.config import GateConfig
from zcorp_launcher.core.results import EligibilityResult
from zcorp_launcher.db.time import utcnow

logger = logging.getLogger(__name__)


class LedgerUnavailableError(RuntimeError):
    """Raised when the ledger could not answer a balance or decimals read."""


class LedgerClient(Protocol):
    """Read-only view of the reference asset."""

    def read_balance(self, address: str) -> int: ...

    def read_decimals(self) -> int: ...


def minimum_balance(decimals: int, fraction: Fraction) -> int:
    """Express ``fraction`` whole units in the asset's smallest unit.

    Rounds up, so an asset with fewer decimals than the fraction needs still
    requires at least one smallest unit rather than zero.
    """
    return max(1, math.ceil(fraction * 10**decimals))


class EligibilityChecker:
    """Compare an address's reference-asset balance with the configured minimum."""

    def __init__(
        self,
        config: GateConfig,
        ledger: LedgerClient,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self._ledger = ledger
        self._clock = clock
        self._fraction = Fraction(config.min_balance_fraction)

    def check_eligibility(self, address: str) -> EligibilityResult:
        """Read balance and decimals in parallel and evaluate the threshold.

        Raises:
            LedgerUnavailableError: If either read fails or returns nonsense.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="ledger") as pool:
            balance_future = pool.submit(self._ledger.read_balance, address)
            decimals_future = pool.submit(self._ledger.read_decimals)
            try:
                balance = int(balance_future.result())
                decimals = int(decimals_future.result())
            except Exception as exc:
                logger.warning("Ledger read failed for %s: %s", address, exc)
                raise LedgerUnavailableError(f"Failed to read reference balance: {exc}") from exc

        if decimals < 0:
            raise LedgerUnavailableError(f"Ledger reported negative decimals ({decimals})")
        if Fraction(10) ** -decimals > self._fraction:
            logger.warning(
                "Reference asset has %d decimals; minimum clamps to one smallest unit", decimals
            )

        min_required = minimum_balance(decimals, self._fraction)
        return EligibilityResult(
            balance=balance,
            decimals=decimals,
            is_qualified=balance >= min_required,
            min_required=min_required,
            checked_at=self._clock(),
        )
