"""Explicit configuration handed to the deployment core.

The core services never read process-wide settings themselves. Build a
`GateConfig` once (usually with `GateConfig.from_settings`) and inject it.

Example:
    from zcorp_launcher.core.config import GateConfig
    config = GateConfig(freshness_window_seconds=120)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zcorp_launcher.core.settings import Settings


@dataclass(frozen=True)
class GateConfig:
    """Windows and thresholds used by the authenticator, checker and orchestrator.

    Attributes:
        freshness_window_seconds: Maximum age of a request timestamp.
        future_tolerance_seconds: Accepted forward clock skew.
        nonce_max_age_seconds: How long a consumed nonce stays resident.
        min_balance_fraction: Minimum holding, in whole units of the reference asset.
        deploy_action_tag: Action tag expected inside signed deployment messages.
        record_attempts: How many times a local recording is attempted.
    """

    freshness_window_seconds: int = 300
    future_tolerance_seconds: int = 60
    nonce_max_age_seconds: int = 600
    min_balance_fraction: Decimal = Decimal("0.01")
    deploy_action_tag: str = "deploy_token_as_zcorp"
    record_attempts: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> GateConfig:
        return cls(
            freshness_window_seconds=settings.freshness_window_seconds,
            future_tolerance_seconds=settings.future_tolerance_seconds,
            nonce_max_age_seconds=settings.nonce_max_age_seconds,
            min_balance_fraction=settings.min_balance_fraction,
            deploy_action_tag=settings.deploy_action_tag,
            record_attempts=settings.record_attempts,
        )
