"""Token-gated deployment workflow.

A request walks ``received -> authenticated -> eligible -> message_validated
-> submitted -> recorded``; any failed transition ends it as rejected. Once
the deployer has been called the chain may already carry the token, so from
that point on the outcome always reports the on-chain data, even when the
local record could not be written.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from zcorp_launcher.core.config import GateConfig
from zcorp_launcher.core.results import (
    AuthRequest,
    DeploymentOutcome,
    DeploymentStage,
    EligibilityResult,
    ErrorKind,
    OutcomeStatus,
)
from zcorp_launcher.schemas.deploy import TokenConfig
from zcorp_launcher.services.authenticator import RequestAuthenticator
from zcorp_launcher.services.deployer import DeploymentError, SubmittedDeployment, TokenDeployer
from zcorp_launcher.services.eligibility import EligibilityChecker, LedgerUnavailableError
from zcorp_launcher.services.messages import validate_message_binding
from zcorp_launcher.services.recorder import (
    DeploymentRecord,
    DuplicateDeploymentError,
    OutcomeRecorder,
    RecordingError,
)

logger = logging.getLogger(__name__)


def token_explorer_url(base_url: str, token_address: str) -> str:
    return f"{base_url.rstrip('/')}/token/{token_address}"


class DeploymentOrchestrator:
    """Run one deployment request end to end."""

    def __init__(
        self,
        config: GateConfig,
        authenticator: RequestAuthenticator,
        eligibility: EligibilityChecker,
        deployer: TokenDeployer,
        recorder: OutcomeRecorder,
        explorer_base_url: str = "https://basescan.org",
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self.config = config
        self._authenticator = authenticator
        self._eligibility = eligibility
        self._deployer = deployer
        self._recorder = recorder
        self._explorer_base_url = explorer_base_url
        self._new_id = id_factory

    def deploy(self, token_config: TokenConfig, request: AuthRequest) -> DeploymentOutcome:
        """Authenticate, gate, submit and record a deployment.

        Never raises for the expected failure kinds; the returned outcome
        carries the reason instead.
        """
        auth = self._authenticator.authenticate(request)
        if not auth.ok:
            assert auth.error is not None
            return DeploymentOutcome.rejected(
                DeploymentStage.RECEIVED, auth.error, auth.detail or "Authentication failed"
            )
        assert auth.caller_address is not None
        caller = auth.caller_address

        try:
            eligibility = self._eligibility.check_eligibility(caller)
        except LedgerUnavailableError as exc:
            return DeploymentOutcome.rejected(
                DeploymentStage.AUTHENTICATED, ErrorKind.LEDGER_UNAVAILABLE, str(exc)
            )
        if not eligibility.is_qualified:
            logger.warning(
                "Insufficient balance for %s: %d < %d",
                caller,
                eligibility.balance,
                eligibility.min_required,
            )
            return DeploymentOutcome.rejected(
                DeploymentStage.AUTHENTICATED,
                ErrorKind.INSUFFICIENT_BALANCE,
                "Insufficient balance of the reference token to deploy.",
                eligibility=eligibility,
            )

        mismatch = validate_message_binding(
            request.message,
            token_config,
            caller,
            request.timestamp,
            self.config.deploy_action_tag,
        )
        if mismatch is not None:
            logger.error(
                "Signed message does not match deployment request from %s: %s", caller, mismatch
            )
            return DeploymentOutcome.rejected(
                DeploymentStage.ELIGIBLE,
                ErrorKind.MESSAGE_MISMATCH,
                f"Invalid message format: {mismatch}",
                eligibility=eligibility,
            )

        deployment_id = self._new_id()
        logger.info(
            "Starting deployment %s for %s: %s (%s)",
            deployment_id,
            caller,
            token_config.name,
            token_config.symbol,
        )
        try:
            submitted = self._deployer.submit_deployment(token_config, caller, deployment_id)
        except DeploymentError as exc:
            logger.error("Deployment %s failed: %s", deployment_id, exc)
            return DeploymentOutcome.rejected(
                DeploymentStage.MESSAGE_VALIDATED,
                ErrorKind.DEPLOYMENT_FAILED,
                str(exc),
                deployment_id=deployment_id,
                tx_hash=exc.tx_hash,
                eligibility=eligibility,
            )
        except Exception as exc:
            logger.exception("Deployment %s failed unexpectedly", deployment_id)
            return DeploymentOutcome.rejected(
                DeploymentStage.MESSAGE_VALIDATED,
                ErrorKind.DEPLOYMENT_FAILED,
                f"Deployment failed: {exc}",
                deployment_id=deployment_id,
                eligibility=eligibility,
            )

        return self._record(deployment_id, caller, token_config, submitted, eligibility)

    def _record(
        self,
        deployment_id: str,
        caller: str,
        token_config: TokenConfig,
        submitted: SubmittedDeployment,
        eligibility: EligibilityResult,
    ) -> DeploymentOutcome:
        outcome = DeploymentOutcome(
            status=OutcomeStatus.RECORDED,
            stage=DeploymentStage.RECORDED,
            deployment_id=deployment_id,
            token_address=submitted.token_address,
            tx_hash=submitted.tx_hash,
            explorer_url=token_explorer_url(self._explorer_base_url, submitted.token_address),
            eligibility=eligibility,
        )
        record = DeploymentRecord(
            id=deployment_id,
            token_address=submitted.token_address,
            deployed_by=caller,
            tx_hash=submitted.tx_hash,
            token_config=token_config.wire_dict(),
        )

        last_error: RecordingError | None = None
        for attempt in range(1, self.config.record_attempts + 1):
            try:
                self._recorder.record(record, eligibility.balance)
                return outcome
            except DuplicateDeploymentError as exc:
                if attempt > 1:
                    # A previous attempt committed before reporting failure.
                    return outcome
                last_error = exc
                break
            except RecordingError as exc:
                last_error = exc
                logger.warning(
                    "Recording deployment %s failed (attempt %d/%d): %s",
                    deployment_id,
                    attempt,
                    self.config.record_attempts,
                    exc,
                )

        logger.critical(
            "RECONCILIATION REQUIRED: deployment %s is on chain (token=%s tx=%s by=%s) "
            "but was not recorded: %s",
            deployment_id,
            submitted.token_address,
            submitted.tx_hash,
            caller,
            last_error,
        )
        outcome.status = OutcomeStatus.RECORDED_PARTIALLY
        outcome.stage = DeploymentStage.SUBMITTED
        outcome.error = ErrorKind.RECORDED_PARTIALLY
        outcome.detail = "Token deployed but the deployment could not be recorded"
        return outcome

    def simulate(
        self, token_config: TokenConfig, address: str
    ) -> tuple[EligibilityResult, str | None]:
        """Check eligibility and, if qualified, dry-run the deployment.

        Returns:
            The eligibility snapshot and the predicted token address, which is
            None when the address does not qualify.

        Raises:
            LedgerUnavailableError: If the balance could not be read.
            DeploymentError: If the dry-run fails.
        """
        eligibility = self._eligibility.check_eligibility(address)
        if not eligibility.is_qualified:
            return eligibility, None
        return eligibility, self._deployer.simulate_deployment(token_config, address)
