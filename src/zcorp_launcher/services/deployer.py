"""Token deployment through the launcher's factory contract.

The deployment transaction is signed by the ZCORP wallet, which stays the
token admin and the reward recipient. Submission is irrevocable: nothing in
this module retries a broadcast.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TimeExhausted

from zcorp_launcher.schemas.deploy import TokenConfig

logger = logging.getLogger(__name__)

INTERFACE_NAME = "ZCORP Token Launcher"
PLATFORM_NAME = "ZCORP"
DEFAULT_FEES = "DynamicBasic"
REWARD_BPS = 10_000

FACTORY_ABI: list[dict[str, Any]] = [
    {
        "name": "deployToken",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "image", "type": "string"},
            {"name": "metadata", "type": "string"},
            {"name": "context", "type": "string"},
            {"name": "pairedToken", "type": "address"},
            {"name": "tokenAdmin", "type": "address"},
        ],
        "outputs": [{"name": "token", "type": "address"}],
    },
    {
        "name": "TokenCreated",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "tokenAddress", "type": "address", "indexed": True},
            {"name": "tokenAdmin", "type": "address", "indexed": True},
            {"name": "name", "type": "string", "indexed": False},
            {"name": "symbol", "type": "string", "indexed": False},
        ],
    },
]


class DeploymentError(RuntimeError):
    """Raised when a deployment could not be completed.

    ``tx_hash`` is set when the transaction was broadcast before the failure,
    in which case the outcome on chain is unknown until confirmed.
    """

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


@dataclass(frozen=True)
class SubmittedDeployment:
    token_address: str
    tx_hash: str


class TokenDeployer(Protocol):
    def submit_deployment(
        self, config: TokenConfig, deployed_by: str, deployment_id: str
    ) -> SubmittedDeployment: ...

    def simulate_deployment(self, config: TokenConfig, deployed_by: str) -> str: ...


def build_metadata(config: TokenConfig) -> dict[str, Any]:
    """Extra token settings carried alongside name/symbol/image."""
    wire = config.wire_dict()
    return {
        "description": config.description or "",
        "positions": config.pool.positions,
        "vault": wire.get("vault"),
        "airdrop": wire.get("airdrop"),
        "fees": wire.get("fees", DEFAULT_FEES),
        "devBuy": {"ethAmount": 0},
        "rewardsBps": REWARD_BPS,
        "vanity": True,
    }


def build_context(deployed_by: str, message_id: str) -> dict[str, str]:
    return {
        "interface": INTERFACE_NAME,
        "platform": PLATFORM_NAME,
        "messageId": message_id,
        "id": deployed_by,
    }


class FactoryDeployer:
    """`TokenDeployer` that calls ``deployToken`` on a factory contract."""

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        factory_address: str,
        chain_id: int,
        receipt_timeout_seconds: float = 120.0,
    ) -> None:
        self._web3 = web3
        self._account = account
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout_seconds
        self._factory = web3.eth.contract(
            address=Web3.to_checksum_address(factory_address), abi=FACTORY_ABI
        )

    @property
    def wallet_address(self) -> str:
        return self._account.address

    def _call(self, config: TokenConfig, deployed_by: str, message_id: str) -> Any:
        return self._factory.functions.deployToken(
            config.name,
            config.symbol,
            config.image,
            json.dumps(build_metadata(config), sort_keys=True),
            json.dumps(build_context(deployed_by, message_id), sort_keys=True),
            Web3.to_checksum_address(config.pool.paired_token),
            self._account.address,
        )

    def simulate_deployment(self, config: TokenConfig, deployed_by: str) -> str:
        """Dry-run the factory call and return the address it would create."""
        try:
            predicted = self._call(config, deployed_by, f"simulation-{deployed_by}").call(
                {"from": self._account.address}
            )
        except Exception as exc:
            raise DeploymentError(f"Simulation failed: {exc}") from exc
        return Web3.to_checksum_address(predicted)

    def submit_deployment(
        self, config: TokenConfig, deployed_by: str, deployment_id: str
    ) -> SubmittedDeployment:
        logger.info("Starting token deployment %s: %s", deployment_id, config.name)
        try:
            tx = self._call(config, deployed_by, deployment_id).build_transaction(
                {
                    "from": self._account.address,
                    "nonce": self._web3.eth.get_transaction_count(
                        self._account.address, "pending"
                    ),
                    "chainId": self._chain_id,
                }
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = self._web3.eth.send_raw_transaction(signed.raw_transaction).to_0x_hex()
        except Exception as exc:
            raise DeploymentError(f"Deployment failed: {exc}") from exc

        logger.info("Transaction submitted for %s: %s", deployment_id, tx_hash)

        try:
            receipt = self._web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._receipt_timeout
            )
        except TimeExhausted as exc:
            raise DeploymentError(
                f"Transaction {tx_hash} not confirmed within {self._receipt_timeout}s",
                tx_hash=tx_hash,
            ) from exc
        except Exception as exc:
            raise DeploymentError(f"Waiting for {tx_hash} failed: {exc}", tx_hash=tx_hash) from exc

        try:
            status = receipt["status"]
        except (KeyError, TypeError) as exc:
            raise DeploymentError(f"Receipt of {tx_hash} has no status", tx_hash=tx_hash) from exc
        if status != 1:
            raise DeploymentError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)

        try:
            events = self._factory.events.TokenCreated().process_receipt(receipt)
            created = events[0]["args"]["tokenAddress"] if events else None
            token_address = Web3.to_checksum_address(created) if created else None
        except Exception as exc:
            raise DeploymentError(
                f"Could not read the receipt of {tx_hash}: {exc}", tx_hash=tx_hash
            ) from exc
        if token_address is None:
            raise DeploymentError(
                f"Transaction {tx_hash} emitted no TokenCreated event", tx_hash=tx_hash
            )
        logger.info("Token deployed successfully: %s", token_address)
        return SubmittedDeployment(token_address=token_address, tx_hash=tx_hash)


@lru_cache(maxsize=1)
def get_deployer() -> FactoryDeployer:
    """Return the configured factory deployer.

    Raises:
        DeploymentError: If the wallet key or factory address is not configured.
    """
    from zcorp_launcher.core.settings import settings
    from zcorp_launcher.services.ledger import connect_web3

    if not settings.deployer_private_key or not settings.factory_address:
        raise DeploymentError("ZCORP_PRIVATE_KEY and TOKEN_FACTORY_ADDRESS must be configured")
    return FactoryDeployer(
        connect_web3(settings.rpc_url, settings.rpc_timeout_seconds),
        Account.from_key(settings.deployer_private_key),
        settings.factory_address,
        settings.chain_id,
        settings.deploy_receipt_timeout_seconds,
    )
