"""ERC-20 reads for the reference asset over JSON-RPC."""

from __future__ import annotations

from typing import Any

from web3 import Web3

ERC20_ABI: list[dict[str, Any]] = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]


def connect_web3(rpc_url: str, timeout_seconds: float) -> Web3:
    """Build an HTTP-backed Web3 client whose requests are bounded by ``timeout_seconds``."""
    provider = Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_seconds})
    return Web3(provider)


class Web3Ledger:
    """`LedgerClient` backed by a token contract's ``balanceOf``/``decimals``."""

    def __init__(self, web3: Web3, token_address: str) -> None:
        self._web3 = web3
        self._token = web3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )

    def read_balance(self, address: str) -> int:
        return int(self._token.functions.balanceOf(Web3.to_checksum_address(address)).call())

    def read_decimals(self) -> int:
        return int(self._token.functions.decimals().call())
