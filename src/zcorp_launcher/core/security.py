"""Signature utilities built on EIP-191 personal-sign primitives."""
from __future__ import annotations

import logging

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address, to_checksum_address

logger = logging.getLogger(__name__)

_SIGNATURE_HEX_LENGTH = 130  # 65 bytes (r, s, v)


def normalize_address(address: str) -> str:
    """Return the EIP-55 checksummed form of an address.

    Raises:
        ValueError: If the value is not a 20-byte hex address.
    """
    if not is_address(address):
        raise ValueError(f"Invalid Ethereum address: {address!r}")
    return to_checksum_address(address)


def _signature_bytes(signature: str) -> bytes:
    cleaned = signature.strip()
    if cleaned[:2] in ("0x", "0X"):
        cleaned = cleaned[2:]
    if len(cleaned) != _SIGNATURE_HEX_LENGTH:
        raise ValueError("Signatures must be 65 bytes expressed as hex")
    return bytes.fromhex(cleaned)


def recover_signer(message: str, signature: str) -> str:
    """Recover the address that personal-signed ``message``."""
    return Account.recover_message(
        encode_defunct(text=message), signature=_signature_bytes(signature)
    )


def verify_signature(address: str, message: str, signature: str) -> bool:
    """Verify that ``signature`` is ``address``'s personal-sign over ``message``.

    Args:
        address: Claimed signer, any letter case.
        message: Exact text that was signed on the client.
        signature: 0x-prefixed 65-byte signature.

    Returns:
        True if the recovered signer equals ``address``; False otherwise.
    """
    try:
        recovered = recover_signer(message, signature)
    except Exception as exc:
        logger.debug("Signature recovery failed: %s", exc)
        return False
    return recovered.lower() == address.lower()
