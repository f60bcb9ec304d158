"""Canonical deployment messages and their binding to a request."""

from __future__ import annotations

import json
from typing import Any

from zcorp_launcher.schemas.deploy import TokenConfig


def canonical_json(payload: Any) -> str:
    """Serialize with stable key order and no insignificant whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def deployment_payload(
    config: TokenConfig, user_address: str, timestamp: int, action_tag: str
) -> dict[str, Any]:
    return {
        "action": action_tag,
        "config": config.wire_dict(),
        "timestamp": timestamp,
        "userAddress": user_address,
    }


def create_deployment_message(
    config: TokenConfig, user_address: str, timestamp: int, action_tag: str
) -> str:
    """Return the exact text a client signs to request a deployment."""
    return canonical_json(deployment_payload(config, user_address, timestamp, action_tag))


def _without_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _without_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_without_nulls(v) for v in value]
    return value


def validate_message_binding(
    message: str,
    config: TokenConfig,
    user_address: str,
    timestamp: int,
    action_tag: str,
) -> str | None:
    """Check that a signed message describes this exact deployment request.

    Returns:
        None when the message matches, otherwise a short description of the
        first mismatching field.
    """
    try:
        parsed = json.loads(message)
    except (TypeError, ValueError):
        return "message is not valid JSON"
    if not isinstance(parsed, dict):
        return "message is not a JSON object"

    if parsed.get("action") != action_tag:
        return "action tag mismatch"

    signed_address = parsed.get("userAddress")
    if not isinstance(signed_address, str) or signed_address.lower() != user_address.lower():
        return "user address mismatch"

    signed_timestamp = parsed.get("timestamp")
    if isinstance(signed_timestamp, bool) or not isinstance(signed_timestamp, int):
        return "timestamp missing or not an integer"
    if signed_timestamp != timestamp:
        return "timestamp mismatch"

    signed_config = parsed.get("config")
    if not isinstance(signed_config, dict):
        return "config missing"
    if signed_config.get("name") != config.name:
        return "token name mismatch"
    if signed_config.get("symbol") != config.symbol:
        return "token symbol mismatch"
    if _without_nulls(signed_config) != config.wire_dict():
        return "token config mismatch"
    return None
