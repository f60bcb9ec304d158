"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
HEX_PATTERN = r"^0x[a-fA-F0-9]+$"


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
