"""Deployment history and statistics schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .common import CamelModel


class DeploymentSummary(CamelModel):
    id: str
    token_address: str
    tx_hash: str
    token_name: str | None = None
    token_symbol: str | None = None
    created_at: datetime
    status: str
    explorer_url: str


class Pagination(CamelModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool


class DeploymentHistoryResponse(CamelModel):
    deployments: list[DeploymentSummary]
    pagination: Pagination


class DeploymentDetail(CamelModel):
    id: str
    token_address: str
    deployed_by: str
    tx_hash: str
    token_config: dict[str, Any]
    created_at: datetime
    status: str
    explorer_url: str


class UserStats(CamelModel):
    total_deployments: int
    successful_deployments: int
    failed_deployments: int
    first_deployment: datetime | None = None
    latest_deployment: datetime | None = None
    last_known_balance: str
    last_verified: datetime | None = None
    success_rate: str
