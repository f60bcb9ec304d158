# src/zcorp_launcher/api/v1/endpoints/tokens.py
"""Deployment history and statistics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Path, Query, status

from zcorp_launcher.api.v1.dependencies import SessionDep
from zcorp_launcher.core.security import normalize_address
from zcorp_launcher.core.settings import settings
from zcorp_launcher.schemas.common import ADDRESS_PATTERN
from zcorp_launcher.schemas.tokens import (
    DeploymentDetail,
    DeploymentHistoryResponse,
    DeploymentSummary,
    Pagination,
    UserStats,
)
from zcorp_launcher.services import deployment_queries
from zcorp_launcher.services.orchestrator import token_explorer_url

router = APIRouter(prefix="/tokens", tags=["tokens"])

_MIN_DEPLOYMENT_ID_LENGTH = 10


@router.get("/deployments/{user_address}", response_model=DeploymentHistoryResponse)
def get_deployment_history(
    db: SessionDep,
    user_address: str = Path(..., pattern=ADDRESS_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=deployment_queries.MAX_PAGE_SIZE),
) -> DeploymentHistoryResponse:
    """Return an address's deployments, newest first, with pagination data."""
    result = deployment_queries.list_deployments(
        db, normalize_address(user_address), page=page, limit=limit
    )
    return DeploymentHistoryResponse(
        deployments=[
            DeploymentSummary(
                id=d.id,
                token_address=d.token_address,
                tx_hash=d.tx_hash,
                token_name=d.token_name,
                token_symbol=d.token_symbol,
                created_at=d.created_at,
                status=d.status,
                explorer_url=token_explorer_url(settings.explorer_base_url, d.token_address),
            )
            for d in result.items
        ],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total_count=result.total_count,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_prev=result.has_prev,
        ),
    )


@router.get("/deployment/{deployment_id}", response_model=DeploymentDetail)
def get_deployment_details(deployment_id: str, db: SessionDep) -> DeploymentDetail:
    """Return the full record of one deployment."""
    if len(deployment_id) < _MIN_DEPLOYMENT_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid deployment ID format",
        )
    deployment = deployment_queries.get_deployment(db, deployment_id)
    if deployment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deployment not found")

    return DeploymentDetail(
        id=deployment.id,
        token_address=deployment.token_address,
        deployed_by=deployment.deployed_by,
        tx_hash=deployment.tx_hash,
        token_config=deployment.token_config,
        created_at=deployment.created_at,
        status=deployment.status,
        explorer_url=token_explorer_url(settings.explorer_base_url, deployment.token_address),
    )


@router.get("/stats/{user_address}", response_model=UserStats)
def get_user_stats(
    db: SessionDep,
    user_address: str = Path(..., pattern=ADDRESS_PATTERN),
) -> UserStats:
    """Return deployment statistics for an address."""
    stats = deployment_queries.get_user_stats(db, normalize_address(user_address))
    return UserStats(
        total_deployments=stats.total_deployments,
        successful_deployments=stats.successful_deployments,
        failed_deployments=stats.failed_deployments,
        first_deployment=stats.first_deployment,
        latest_deployment=stats.latest_deployment,
        last_known_balance=stats.last_known_balance,
        last_verified=stats.last_verified,
        success_rate=stats.success_rate,
    )
