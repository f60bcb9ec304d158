"""Read-side helpers for deployment history and per-user statistics."""
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from zcorp_launcher.models import Deployment, UserSession
from zcorp_launcher.models.deployment import (
    DEPLOYMENT_STATUS_COMPLETED,
    DEPLOYMENT_STATUS_FAILED,
)

__all__ = [
    "DeploymentPage",
    "UserDeploymentStats",
    "get_deployment",
    "get_user_stats",
    "list_deployments",
]

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class DeploymentPage:
    items: Sequence[Deployment]
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total_count

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class UserDeploymentStats:
    total_deployments: int
    successful_deployments: int
    failed_deployments: int
    first_deployment: datetime | None
    latest_deployment: datetime | None
    last_known_balance: str
    last_verified: datetime | None

    @property
    def success_rate(self) -> str:
        if self.total_deployments <= 0:
            return "N/A"
        return f"{self.successful_deployments / self.total_deployments * 100:.1f}%"


def list_deployments(
    db: Session, user_address: str, page: int = 1, limit: int = 20
) -> DeploymentPage:
    """Return one page of an address's deployments, newest first."""
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    items = db.scalars(
        select(Deployment)
        .where(Deployment.deployed_by == user_address)
        .order_by(Deployment.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()
    total = db.scalar(
        select(func.count()).select_from(Deployment).where(Deployment.deployed_by == user_address)
    )
    return DeploymentPage(items=items, page=page, limit=limit, total_count=int(total or 0))


def get_deployment(db: Session, deployment_id: str) -> Deployment | None:
    """Return a single deployment by id."""
    return db.get(Deployment, deployment_id)


def get_user_stats(db: Session, user_address: str) -> UserDeploymentStats:
    """Aggregate deployment counts and session data for an address."""
    row = db.execute(
        select(
            func.count(),
            func.count(case((Deployment.status == DEPLOYMENT_STATUS_COMPLETED, 1))),
            func.count(case((Deployment.status == DEPLOYMENT_STATUS_FAILED, 1))),
            func.min(Deployment.created_at),
            func.max(Deployment.created_at),
        ).where(Deployment.deployed_by == user_address)
    ).one()
    session = db.get(UserSession, user_address)

    return UserDeploymentStats(
        total_deployments=int(row[0] or 0),
        successful_deployments=int(row[1] or 0),
        failed_deployments=int(row[2] or 0),
        first_deployment=row[3],
        latest_deployment=row[4],
        last_known_balance=(session.last_known_balance if session else None) or "0",
        last_verified=session.last_verified_at if session else None,
    )
