"""
Catalog endpoints consumed by the web dashboard and the browser extension.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from gecko.core.deps import get_current_user
from gecko.db.session import get_db
from gecko.models.plan import Plan
from gecko.models.user import User
from gecko.schemas.auth import SessionCheckResponse, UserResponse
from gecko.schemas.catalog import CatalogResponse
from gecko.schemas.subscription import PlanResponse
from gecko.services.entitlements import EntitlementResolver
from gecko.services.subscriptions import SubscriptionState

router = APIRouter(tags=["catalog"])


@router.get("/services", response_model=CatalogResponse)
def list_services(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CatalogResponse:
    """
    Services the user may restore, grouped by group and category.
    Never carries cookie data.
    """
    groups = EntitlementResolver(db).accessible_catalog(current_user)
    total = sum(len(c.services) for g in groups for c in g.categories)
    return CatalogResponse(groups=groups, total=total)


@router.get("/plans", response_model=List[PlanResponse])
def list_plans(db: Session = Depends(get_db)) -> List[Plan]:
    """Active plans, cheapest first."""
    return list(
        db.execute(
            select(Plan).where(Plan.is_active.is_(True)).order_by(Plan.price.asc())
        ).scalars()
    )


@router.api_route("/session-check", methods=["GET", "POST"], response_model=SessionCheckResponse)
def session_check(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SessionCheckResponse:
    """
    Entitlement and profile summary for the extension popup.
    """
    resolver = EntitlementResolver(db)
    state, subscription = resolver.subscriptions.current_state(current_user.id)
    has_subscription = current_user.is_admin or state == SubscriptionState.ACTIVE

    return SessionCheckResponse(
        authenticated=True,
        has_subscription=has_subscription,
        subscription_status=state.value,
        subscription_ends_at=subscription.ends_at if subscription else None,
        user=UserResponse.model_validate(current_user),
    )
