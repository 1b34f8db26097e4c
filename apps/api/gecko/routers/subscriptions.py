"""
Subscription purchase and status endpoints.
"""
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gecko.core.deps import get_current_admin, get_current_user
from gecko.db.session import get_db
from gecko.models.user import User
from gecko.schemas.subscription import (
    CreateSubscriptionRequest,
    ExpireSweepResponse,
    OrderResponse,
    SubscriptionResponse,
    SubscriptionStatusResponse,
)
from gecko.services.payments import PaymentService
from gecko.services.subscriptions import SubscriptionService, SubscriptionState

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_subscription_order(
    payload: CreateSubscriptionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrderResponse:
    """
    Open a pending payment order for a plan.

    Refused while an active subscription is further than the renewal
    window from its end date.
    """
    transaction = PaymentService(db).create_order(current_user, payload.plan_id)
    metadata = transaction.metadata_ or {}
    return OrderResponse(
        order_id=transaction.order_id,
        transaction_id=transaction.id,
        subtotal=Decimal(metadata.get("subtotal", "0")),
        tax_amount=Decimal(metadata.get("tax_amount", "0")),
        total_amount=transaction.amount,
        status=transaction.status,
    )


@router.get("/status", response_model=SubscriptionStatusResponse)
def get_subscription_status(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubscriptionStatusResponse:
    """Current subscription. An overdue subscription is expired by this read."""
    state, subscription = SubscriptionService(db).current_state(current_user.id)
    return SubscriptionStatusResponse(
        has_active_subscription=state == SubscriptionState.ACTIVE,
        state=state.value,
        subscription=SubscriptionResponse.model_validate(subscription) if subscription else None,
    )


@router.post("/expire", response_model=ExpireSweepResponse)
def expire_overdue_subscriptions(
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> ExpireSweepResponse:
    """Admin sweep over all overdue subscriptions."""
    return ExpireSweepResponse(expired_count=SubscriptionService(db).expire_overdue())
