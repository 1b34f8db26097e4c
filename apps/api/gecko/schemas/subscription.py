"""
Plan, subscription and payment schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PlanResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    duration_in_days: int
    features: Optional[List[str]] = None
    is_popular: bool

    model_config = ConfigDict(from_attributes=True)


class SubscriptionResponse(BaseModel):
    id: UUID
    plan_id: int
    status: str
    starts_at: datetime
    ends_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionStatusResponse(BaseModel):
    has_active_subscription: bool
    state: str
    subscription: Optional[SubscriptionResponse] = None


class CreateSubscriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_id: int = Field(..., alias="planId")


class OrderResponse(BaseModel):
    order_id: str
    transaction_id: UUID
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: str


class PaymentCallback(BaseModel):
    """Settlement notice delivered by the payment collaborator."""
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId")
    status: Literal["success", "failed", "pending"]
    plan_id: Optional[int] = Field(None, alias="planId")
    user_id: Optional[UUID] = Field(None, alias="userId")
    payment_type: Optional[str] = Field(None, alias="paymentType")
    transaction_id: Optional[str] = Field(None, alias="transactionId")


class ExpireSweepResponse(BaseModel):
    expired_count: int
