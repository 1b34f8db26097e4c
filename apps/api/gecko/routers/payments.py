"""
Payment collaborator callback.
"""
import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.db.session import get_db
from gecko.schemas.auth import MessageResponse
from gecko.schemas.subscription import PaymentCallback
from gecko.services.payments import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def verify_callback_secret(x_callback_secret: Optional[str] = Header(None)) -> None:
    """Check the shared secret when one is configured."""
    expected = get_settings().PAYMENT_CALLBACK_SECRET
    if not expected:
        return
    if not x_callback_secret or not hmac.compare_digest(x_callback_secret, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid callback signature",
        )


@router.post("/callback", response_model=MessageResponse, dependencies=[Depends(verify_callback_secret)])
def payment_callback(payload: PaymentCallback, db: Session = Depends(get_db)) -> MessageResponse:
    """
    Record a payment status. ``success`` activates or renews the
    subscription for the order's plan.
    """
    transaction = PaymentService(db).handle_callback(payload)
    return MessageResponse(message=f"Callback processed: order {transaction.order_id} is {transaction.status}")
