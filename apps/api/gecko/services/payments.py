"""
Payment orders and settlement callbacks.

The gateway itself is an external collaborator. This module only records
pending orders and reacts to the normalized status it reports back.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.core.errors import OrderMismatch, OrderNotFound, PlanUnavailable, PurchaseBlocked
from gecko.core.timeutils import to_epoch_ms, utcnow
from gecko.models.plan import Plan
from gecko.models.transaction import Transaction, TransactionStatus
from gecko.models.user import User
from gecko.schemas.subscription import PaymentCallback
from gecko.services.subscriptions import SubscriptionService

logger = logging.getLogger(__name__)

# Gateway order ids are limited to 50 characters
MAX_ORDER_ID_LENGTH = 50


def calculate_tax(amount: Decimal, tax_percent: Optional[float] = None) -> Decimal:
    """Tax rounded to a whole currency unit."""
    if tax_percent is None:
        tax_percent = get_settings().TAX_PERCENT
    tax = Decimal(str(amount)) * Decimal(str(tax_percent)) / Decimal("100")
    return tax.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def generate_order_id(user: User) -> str:
    order_id = f"SUB-{to_epoch_ms(utcnow())}-{str(user.id)[:8]}"
    if len(order_id) > MAX_ORDER_ID_LENGTH:
        raise ValueError(f"Order id too long: {len(order_id)} characters")
    return order_id


class PaymentService:
    def __init__(self, db: Session, subscriptions: Optional[SubscriptionService] = None):
        self.db = db
        self.subscriptions = subscriptions or SubscriptionService(db)

    def create_order(self, user: User, plan_id: int) -> Transaction:
        plan = self.db.get(Plan, plan_id)
        if plan is None or not plan.is_active:
            raise PlanUnavailable()

        if not self.subscriptions.can_purchase(user.id):
            raise PurchaseBlocked()

        subtotal = Decimal(str(plan.price))
        tax_amount = calculate_tax(subtotal)
        transaction = Transaction(
            user_id=user.id,
            plan_id=plan.id,
            amount=subtotal + tax_amount,
            order_id=generate_order_id(user),
            status=TransactionStatus.PENDING.value,
            metadata_={
                "subtotal": str(subtotal),
                "tax_amount": str(tax_amount),
                "plan_name": plan.name,
            },
        )
        self.db.add(transaction)
        self.db.commit()
        self.db.refresh(transaction)

        logger.info(
            f"Payment order opened for plan {plan.id}",
            extra={"user_id": str(user.id), "order_id": transaction.order_id},
        )
        return transaction

    def handle_callback(self, callback: PaymentCallback) -> Transaction:
        """
        Apply a settlement notice.

        ``success`` activates the subscription once; repeated success notices
        for the same order change nothing. A settled order is never downgraded.
        """
        # Duplicate notices for one order queue on this lock and then see it settled
        transaction = self.db.execute(
            select(Transaction)
            .where(Transaction.order_id == callback.order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if transaction is None:
            logger.error("Callback for unknown order", extra={"order_id": callback.order_id})
            raise OrderNotFound()

        if callback.plan_id is not None and callback.plan_id != transaction.plan_id:
            raise OrderMismatch()
        if callback.user_id is not None and callback.user_id != transaction.user_id:
            raise OrderMismatch()

        logger.info(
            f"Payment callback: {callback.status}",
            extra={"order_id": callback.order_id, "user_id": str(transaction.user_id)},
        )

        if transaction.status == TransactionStatus.SUCCESS.value:
            if callback.status != TransactionStatus.SUCCESS.value:
                logger.warning(
                    f"Ignoring {callback.status} callback for settled order",
                    extra={"order_id": callback.order_id},
                )
            return transaction

        transaction.status = callback.status
        if callback.payment_type:
            transaction.payment_type = callback.payment_type
        if callback.transaction_id:
            transaction.gateway_transaction_id = callback.transaction_id
        transaction.metadata_ = {
            **(transaction.metadata_ or {}),
            "final_status": callback.status,
        }

        if callback.status == TransactionStatus.SUCCESS.value:
            self.subscriptions.activate(transaction.user_id, transaction.plan)

        self.db.commit()
        self.db.refresh(transaction)
        return transaction
