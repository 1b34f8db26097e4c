"""
Subscription state machine.

States are derived, not stored:

- ``none``: no subscription row for the user
- ``active``: status is active and ``ends_at`` lies in the future
- ``expired``: status already expired, or active with ``ends_at`` passed

Expiry is detected lazily. ``read_subscription`` flips an overdue row to
expired and clears the user's cached plan fields in the same transaction,
so every entitlement check repairs stale state before answering.
"""
import enum
from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.core.timeutils import utcnow
from gecko.models.plan import Plan
from gecko.models.subscription import Subscription, SubscriptionStatus
from gecko.models.user import User

logger = logging.getLogger(__name__)


class SubscriptionState(str, enum.Enum):
    NONE = "none"
    ACTIVE = "active"
    EXPIRED = "expired"


def state_of(subscription: Optional[Subscription], now: Optional[datetime] = None) -> SubscriptionState:
    """Classify a subscription row without touching the database."""
    if subscription is None:
        return SubscriptionState.NONE
    now = now or utcnow()
    if subscription.status == SubscriptionStatus.ACTIVE.value and subscription.ends_at > now:
        return SubscriptionState.ACTIVE
    return SubscriptionState.EXPIRED


class SubscriptionService:
    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def _locked_row(self, user_id: UUID) -> Optional[Subscription]:
        # FOR UPDATE serializes two readers racing to flip the same row
        stmt = (
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _clear_user_projection(self, user_id: UUID) -> None:
        user = self.db.get(User, user_id)
        if user is not None:
            user.current_plan_id = None
            user.subscription_ends_at = None

    def read_subscription(self, user_id: UUID) -> Optional[Subscription]:
        """
        Load the user's subscription, expiring it first when overdue.

        The check and the write-back share one transaction.
        """
        subscription = self._locked_row(user_id)
        if subscription is None:
            return None

        now = utcnow()
        if subscription.status == SubscriptionStatus.ACTIVE.value and subscription.ends_at <= now:
            subscription.status = SubscriptionStatus.EXPIRED.value
            self._clear_user_projection(user_id)
            self.db.commit()
            logger.info("Subscription expired on read", extra={"user_id": str(user_id)})
        return subscription

    def current_state(self, user_id: UUID) -> Tuple[SubscriptionState, Optional[Subscription]]:
        subscription = self.read_subscription(user_id)
        return state_of(subscription), subscription

    def activate(self, user_id: UUID, plan: Plan) -> Subscription:
        """
        Move to ``active`` after a settled payment.

        Reuses the existing row on renewal or plan change. The caller commits.
        """
        now = utcnow()
        ends_at = now + timedelta(days=plan.duration_in_days)

        subscription = self._locked_row(user_id)
        if subscription is None:
            subscription = Subscription(user_id=user_id, plan_id=plan.id)
            self.db.add(subscription)

        subscription.plan_id = plan.id
        subscription.status = SubscriptionStatus.ACTIVE.value
        subscription.starts_at = now
        subscription.ends_at = ends_at

        user = self.db.get(User, user_id)
        if user is not None:
            user.current_plan_id = plan.id
            user.subscription_ends_at = ends_at

        self.db.flush()
        logger.info(
            f"Subscription activated on plan {plan.id} until {ends_at.isoformat()}",
            extra={"user_id": str(user_id)},
        )
        return subscription

    def can_purchase(self, user_id: UUID) -> bool:
        """
        A new order is allowed unless the subscription is active and not yet
        inside the renewal window before ``ends_at``.
        """
        subscription = self.read_subscription(user_id)
        if state_of(subscription) != SubscriptionState.ACTIVE:
            return True
        window_start = subscription.ends_at - timedelta(days=self.settings.RENEWAL_WINDOW_DAYS)
        return utcnow() >= window_start

    def expire_overdue(self) -> int:
        """Sweep every overdue active subscription. Optional; reads self-heal anyway."""
        now = utcnow()
        overdue = self.db.execute(
            select(Subscription)
            .where(
                Subscription.status == SubscriptionStatus.ACTIVE.value,
                Subscription.ends_at <= now,
            )
            .with_for_update()
        ).scalars().all()

        for subscription in overdue:
            subscription.status = SubscriptionStatus.EXPIRED.value
            self._clear_user_projection(subscription.user_id)

        self.db.commit()
        if overdue:
            logger.info(f"Expired {len(overdue)} overdue subscription(s)")
        return len(overdue)
