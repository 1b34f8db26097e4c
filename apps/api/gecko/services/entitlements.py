"""
Entitlement resolution: which services a user may see and fetch.
"""
from typing import Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from gecko.core.errors import NotEntitled
from gecko.models.plan import Plan
from gecko.models.service import Service, ServiceCategory, ServiceGroup
from gecko.models.user import User
from gecko.schemas.catalog import (
    CategoryWithServices,
    CookieDescriptor,
    GroupWithCategories,
    ServiceSummary,
)
from gecko.services.credential_store import CredentialStore
from gecko.services.subscriptions import SubscriptionService, SubscriptionState

logger = logging.getLogger(__name__)


class EntitlementResolver:
    """
    Maps subscription state and the plan-service mapping to access decisions.

    The plan comes from the subscription row, never from the cached
    ``user.current_plan_id``. Every call re-reads the subscription, which
    also applies the lazy expiry flip.
    """

    def __init__(
        self,
        db: Session,
        subscriptions: Optional[SubscriptionService] = None,
        store: Optional[CredentialStore] = None,
    ):
        self.db = db
        self.subscriptions = subscriptions or SubscriptionService(db)
        self.store = store or CredentialStore(db)

    def entitled_plan_id(self, user: User) -> Optional[int]:
        """Plan id backing an active subscription, or None."""
        if user.banned:
            return None
        state, subscription = self.subscriptions.current_state(user.id)
        if state != SubscriptionState.ACTIVE:
            return None
        return subscription.plan_id

    def accessible_services(self, user: User) -> List[Service]:
        if user.banned:
            return []

        stmt = (
            select(Service)
            .join(Service.category)
            .join(ServiceCategory.group)
            .options(joinedload(Service.category).joinedload(ServiceCategory.group))
            .where(Service.is_active.is_(True))
            .order_by(ServiceGroup.id, ServiceCategory.id, Service.name)
        )

        if not user.is_admin:
            plan_id = self.entitled_plan_id(user)
            if plan_id is None:
                return []
            stmt = stmt.where(
                ServiceCategory.is_active.is_(True),
                ServiceGroup.is_active.is_(True),
                Service.plans.any(Plan.id == plan_id),
            )

        return list(self.db.execute(stmt).unique().scalars())

    def accessible_catalog(self, user: User) -> List[GroupWithCategories]:
        """Visible services grouped by group and category, without credentials."""
        return group_services(self.accessible_services(user))

    def can_access(self, user: User, service_code: str) -> bool:
        if user.banned:
            return False

        service = self.store.get_service(service_code)
        if service is None or not service.is_active:
            return False

        if user.is_admin:
            return True

        if not service.is_available:
            return False

        plan_id = self.entitled_plan_id(user)
        if plan_id is None:
            return False

        return any(plan.id == plan_id for plan in service.plans)

    def fetch_credentials(self, user: User, service_code: str) -> List[CookieDescriptor]:
        """
        Full descriptor set for one service.

        Authorization is re-evaluated on every call; an earlier catalog
        response grants nothing.
        """
        if not self.can_access(user, service_code):
            logger.info(
                "Credential fetch denied",
                extra={"user_id": str(user.id), "service_code": service_code},
            )
            raise NotEntitled()

        service = self.store.get_service(service_code)
        descriptors = self.store.descriptors(service)
        logger.info(
            f"Credentials served ({len(descriptors)} cookies)",
            extra={"user_id": str(user.id), "service_code": service_code},
        )
        return descriptors


def group_services(services: List[Service]) -> List[GroupWithCategories]:
    """Fold a flat, ordered service list into group -> category -> services."""
    groups: Dict[int, dict] = {}

    for service in services:
        category = service.category
        group = category.group

        group_entry = groups.setdefault(
            group.id,
            {"id": group.id, "name": group.name, "categories": {}},
        )
        category_entry = group_entry["categories"].setdefault(
            category.id,
            {
                "id": category.id,
                "name": category.name,
                "description": category.description,
                "icon_url": category.icon_url,
                "services": [],
            },
        )
        category_entry["services"].append(ServiceSummary.model_validate(service))

    return [
        GroupWithCategories(
            id=g["id"],
            name=g["name"],
            categories=[CategoryWithServices(**c) for c in g["categories"].values()],
        )
        for g in groups.values()
    ]
