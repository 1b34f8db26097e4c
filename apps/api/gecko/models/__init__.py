"""
SQLAlchemy models for Gecko Store.
"""
# Accounts
from gecko.models.user import User
from gecko.models.session import UserSession
from gecko.models.failed_login import FailedLoginAttempt

# Catalog
from gecko.models.plan import Plan, plan_services
from gecko.models.service import ServiceGroup, ServiceCategory, Service

# Billing
from gecko.models.subscription import Subscription, SubscriptionStatus
from gecko.models.transaction import Transaction, TransactionStatus


__all__ = [
    # Accounts
    "User",
    "UserSession",
    "FailedLoginAttempt",
    # Catalog
    "Plan",
    "plan_services",
    "ServiceGroup",
    "ServiceCategory",
    "Service",
    # Billing
    "Subscription",
    "SubscriptionStatus",
    "Transaction",
    "TransactionStatus",
]
