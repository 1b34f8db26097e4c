"""
Tests for entitlement resolution and credential fetches.
"""
from datetime import timedelta

import pytest

from gecko.core.errors import NotEntitled
from gecko.core.timeutils import utcnow
from gecko.models import Service, Subscription
from gecko.services.credential_store import CredentialStore
from gecko.services.entitlements import EntitlementResolver


def codes(services):
    return sorted(s.code for s in services)


class TestAccessibleServices:
    def test_no_subscription_sees_nothing(self, db, test_user, catalog):
        assert EntitlementResolver(db).accessible_services(test_user) == []

    def test_plan_limits_services(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["basic"])

        assert codes(EntitlementResolver(db).accessible_services(test_user)) == ["instagram", "youtube"]

    def test_inactive_chain_hidden(self, db, test_user, catalog, subscribe):
        """Inactive services and services under an inactive group are left out."""
        subscribe(test_user, catalog["pro"])

        assert codes(EntitlementResolver(db).accessible_services(test_user)) == [
            "instagram",
            "netflix",
            "youtube",
        ]

    def test_expired_subscription_sees_nothing(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"], ends_at=utcnow() - timedelta(seconds=1))

        assert EntitlementResolver(db).accessible_services(test_user) == []

    def test_admin_sees_every_active_service(self, db, admin_user, catalog):
        assert codes(EntitlementResolver(db).accessible_services(admin_user)) == [
            "hidden",
            "instagram",
            "netflix",
            "youtube",
        ]

    def test_banned_sees_nothing(self, db, make_user, catalog, subscribe):
        user = make_user("banned@example.com", banned=True)
        subscribe(user, catalog["pro"])

        assert EntitlementResolver(db).accessible_services(user) == []

    def test_plan_comes_from_subscription_row(self, db, test_user, catalog, subscribe):
        """A stale cached plan on the user grants nothing beyond the subscription's plan."""
        subscribe(test_user, catalog["basic"])
        test_user.current_plan_id = catalog["pro"].id
        db.commit()

        assert "netflix" not in codes(EntitlementResolver(db).accessible_services(test_user))


class TestCatalog:
    def test_grouped_without_cookie_data(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"])

        groups = EntitlementResolver(db).accessible_catalog(test_user)

        by_name = {g.name: g for g in groups}
        assert set(by_name) == {"Social Media", "Streaming"}
        social = by_name["Social Media"].categories[0]
        assert social.name == "Social Platforms"
        assert [s.code for s in social.services] == ["instagram", "youtube"]
        dumped = [g.model_dump() for g in groups]
        assert "cookie_data" not in str(dumped)
        assert "NetflixId" not in str(dumped)


class TestCanAccess:
    def test_in_plan(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"])

        assert EntitlementResolver(db).can_access(test_user, "netflix") is True

    def test_outside_plan(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["basic"])

        assert EntitlementResolver(db).can_access(test_user, "netflix") is False

    def test_unknown_service(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"])

        assert EntitlementResolver(db).can_access(test_user, "does-not-exist") is False

    def test_inactive_service_in_plan(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"])

        assert EntitlementResolver(db).can_access(test_user, "retired") is False

    def test_inactive_group_in_plan(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"])

        assert EntitlementResolver(db).can_access(test_user, "hidden") is False

    def test_expired_subscription(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"], ends_at=utcnow() - timedelta(seconds=1))

        assert EntitlementResolver(db).can_access(test_user, "netflix") is False

        subscription = db.query(Subscription).filter(Subscription.user_id == test_user.id).one()
        assert subscription.status == "expired"
        db.refresh(test_user)
        assert test_user.current_plan_id is None
        assert test_user.subscription_ends_at is None

    def test_admin_without_subscription(self, db, admin_user, catalog):
        resolver = EntitlementResolver(db)

        assert resolver.can_access(admin_user, "netflix") is True
        assert resolver.can_access(admin_user, "retired") is False

    def test_banned_admin(self, db, make_user, catalog):
        admin = make_user("banned-admin@example.com", is_admin=True, banned=True)

        assert EntitlementResolver(db).can_access(admin, "netflix") is False


class TestFetchCredentials:
    def test_returns_descriptors(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["basic"])

        cookies = EntitlementResolver(db).fetch_credentials(test_user, "instagram")

        assert [c.name for c in cookies] == ["sessionid", "csrftoken"]
        assert cookies[0].domain == ".instagram.com"
        assert cookies[0].secure is True

    def test_idempotent(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"])
        resolver = EntitlementResolver(db)

        first = resolver.fetch_credentials(test_user, "netflix")
        second = resolver.fetch_credentials(test_user, "netflix")

        assert first == second
        assert first[0] is not second[0]

    def test_denied_outside_plan(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["basic"])

        with pytest.raises(NotEntitled):
            EntitlementResolver(db).fetch_credentials(test_user, "netflix")

    def test_denied_unknown_service(self, db, test_user, catalog, subscribe):
        subscribe(test_user, catalog["pro"])

        with pytest.raises(NotEntitled):
            EntitlementResolver(db).fetch_credentials(test_user, "nope")

    def test_reevaluated_after_expiry(self, db, test_user, catalog, subscribe):
        """Entitlement is checked on every fetch, not remembered."""
        subscription = subscribe(test_user, catalog["pro"])
        resolver = EntitlementResolver(db)
        resolver.fetch_credentials(test_user, "netflix")

        subscription.ends_at = utcnow() - timedelta(seconds=1)
        db.commit()

        with pytest.raises(NotEntitled):
            resolver.fetch_credentials(test_user, "netflix")


class TestCredentialStore:
    def test_string_encoded_cookie_data(self, db, catalog):
        service = db.query(Service).filter(Service.code == "youtube").one()
        service.cookie_data = '[{"name": "YSC", "value": "v", "domain": ".youtube.com", "sameSite": "strict"}]'
        db.commit()

        cookies = CredentialStore(db).descriptors(service)

        assert cookies[0].name == "YSC"
        assert cookies[0].same_site == "strict"
        assert cookies[0].path == "/"

    def test_unknown_code(self, db, catalog):
        assert CredentialStore(db).get_service("missing") is None
