"""
Test configuration and fixtures.
"""
import os
from datetime import datetime, timedelta
from typing import Callable, Generator, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects import postgresql
from fastapi.testclient import TestClient

# Settings are read at import time, so configure them before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-suite-signing-key-0123456789abcdef"
os.environ["LOG_JSON"] = "false"

from gecko.main import app
from gecko.db.base import Base
from gecko.db.session import get_db
from gecko.core.security import hash_password
from gecko.core.timeutils import utcnow
from gecko.models import (
    Plan,
    Service,
    ServiceCategory,
    ServiceGroup,
    Subscription,
    SubscriptionStatus,
    User,
)

TEST_PASSWORD = "testpassword123"

# bcrypt is deliberately slow; hash the shared test password once
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema and database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_session(db: Session) -> Generator[Session, None, None]:
    """A second session on the test database, standing in for another worker."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def sql_log(db: Session, monkeypatch) -> list:
    """
    Statements run through ``db.execute``, rendered as PostgreSQL SQL.

    SQLite drops FOR UPDATE when compiling, so row locks are only visible
    in the PostgreSQL rendering.
    """
    statements = []
    execute = db.execute

    def recording_execute(statement, *args, **kwargs):
        statements.append(str(statement.compile(dialect=postgresql.dialect())))
        return execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", recording_execute)
    return statements


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory for users sharing TEST_PASSWORD."""
    def _make_user(email: str = "testuser@example.com", is_admin: bool = False, banned: bool = False) -> User:
        user = User(
            name=email.split("@")[0],
            email=email,
            hashed_password=TEST_PASSWORD_HASH,
            is_admin=is_admin,
            banned=banned,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def test_user(make_user) -> User:
    return make_user("testuser@example.com")


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user("admin@example.com", is_admin=True)


@pytest.fixture
def catalog(db: Session) -> dict:
    """
    Two plans over a small catalog.

    basic: instagram, youtube
    pro:   instagram, youtube, netflix, retired (inactive), hidden (inactive group)
    """
    social_group = ServiceGroup(name="Social Media")
    streaming_group = ServiceGroup(name="Streaming")
    archived_group = ServiceGroup(name="Archived", is_active=False)
    social = ServiceCategory(name="Social Platforms", group=social_group)
    streaming = ServiceCategory(name="Video Streaming", group=streaming_group)
    archived = ServiceCategory(name="Old Stuff", group=archived_group)

    def cookie(name: str, domain: str, **extra) -> dict:
        data = {"name": name, "value": f"{name}-value", "domain": domain, "path": "/", "secure": True, "httpOnly": False}
        data.update(extra)
        return data

    netflix = Service(
        code="netflix",
        name="Netflix Premium",
        category=streaming,
        cookie_data=[cookie("NetflixId", ".netflix.com", sameSite="lax")],
    )
    instagram = Service(
        code="instagram",
        name="Instagram Business",
        category=social,
        cookie_data=[cookie("sessionid", ".instagram.com"), cookie("csrftoken", ".instagram.com")],
    )
    youtube = Service(
        code="youtube",
        name="YouTube Premium",
        category=social,
        cookie_data=[cookie("YSC", ".youtube.com")],
    )
    retired = Service(
        code="retired",
        name="Retired Service",
        category=streaming,
        is_active=False,
        cookie_data=[cookie("old", ".retired.example")],
    )
    hidden = Service(
        code="hidden",
        name="Hidden Service",
        category=archived,
        cookie_data=[cookie("h", ".hidden.example")],
    )

    basic = Plan(name="Basic", price=1, duration_in_days=7, services=[instagram, youtube])
    pro = Plan(
        name="Pro",
        price=2,
        duration_in_days=30,
        is_popular=True,
        services=[instagram, youtube, netflix, retired, hidden],
    )
    legacy = Plan(name="Legacy", price=5, duration_in_days=30, is_active=False)

    db.add_all([basic, pro, legacy, netflix, instagram, youtube, retired, hidden])
    db.commit()

    return {
        "basic": basic,
        "pro": pro,
        "legacy": legacy,
        "netflix": netflix,
        "instagram": instagram,
        "youtube": youtube,
        "retired": retired,
        "hidden": hidden,
    }


@pytest.fixture
def subscribe(db: Session) -> Callable[..., Subscription]:
    """Give a user a subscription row and mirror it onto the user, as a payment would."""
    def _subscribe(
        user: User,
        plan: Plan,
        ends_at: Optional[datetime] = None,
        status: str = SubscriptionStatus.ACTIVE.value,
    ) -> Subscription:
        now = utcnow()
        ends_at = ends_at or now + timedelta(days=plan.duration_in_days)
        subscription = Subscription(
            user_id=user.id,
            plan_id=plan.id,
            status=status,
            starts_at=now - timedelta(days=1),
            ends_at=ends_at,
        )
        db.add(subscription)
        user.current_plan_id = plan.id
        user.subscription_ends_at = ends_at
        db.commit()
        db.refresh(subscription)
        return subscription

    return _subscribe


@pytest.fixture
def test_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def sign_in(client: TestClient) -> Callable[..., str]:
    """Sign in through the API and return the issued token."""
    def _sign_in(email: str, password: str = TEST_PASSWORD, **headers) -> str:
        response = client.post("/api/auth/signin", json={"email": email, "password": password}, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _sign_in


@pytest.fixture
def auth_headers(sign_in, test_user: User) -> dict:
    """Get auth headers for test user."""
    token = sign_in(test_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(sign_in, admin_user: User) -> dict:
    token = sign_in(admin_user.email)
    return {"Authorization": f"Bearer {token}"}
