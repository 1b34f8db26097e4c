"""
Seed script for the Gecko Store development database.

Creates the plans, the service catalog with sample cookie descriptors and an
admin account for local development.

Usage:
    cd apps/api
    alembic upgrade head
    python scripts/seed.py
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gecko.core.security import hash_password
from gecko.models import Plan, Service, ServiceCategory, ServiceGroup, User


# Database URL from environment or default
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./gecko.db")

ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@gecko.local")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "change-me-now")


def sample_cookie(name: str, value: str, domain: str) -> dict:
    return {
        "name": name,
        "value": value,
        "domain": domain,
        "path": "/",
        "secure": True,
        "httpOnly": False,
    }


def seed_database():
    """Seed the database with plans, catalog and an admin user."""
    engine = create_engine(DATABASE_URL)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    try:
        if session.query(Plan).count() > 0:
            print("Database already seeded. Skipping...")
            return

        print("Seeding database...")

        basic = Plan(
            name="Basic",
            price=1,
            duration_in_days=7,
            features=["Access to basic social media services", "1 account per service", "Email support"],
        )
        pro = Plan(
            name="Pro",
            price=2,
            duration_in_days=30,
            features=["Access to all basic services", "Premium streaming services", "5 accounts per service", "Priority support"],
            is_popular=True,
        )
        premium = Plan(
            name="Premium",
            price=3,
            duration_in_days=30,
            features=["All Pro features", "Unlimited accounts", "24/7 support", "Custom cookie requests"],
        )
        session.add_all([basic, pro, premium])

        social_group = ServiceGroup(name="Social Media")
        streaming_group = ServiceGroup(name="Streaming")
        social = ServiceCategory(name="Social Platforms", description="Popular social media platforms", group=social_group)
        streaming = ServiceCategory(name="Video Streaming", description="Premium video streaming services", group=streaming_group)
        session.add_all([social_group, streaming_group, social, streaming])

        netflix = Service(
            code="netflix",
            name="Netflix Premium",
            description="Access Netflix with premium account",
            category=streaming,
            cookie_data=[sample_cookie("NetflixId", "sample_value", ".netflix.com")],
        )
        instagram = Service(
            code="instagram",
            name="Instagram Business",
            description="Instagram business account access",
            category=social,
            cookie_data=[sample_cookie("sessionid", "sample_session", ".instagram.com")],
        )
        youtube = Service(
            code="youtube",
            name="YouTube Premium",
            description="YouTube premium account access",
            category=social,
            cookie_data=[sample_cookie("YSC", "sample_ysc", ".youtube.com")],
        )
        session.add_all([netflix, instagram, youtube])

        basic.services = [instagram, youtube]
        pro.services = [instagram, youtube, netflix]
        premium.services = [instagram, youtube, netflix]

        admin = User(
            name="Administrator",
            email=ADMIN_EMAIL,
            hashed_password=hash_password(ADMIN_PASSWORD),
            is_admin=True,
        )
        session.add(admin)

        session.commit()
        print(f"Created plans: {basic.name}, {pro.name}, {premium.name}")
        print(f"Created services: {netflix.code}, {instagram.code}, {youtube.code}")
        print(f"Created admin: {admin.email}")
        print("Database seeded successfully!")

    except Exception as e:
        session.rollback()
        print(f"Error seeding database: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    seed_database()
