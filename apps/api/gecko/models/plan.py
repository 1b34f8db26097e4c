from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, ForeignKey, JSON, Table, func
from sqlalchemy.orm import relationship
from gecko.db.base import Base


# Entitlement mapping: which services each plan unlocks
plan_services = Table(
    "plan_services",
    Base.metadata,
    Column("plan_id", Integer, ForeignKey("plans.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    duration_in_days = Column(Integer, nullable=False)
    features = Column(JSON, nullable=True)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    services = relationship("Service", secondary=plan_services, back_populates="plans")
