"""
Service catalog: groups contain categories, categories contain services.

Grouping is presentation only. Authorization looks at the plan mapping and
the ``is_active`` flags.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from gecko.db.base import Base
from gecko.models.plan import plan_services


class ServiceGroup(Base):
    __tablename__ = "service_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    categories = relationship("ServiceCategory", back_populates="group")


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon_url = Column(String, nullable=True)
    group_id = Column(Integer, ForeignKey("service_groups.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    group = relationship("ServiceGroup", back_populates="categories")
    services = relationship("Service", back_populates="category")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    icon_url = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("service_categories.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_maintenance = Column(Boolean, nullable=False, default=False)

    # Ordered list of cookie descriptors; managed by the admin tooling, read-only here
    cookie_data = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    category = relationship("ServiceCategory", back_populates="services")
    plans = relationship("Plan", secondary=plan_services, back_populates="services")

    @property
    def is_available(self) -> bool:
        """Service, its category and its group are all switched on."""
        category = self.category
        return bool(
            self.is_active
            and category is not None
            and category.is_active
            and category.group is not None
            and category.group.is_active
        )
