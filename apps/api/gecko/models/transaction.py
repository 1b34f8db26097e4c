import enum
import uuid
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, JSON, Uuid, func
from sqlalchemy.orm import relationship
from gecko.db.base import Base


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class Transaction(Base):
    """A payment order for a plan, settled by the payment collaborator's callback."""
    __tablename__ = "transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    order_id = Column(String(50), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value)
    payment_type = Column(String(50), nullable=True)
    gateway_transaction_id = Column(String(100), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    user = relationship("User")
    plan = relationship("Plan")
