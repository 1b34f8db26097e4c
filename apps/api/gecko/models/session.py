"""
Server-side session records.

A bearer token is honoured only while a row holding that exact token exists
and has not passed ``expires_at``. Deleting the row revokes the token even
though its signature stays valid until the JWT ``exp``.
"""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, Index, Uuid, func
from sqlalchemy.orm import relationship
from gecko.db.base import Base


class UserSession(Base):
    __tablename__ = "sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # The bearer token itself, not a derived identifier
    token = Column(Text, nullable=False, unique=True)

    ip_address = Column(String(64), nullable=True)
    device_info = Column(JSON, nullable=True)
    expires_at = Column(DateTime, nullable=False)
    last_activity_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="sessions")

    __table_args__ = (
        Index('idx_sessions_user_id', 'user_id'),
    )
