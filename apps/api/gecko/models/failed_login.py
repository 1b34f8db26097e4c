import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Uuid
from gecko.db.base import Base
from gecko.core.timeutils import utcnow


class FailedLoginAttempt(Base):
    """Append-only record of a password mismatch during sign-in."""
    __tablename__ = "failed_login_attempts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ip_address = Column(String(64), nullable=True)
    attempted_at = Column(DateTime, nullable=False, default=utcnow)

    # Window counts filter on (user_id, attempted_at)
    __table_args__ = (
        Index('idx_failed_login_user_time', 'user_id', 'attempted_at'),
    )
