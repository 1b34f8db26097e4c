from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.core.errors import LockedOut
from gecko.core.timeutils import utcnow
from gecko.models.failed_login import FailedLoginAttempt

logger = logging.getLogger(__name__)


class LoginGuard:
    """
    Sliding-window counter of failed sign-ins.

    Attempts are never deleted or reset. A lockout ends when enough of them
    fall out of the trailing window.
    """

    def __init__(
        self,
        db: Session,
        threshold: Optional[int] = None,
        window_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.db = db
        self.threshold = threshold if threshold is not None else settings.LOGIN_LOCKOUT_THRESHOLD
        self.window_minutes = (
            window_minutes if window_minutes is not None else settings.LOGIN_LOCKOUT_WINDOW_MINUTES
        )

    def record_failure(self, user_id: UUID, ip_address: Optional[str]) -> FailedLoginAttempt:
        attempt = FailedLoginAttempt(user_id=user_id, ip_address=ip_address, attempted_at=utcnow())
        self.db.add(attempt)
        self.db.commit()
        return attempt

    def failure_count(
        self,
        user_id: UUID,
        window_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Number of failed attempts inside the trailing window."""
        minutes = window_minutes if window_minutes is not None else self.window_minutes
        since = (now or utcnow()) - timedelta(minutes=minutes)
        stmt = select(func.count(FailedLoginAttempt.id)).where(
            FailedLoginAttempt.user_id == user_id,
            FailedLoginAttempt.attempted_at >= since,
        )
        return self.db.execute(stmt).scalar_one()

    def is_locked(self, user_id: UUID, now: Optional[datetime] = None) -> bool:
        return self.failure_count(user_id, now=now) >= self.threshold

    def ensure_not_locked(self, user_id: UUID) -> None:
        """Raise LockedOut when the account is over the threshold."""
        if self.is_locked(user_id):
            logger.warning("Sign-in refused for locked account", extra={"user_id": str(user_id)})
            raise LockedOut()
