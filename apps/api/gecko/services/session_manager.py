"""
Bearer-token issuance and server-side session lifecycle.
"""
from datetime import timedelta
from typing import Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.core.security import create_access_token, decode_token
from gecko.core.timeutils import utcnow
from gecko.models.session import UserSession
from gecko.models.user import User
from gecko.repositories.sessions import SessionRepository

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Issues signed tokens and keeps the session table authoritative.

    Two expiries apply to every token: the JWT ``exp`` claim (short) and the
    session row's ``expires_at`` (long). A token is honoured only while both
    hold and the row still exists, so deleting the row revokes a token whose
    signature is still perfectly valid.
    """

    def __init__(self, db: Session, repository: Optional[SessionRepository] = None):
        self.db = db
        self.repository = repository or SessionRepository(db)
        self.settings = get_settings()

    def issue(self, user: User) -> str:
        return create_access_token(
            user_id=str(user.id),
            email=user.email,
            is_admin=user.is_admin,
        )

    def create_session(
        self,
        user_id: UUID,
        token: str,
        ip_address: Optional[str] = None,
        device_info: Optional[dict] = None,
    ) -> UserSession:
        now = utcnow()
        return self.repository.create(
            user_id=user_id,
            token=token,
            expires_at=now + timedelta(days=self.settings.SESSION_EXPIRE_DAYS),
            now=now,
            ip_address=ip_address,
            device_info=device_info,
        )

    def enforce_single_session(self, user_id: UUID) -> int:
        """Drop every existing session for the user ahead of a new sign-in."""
        removed = self.repository.delete_by_user(user_id)
        if removed:
            logger.info(
                f"Evicted {removed} existing session(s) on new sign-in",
                extra={"user_id": str(user_id)},
            )
        return removed

    def _lock_user(self, user_id: UUID) -> None:
        self.db.execute(select(User.id).where(User.id == user_id).with_for_update())

    def start(
        self,
        user: User,
        ip_address: Optional[str] = None,
        device_info: Optional[dict] = None,
    ) -> Tuple[str, UserSession]:
        """
        Sign-in path: evict old sessions, mint a token and persist its row in
        one transaction.

        The user row is locked first, so racing sign-ins for one user run
        their delete-then-insert one after another and the later one deletes
        the earlier one's row.
        """
        self._lock_user(user.id)
        self.enforce_single_session(user.id)
        token = self.issue(user)
        record = self.create_session(user.id, token, ip_address, device_info)
        self.db.commit()
        return token, record

    def validate(self, token: Optional[str]) -> Optional[User]:
        """
        Resolve a bearer token to its user, or None.

        Bad signature, expired claim, missing row, expired row and banned
        user all produce the same None.
        """
        if not token:
            return None

        payload = decode_token(token)
        if payload is None:
            return None

        record = self.repository.find_by_token(token)
        if record is None:
            return None

        if str(record.user_id) != payload.get("sub"):
            return None

        now = utcnow()
        if record.expires_at <= now:
            return None

        user = record.user
        if user is None or user.banned:
            return None

        self.repository.touch(record, now)
        self.db.commit()
        return user

    def revoke(self, user_id: UUID, except_token: Optional[str] = None) -> int:
        """Delete a user's sessions, sparing ``except_token`` when given."""
        removed = self.repository.delete_by_user(user_id, except_token=except_token)
        self.db.commit()
        logger.info(
            f"Revoked {removed} session(s)",
            extra={"user_id": str(user_id)},
        )
        return removed

    def end(self, token: str) -> int:
        """Sign-out: delete the one session holding ``token``."""
        removed = self.repository.delete_token(token)
        self.db.commit()
        return removed

    def purge_expired(self) -> int:
        removed = self.repository.delete_expired(utcnow())
        self.db.commit()
        return removed
