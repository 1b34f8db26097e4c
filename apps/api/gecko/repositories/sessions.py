"""
Persistence for server-side session records.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from gecko.models.session import UserSession


class SessionRepository:
    """
    create / find-by-token / delete-by-user / touch over the ``sessions`` table.

    Methods flush but never commit; the caller owns the transaction so that
    "delete every session, then insert the new one" lands atomically.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: UUID,
        token: str,
        expires_at: datetime,
        now: datetime,
        ip_address: Optional[str] = None,
        device_info: Optional[dict] = None,
    ) -> UserSession:
        record = UserSession(
            user_id=user_id,
            token=token,
            ip_address=ip_address,
            device_info=device_info,
            expires_at=expires_at,
            last_activity_at=now,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def find_by_token(self, token: str) -> Optional[UserSession]:
        return self.db.execute(
            select(UserSession).where(UserSession.token == token)
        ).scalar_one_or_none()

    def list_for_user(self, user_id: UUID) -> list[UserSession]:
        return list(
            self.db.execute(
                select(UserSession)
                .where(UserSession.user_id == user_id)
                .order_by(UserSession.last_activity_at.desc())
            ).scalars()
        )

    def delete_by_user(self, user_id: UUID, except_token: Optional[str] = None) -> int:
        """Delete a user's sessions, optionally sparing the one holding ``except_token``."""
        stmt = delete(UserSession).where(UserSession.user_id == user_id)
        if except_token is not None:
            stmt = stmt.where(UserSession.token != except_token)
        result = self.db.execute(stmt)
        return result.rowcount or 0

    def delete_token(self, token: str) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.token == token))
        return result.rowcount or 0

    def delete_expired(self, now: datetime) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.expires_at <= now))
        return result.rowcount or 0

    def touch(self, record: UserSession, now: datetime) -> None:
        record.last_activity_at = now
        self.db.flush()
