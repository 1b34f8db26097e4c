from typing import Optional, Tuple
import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.core.errors import InvalidCredentials
from gecko.core.security import hash_password, verify_password
from gecko.core.timeutils import utcnow
from gecko.models.user import User
from gecko.schemas.auth import UserSignUp
from gecko.services.login_guard import LoginGuard
from gecko.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class AuthService:
    """Sign-up, sign-in, sign-out and password changes."""

    def __init__(
        self,
        db: Session,
        guard: Optional[LoginGuard] = None,
        sessions: Optional[SessionManager] = None,
    ):
        self.db = db
        self.guard = guard or LoginGuard(db)
        self.sessions = sessions or SessionManager(db)
        self.settings = get_settings()

    def _check_password_length(self, password: str, label: str = "Password") -> None:
        if len(password) < self.settings.PASSWORD_MIN_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{label} must be at least {self.settings.PASSWORD_MIN_LENGTH} characters long",
            )

    def sign_up(self, data: UserSignUp) -> User:
        self._check_password_length(data.password)

        existing = self.db.execute(select(User).where(User.email == data.email)).scalar_one_or_none()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User with this email already exists",
            )

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=hash_password(data.password),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def sign_in(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        device_info: Optional[dict] = None,
    ) -> Tuple[User, str]:
        """
        Authenticate and open the user's only session.

        The lockout check runs before the password hash is compared, so a
        locked account is refused even with the right password.
        """
        user = self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user is None or user.banned:
            raise InvalidCredentials()

        self.guard.ensure_not_locked(user.id)

        if not verify_password(password, user.hashed_password):
            self.guard.record_failure(user.id, ip_address)
            logger.warning("Sign-in failed: bad password", extra={"user_id": str(user.id)})
            raise InvalidCredentials()

        user.last_login_at = utcnow()
        token, _ = self.sessions.start(user, ip_address=ip_address, device_info=device_info)
        logger.info("Signed in", extra={"user_id": str(user.id)})
        return user, token

    def sign_out(self, token: str) -> None:
        self.sessions.end(token)

    def change_password(self, user: User, token: str, current_password: str, new_password: str) -> int:
        """Set a new password and revoke every session except the caller's."""
        self._check_password_length(new_password, label="New password")

        if not verify_password(current_password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect",
            )

        user.hashed_password = hash_password(new_password)
        self.db.flush()
        return self.sessions.revoke(user.id, except_token=token)

    def set_banned(self, user_id, banned: bool) -> Tuple[User, int]:
        user = self.db.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        user.banned = banned
        self.db.flush()
        revoked = 0
        if banned:
            revoked = self.sessions.revoke(user.id)
        else:
            self.db.commit()
        logger.info(f"User {'banned' if banned else 'unbanned'}", extra={"user_id": str(user.id)})
        return user, revoked
