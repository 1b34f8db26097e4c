"""
Request dependencies for authentication.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.core.errors import AdminRequired, Unauthenticated
from gecko.db.session import get_db
from gecko.models.user import User
from gecko.services.session_manager import SessionManager

bearer_scheme = HTTPBearer(auto_error=False)


def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Bearer header first, then the extension-readable ``token`` cookie."""
    if credentials is not None and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    cookie_token = request.cookies.get(get_settings().TOKEN_COOKIE_NAME)
    if cookie_token:
        return cookie_token
    raise Unauthenticated()


def get_current_user(token: str = Depends(get_token), db: Session = Depends(get_db)) -> User:
    user = SessionManager(db).validate(token)
    if user is None:
        raise Unauthenticated()
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise AdminRequired()
    return current_user


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"
