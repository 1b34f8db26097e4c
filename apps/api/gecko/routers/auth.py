"""
Authentication router with sign-up, sign-in, sign-out, profile and password endpoints.
"""
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from gecko.core.config import get_settings
from gecko.core.deps import client_ip, get_current_user, get_token
from gecko.db.session import get_db
from gecko.models.user import User
from gecko.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    MessageResponse,
    UserResponse,
    UserSignIn,
    UserSignUp,
)
from gecko.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def sign_up(user_data: UserSignUp, db: Session = Depends(get_db)) -> User:
    """
    Register a new user account.
    The user signs in separately afterwards.
    """
    return AuthService(db).sign_up(user_data)


@router.post("/signin", response_model=AuthResponse)
def sign_in(
    credentials: UserSignIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> AuthResponse:
    """
    Authenticate and open a session. Any other session of this user ends.

    The token is returned in the body, the ``X-JWT-Token`` header and a
    cookie readable by the browser extension.
    """
    user, token = AuthService(db).sign_in(
        email=credentials.email,
        password=credentials.password,
        ip_address=client_ip(request),
        device_info={"user_agent": request.headers.get("user-agent")},
    )

    response.set_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        value=token,
        httponly=False,
        secure=settings.TOKEN_COOKIE_SECURE,
        samesite="lax",
        max_age=60 * 60 * 24 * settings.SESSION_EXPIRE_DAYS,
    )
    response.headers["X-JWT-Token"] = token

    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/signout", response_model=MessageResponse)
def sign_out(
    response: Response,
    token: str = Depends(get_token),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Delete the presented token's session and clear the token cookie."""
    AuthService(db).sign_out(token)
    response.delete_cookie(settings.TOKEN_COOKIE_NAME, samesite="lax")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)) -> User:
    """
    Get the current authenticated user's profile.
    """
    return current_user


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    token: str = Depends(get_token),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """
    Change the password. Every other session of this user is signed out;
    the session making the change stays valid.
    """
    AuthService(db).change_password(
        current_user,
        token,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return MessageResponse(message="Password changed successfully")
