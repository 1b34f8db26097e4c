"""
Admin actions that touch the session lifecycle.
"""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gecko.core.deps import get_current_admin
from gecko.db.session import get_db
from gecko.models.user import User
from gecko.schemas.auth import BanRequest, BanResponse
from gecko.services.auth import AuthService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/users/{user_id}/ban", response_model=BanResponse)
def set_user_ban(
    user_id: UUID,
    payload: BanRequest,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> BanResponse:
    """
    Ban or unban a user. Banning deletes every session the user holds.
    """
    user, revoked = AuthService(db).set_banned(user_id, payload.banned)
    return BanResponse(id=user.id, email=user.email, banned=user.banned, revoked_sessions=revoked)
