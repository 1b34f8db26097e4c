"""
Credential restoration endpoint for the browser extension.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gecko.core.deps import get_current_user
from gecko.db.session import get_db
from gecko.models.user import User
from gecko.schemas.catalog import RestoreRequest, RestoreResponse
from gecko.services.entitlements import EntitlementResolver

router = APIRouter(tags=["restore"])


@router.post("/restore-cookie", response_model=RestoreResponse)
def restore_cookie(
    payload: RestoreRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RestoreResponse:
    """
    Return the cookie descriptors for one service.

    401 ``authentication_required`` without a live session, 403
    ``subscription_required`` when the plan does not cover the service or
    the service is unknown or inactive.
    """
    cookies = EntitlementResolver(db).fetch_credentials(current_user, payload.service_code)
    return RestoreResponse(service_code=payload.service_code, cookies=cookies)
