import json
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from gecko.models.service import Service, ServiceCategory
from gecko.schemas.catalog import CookieDescriptor


class CredentialStore:
    """Read-only access to per-service cookie descriptor sets."""

    def __init__(self, db: Session):
        self.db = db

    def get_service(self, code: str) -> Optional[Service]:
        stmt = (
            select(Service)
            .options(joinedload(Service.category).joinedload(ServiceCategory.group))
            .where(Service.code == code)
        )
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def descriptors(self, service: Service) -> List[CookieDescriptor]:
        """
        Parse the stored descriptor list into fresh objects.

        Older rows hold the list as a JSON-encoded string rather than a JSON array.
        """
        raw = service.cookie_data or []
        if isinstance(raw, str):
            raw = json.loads(raw)
        return [CookieDescriptor.model_validate(item) for item in raw]
