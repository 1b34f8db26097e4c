"""
Catalog and credential schemas.

Catalog entries deliberately have no field for cookie payloads; credentials
only ever travel in ``RestoreResponse``.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


SameSitePolicy = Literal["no_restriction", "lax", "strict"]


class CookieDescriptor(BaseModel):
    """One browser cookie, in the shape the extension's cookie API expects."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    value: str
    domain: str
    path: str = "/"
    secure: bool = False
    http_only: bool = Field(False, alias="httpOnly")
    # Kept as free text: unrecognized policies are dropped by the client, not rejected here
    same_site: Optional[str] = Field(None, alias="sameSite")
    expiration_date: Optional[float] = Field(None, alias="expirationDate")


class ServiceSummary(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    is_maintenance: bool = False

    model_config = ConfigDict(from_attributes=True)


class CategoryWithServices(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    services: List[ServiceSummary]


class GroupWithCategories(BaseModel):
    id: int
    name: str
    categories: List[CategoryWithServices]


class CatalogResponse(BaseModel):
    groups: List[GroupWithCategories]
    total: int


class RestoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_code: str = Field(..., min_length=1, alias="serviceCode")


class RestoreResponse(BaseModel):
    service_code: str
    cookies: List[CookieDescriptor]
