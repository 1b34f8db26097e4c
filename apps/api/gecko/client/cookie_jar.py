"""
Browser cookie store abstraction.

The restoration protocol only needs three primitives from the browser:
get-all-by-domain, remove-by-url-and-name, and set-by-descriptor. A browser
bridge implements ``CookieJar``; ``MemoryCookieJar`` backs tests and
headless runs.
"""
import abc
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit


@dataclass
class StoredCookie:
    name: str
    value: str
    domain: str
    path: str = "/"
    secure: bool = False
    http_only: bool = False
    same_site: Optional[str] = None
    expiration_date: Optional[float] = None


@dataclass
class CookieDetails:
    """Arguments for a single cookie write, mirroring the extension API."""
    url: str
    name: str
    value: str
    domain: str
    path: str
    secure: bool
    http_only: bool
    same_site: Optional[str] = None
    expiration_date: Optional[float] = None


class CookieJarError(Exception):
    pass


class CookieJar(abc.ABC):
    @abc.abstractmethod
    async def get_all(self, domain: str) -> List[StoredCookie]:
        """Every cookie whose domain is ``domain`` or one of its subdomains."""

    @abc.abstractmethod
    async def remove(self, url: str, name: str) -> None:
        """Remove the cookie called ``name`` that would be sent to ``url``."""

    @abc.abstractmethod
    async def set(self, details: CookieDetails) -> StoredCookie:
        """Write one cookie. Raises CookieJarError when the store refuses it."""


def bare_domain(domain: str) -> str:
    return domain[1:] if domain.startswith(".") else domain


def domain_matches(cookie_domain: str, domain: str) -> bool:
    cookie_host = bare_domain(cookie_domain).lower()
    host = bare_domain(domain).lower()
    return cookie_host == host or cookie_host.endswith("." + host)


@dataclass
class MemoryCookieJar(CookieJar):
    """In-process cookie store keyed by (domain, path, name)."""
    cookies: Dict[Tuple[str, str, str], StoredCookie] = field(default_factory=dict)

    async def get_all(self, domain: str) -> List[StoredCookie]:
        return [c for c in self.cookies.values() if domain_matches(c.domain, domain)]

    async def remove(self, url: str, name: str) -> None:
        parts = urlsplit(url)
        host = parts.hostname or ""
        path = parts.path or "/"
        for key, cookie in list(self.cookies.items()):
            if (
                cookie.name == name
                and domain_matches(host, cookie.domain)
                and path.startswith(cookie.path)
            ):
                del self.cookies[key]

    async def set(self, details: CookieDetails) -> StoredCookie:
        host = urlsplit(details.url).hostname or ""
        if not domain_matches(host, details.domain):
            raise CookieJarError(f"Cookie domain {details.domain} does not match {details.url}")
        cookie = StoredCookie(
            name=details.name,
            value=details.value,
            domain=details.domain,
            path=details.path,
            secure=details.secure,
            http_only=details.http_only,
            same_site=details.same_site,
            expiration_date=details.expiration_date,
        )
        self.cookies[(cookie.domain, cookie.path, cookie.name)] = cookie
        return cookie
