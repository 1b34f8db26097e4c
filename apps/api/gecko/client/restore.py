"""
Credential restoration: swap a service's cookies into the local browser.

One attempt runs request, target resolution, clear, set and navigate, in
that order. Every removal of the clear phase is awaited before the first
write of the set phase. There is no rollback: a cookie that fails to write
is logged and skipped, and the attempt still navigates.
"""
import asyncio
import contextlib
import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Protocol

from gecko.client.api import AuthenticationRequired, SubscriptionRequired
from gecko.client.cookie_jar import CookieDetails, CookieJar, StoredCookie, bare_domain
from gecko.schemas.catalog import CookieDescriptor

logger = logging.getLogger(__name__)

SAME_SITE_POLICIES = frozenset({"no_restriction", "lax", "strict"})

Navigator = Callable[[str], Awaitable[None]]


class CredentialSource(Protocol):
    async def fetch_credentials(self, service_code: str) -> List[CookieDescriptor]:
        ...


class RestoreStatus(str, enum.Enum):
    RESTORED = "restored"
    LOGIN_REQUIRED = "login_required"
    UPGRADE_REQUIRED = "upgrade_required"


class RestoreError(Exception):
    """Raised when an attempt aborts before touching the cookie jar."""


@dataclass
class RestoreResult:
    status: RestoreStatus
    service_code: str
    target_url: Optional[str] = None
    cleared: int = 0
    cookies_set: int = 0
    failed: List[str] = field(default_factory=list)
    redirect: Optional[str] = None


def scheme_for(secure: bool) -> str:
    return "https" if secure else "http"


def target_url_for(descriptors: List[CookieDescriptor]) -> str:
    first = descriptors[0]
    return f"{scheme_for(first.secure)}://{bare_domain(first.domain)}"


def cookie_url(secure: bool, domain: str, path: str) -> str:
    return f"{scheme_for(secure)}://{bare_domain(domain)}{path or '/'}"


def build_cookie_details(descriptor: CookieDescriptor) -> CookieDetails:
    """
    Set-call arguments for one descriptor. An unrecognized same-site value
    is left out so the browser default applies.
    """
    same_site = descriptor.same_site if descriptor.same_site in SAME_SITE_POLICIES else None
    return CookieDetails(
        url=cookie_url(descriptor.secure, descriptor.domain, descriptor.path),
        name=descriptor.name,
        value=descriptor.value,
        domain=descriptor.domain,
        path=descriptor.path,
        secure=descriptor.secure,
        http_only=descriptor.http_only,
        same_site=same_site,
        expiration_date=descriptor.expiration_date or None,
    )


class CookieRestorer:
    """
    Runs restoration attempts against one cookie jar.

    Attempts for the same target domain are serialized by a per-domain lock
    so one attempt's clear phase cannot interleave with another's set phase.
    Attempts for different domains run concurrently.
    """

    def __init__(self, source: CredentialSource, jar: CookieJar, navigate: Navigator):
        self.source = source
        self.jar = jar
        self.navigate = navigate
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_holders: Dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def _domain_lock(self, domain: str):
        """Hold the lock for ``domain``; it is dropped once no attempt holds or awaits it."""
        lock = self._locks.setdefault(domain, asyncio.Lock())
        self._lock_holders[domain] = self._lock_holders.get(domain, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[domain] -= 1
            if not self._lock_holders[domain]:
                del self._lock_holders[domain]
                del self._locks[domain]

    async def restore(self, service_code: str) -> RestoreResult:
        try:
            descriptors = await self.source.fetch_credentials(service_code)
        except AuthenticationRequired as exc:
            return RestoreResult(RestoreStatus.LOGIN_REQUIRED, service_code, redirect=exc.redirect)
        except SubscriptionRequired as exc:
            return RestoreResult(RestoreStatus.UPGRADE_REQUIRED, service_code, redirect=exc.redirect)

        if not descriptors:
            raise RestoreError(f"No cookies available for {service_code}")

        target_domain = bare_domain(descriptors[0].domain)
        target_url = target_url_for(descriptors)

        async with self._domain_lock(target_domain):
            cleared = await self._clear(target_domain)
            cookies_set, failed = await self._set_all(descriptors)

        await self.navigate(target_url)
        logger.info(
            f"Restored {cookies_set}/{len(descriptors)} cookies for {service_code}",
            extra={"service_code": service_code},
        )
        return RestoreResult(
            RestoreStatus.RESTORED,
            service_code,
            target_url=target_url,
            cleared=cleared,
            cookies_set=cookies_set,
            failed=failed,
        )

    async def _clear(self, domain: str) -> int:
        """Remove every cookie for ``domain``. Enumeration failure aborts the attempt."""
        try:
            existing = await self.jar.get_all(domain)
        except Exception as exc:
            raise RestoreError(f"Could not list cookies for {domain}") from exc

        results = await asyncio.gather(
            *(self._remove(cookie) for cookie in existing),
            return_exceptions=True,
        )
        return sum(1 for r in results if r is True)

    async def _remove(self, cookie: StoredCookie) -> bool:
        url = cookie_url(cookie.secure, cookie.domain, cookie.path)
        try:
            await self.jar.remove(url, cookie.name)
        except Exception as exc:
            # Already gone is fine
            logger.warning(f"Could not remove cookie {cookie.name}: {exc}")
            return False
        return True

    async def _set_all(self, descriptors: List[CookieDescriptor]):
        results = await asyncio.gather(
            *(self._set(descriptor) for descriptor in descriptors),
            return_exceptions=True,
        )
        failed = [d.name for d, ok in zip(descriptors, results) if ok is not True]
        return len(descriptors) - len(failed), failed

    async def _set(self, descriptor: CookieDescriptor) -> bool:
        try:
            await self.jar.set(build_cookie_details(descriptor))
        except Exception as exc:
            logger.warning(f"Failed to set cookie {descriptor.name}: {exc}")
            return False
        return True
