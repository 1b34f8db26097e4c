"""
HTTP client the browser extension uses to talk to the Gecko Store API.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from gecko.client.token_channel import TokenChannel
from gecko.schemas.catalog import CatalogResponse, CookieDescriptor

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """Base class for API errors seen by the extension."""

    def __init__(self, message: str, status_code: Optional[int] = None, redirect: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.redirect = redirect


class AuthenticationRequired(ClientError):
    """The token is missing or no longer backed by a live session."""


class SubscriptionRequired(ClientError):
    """Signed in, but the plan does not cover the request."""


class GeckoClient:
    """
    Thin async wrapper over the extension-facing endpoints.

    A 401 clears the stored token and broadcasts the sign-out on the token
    channel so every part of the extension falls back to the login flow.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        channel: Optional[TokenChannel] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self.channel = channel
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._unsubscribe = channel.subscribe(self._on_token) if channel else None

    def _on_token(self, token: Optional[str]) -> None:
        self.token = token

    async def aclose(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
        await self._http.aclose()

    async def __aenter__(self) -> "GeckoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            raise AuthenticationRequired("No token available")
        return {"Authorization": f"Bearer {self.token}"}

    def _forget_token(self) -> None:
        self.token = None
        if self.channel is not None:
            self.channel.publish(None)

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        response = await self._http.request(method, path, headers=self._headers(), json=json)

        if response.status_code == 401:
            body = _safe_json(response)
            logger.info("Token rejected by server, clearing local token")
            self._forget_token()
            raise AuthenticationRequired(
                body.get("message", "Authentication required"),
                status_code=401,
                redirect=body.get("redirect"),
            )
        if response.status_code == 403:
            body = _safe_json(response)
            raise SubscriptionRequired(
                body.get("message", "Active subscription required"),
                status_code=403,
                redirect=body.get("redirect"),
            )
        if response.is_error:
            body = _safe_json(response)
            raise ClientError(
                body.get("message") or body.get("detail") or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def list_services(self) -> CatalogResponse:
        return CatalogResponse.model_validate(await self._request("GET", "/api/services"))

    async def fetch_credentials(self, service_code: str) -> List[CookieDescriptor]:
        data = await self._request("POST", "/api/restore-cookie", json={"serviceCode": service_code})
        return [CookieDescriptor.model_validate(item) for item in data.get("cookies", [])]

    async def session_check(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/session-check")


def _safe_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
