"""
Extension-side code: API client, cookie jar abstraction, token hand-off and
the credential restoration protocol.
"""
from gecko.client.api import AuthenticationRequired, ClientError, GeckoClient, SubscriptionRequired
from gecko.client.cookie_jar import CookieDetails, CookieJar, MemoryCookieJar, StoredCookie
from gecko.client.restore import CookieRestorer, RestoreError, RestoreResult, RestoreStatus
from gecko.client.token_channel import LocalTokenChannel, TokenChannel

__all__ = [
    "AuthenticationRequired",
    "ClientError",
    "GeckoClient",
    "SubscriptionRequired",
    "CookieDetails",
    "CookieJar",
    "MemoryCookieJar",
    "StoredCookie",
    "CookieRestorer",
    "RestoreError",
    "RestoreResult",
    "RestoreStatus",
    "LocalTokenChannel",
    "TokenChannel",
]
