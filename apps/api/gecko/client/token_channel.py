"""
Token hand-off between the web app and the extension.

The web app publishes the token it receives at sign-in (and None at
sign-out); the extension subscribes and keeps its own copy. Any transport
that can deliver a string, such as window messaging or extension runtime
messages, can sit behind ``TokenChannel``.
"""
import abc
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

TokenCallback = Callable[[Optional[str]], None]


class TokenChannel(abc.ABC):
    @abc.abstractmethod
    def publish(self, token: Optional[str]) -> None:
        """Announce a new token, or None when the user signed out."""

    @abc.abstractmethod
    def subscribe(self, callback: TokenCallback) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""


class LocalTokenChannel(TokenChannel):
    """
    Synchronous in-process channel. New subscribers immediately receive the
    last published token.
    """

    def __init__(self):
        self._subscribers: List[TokenCallback] = []
        self._latest: Optional[str] = None

    @property
    def latest(self) -> Optional[str]:
        return self._latest

    def publish(self, token: Optional[str]) -> None:
        self._latest = token
        for callback in list(self._subscribers):
            try:
                callback(token)
            except Exception:
                logger.exception("Token subscriber failed")

    def subscribe(self, callback: TokenCallback) -> Callable[[], None]:
        self._subscribers.append(callback)
        if self._latest is not None:
            callback(self._latest)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
