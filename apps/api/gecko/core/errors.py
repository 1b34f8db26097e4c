"""
Domain errors and their HTTP representation.

Every error carries a machine-readable ``reason`` that the browser extension
switches on, plus an optional ``redirect`` hint telling the client which flow
(sign-in or subscription) resolves it.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GeckoError(Exception):
    """Base class for errors recovered at the API boundary."""

    status_code = status.HTTP_400_BAD_REQUEST
    reason = "bad_request"
    redirect: str | None = None
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.reason,
            "message": self.message,
            "redirect": self.redirect,
        }


class Unauthenticated(GeckoError):
    """Missing, malformed, expired or revoked token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "authentication_required"
    redirect = "/auth/signin"
    default_message = "Authentication required"


class InvalidCredentials(GeckoError):
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "invalid_credentials"
    default_message = "Invalid credentials"


class LockedOut(GeckoError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    reason = "account_locked"
    default_message = "Account temporarily locked due to too many failed attempts"


class NotEntitled(GeckoError):
    """
    No active subscription, service outside the plan, or an unknown/inactive
    service code. The three cases look identical to the caller.
    """

    status_code = status.HTTP_403_FORBIDDEN
    reason = "subscription_required"
    redirect = "/subscribe"
    default_message = "Active subscription required"


class AdminRequired(GeckoError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "admin_required"
    default_message = "Admin access required"


class PlanUnavailable(GeckoError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "plan_not_found"
    default_message = "Plan not found or inactive"


class PurchaseBlocked(GeckoError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "subscription_active"
    default_message = "You already have an active subscription"


class OrderNotFound(GeckoError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "order_not_found"
    default_message = "Transaction not found"


class OrderMismatch(GeckoError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "order_mismatch"
    default_message = "Callback does not match the stored order"


async def gecko_error_handler(request: Request, exc: GeckoError) -> JSONResponse:
    """Render a domain error as a structured JSON body."""
    logger.info(
        f"{exc.reason} on {request.method} {request.url.path}",
        extra={"request_id": request.headers.get("X-Request-ID")},
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GeckoError, gecko_error_handler)
