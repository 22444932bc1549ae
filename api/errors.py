"""
HTTP mapping of dashboard errors.

Routers let DashboardError subclasses propagate; the handler registered in
`api.main` turns them into JSON responses. The body always has `detail`
(human-readable message) and, where the client has something to do next,
`action` or `retry`.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConnectivityError,
    DashboardError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ACTION_SETUP = "setup"
ACTION_PENDING_APPROVAL = "pending_approval"
ACTION_LOGIN = "login"


class PendingApprovalError(AuthorizationError):
    """The user signed in but an admin has not approved them yet."""


def error_body(error: DashboardError) -> dict:
    body: dict = {"detail": error.message}
    if isinstance(error, ConnectivityError):
        body["retry"] = True
    elif isinstance(error, ConfigurationError):
        body["action"] = ACTION_SETUP
    elif isinstance(error, PendingApprovalError):
        body["action"] = ACTION_PENDING_APPROVAL
    elif isinstance(error, AuthenticationError):
        body["action"] = ACTION_LOGIN
    return body


def status_code_for(error: DashboardError) -> int:
    if isinstance(error, ConnectivityError):
        return 502
    if isinstance(error, ConfigurationError):
        return 409
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, ValidationError):
        return 422
    return 500


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.warning(
            "Request failed",
            extra={"path": request.url.path, "status_code": status_code, "error": exc.message},
        )
    return JSONResponse(status_code=status_code, content=error_body(exc))


__all__ = [
    "ACTION_PENDING_APPROVAL",
    "ACTION_SETUP",
    "PendingApprovalError",
    "dashboard_error_handler",
    "error_body",
    "status_code_for",
]
