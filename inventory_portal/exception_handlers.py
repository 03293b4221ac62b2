"""
Global Exception Handlers for the Inventory Portal

Browser requests get an HTML error page; clients that ask for JSON get the
standard envelope:

{
    "error": {
        "status_code": 404,
        "message": "Tenant 'acme' not found",
        "type": "Not Found",
        "details": {"tenant_key": "acme"},
        "path": "/dashboard"
    }
}

An expired or rejected session is never shown as an error; it becomes a
redirect to the login page.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory_portal.exceptions import PortalError, SessionExpiredError
from inventory_portal.templating import render

logger = logging.getLogger(__name__)


def wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


def create_error_response(
    status_code: int,
    message: str,
    details: dict[str, Any] | None = None,
    path: str | None = None,
) -> JSONResponse:
    """Create a standardized JSON error response."""
    error_response: dict[str, Any] = {
        "error": {
            "status_code": status_code,
            "message": message,
            "type": get_error_type(status_code),
        }
    }

    if details:
        error_response["error"]["details"] = details

    if path:
        error_response["error"]["path"] = path

    return JSONResponse(status_code=status_code, content=error_response)


def get_error_type(status_code: int) -> str:
    """Get a human-readable error type based on status code."""
    error_types = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        409: "Conflict",
        422: "Validation Error",
        500: "Internal Server Error",
        502: "Bad Gateway",
        503: "Service Unavailable",
    }
    return error_types.get(status_code, "Error")


def _error_page(request: Request, status_code: int, message: str, details: dict[str, Any] | None = None):
    if wants_json(request):
        return create_error_response(status_code, message, details=details, path=request.url.path)
    return render(
        request,
        "error.html",
        {"status_code": status_code, "error_type": get_error_type(status_code), "message": message},
        status_code=status_code,
    )


async def session_expired_handler(request: Request, exc: SessionExpiredError):
    """Silent purge + redirect to login; the purge itself already happened."""
    logger.info("Session expired on %s; redirecting to login", request.url.path)
    if wants_json(request):
        return create_error_response(exc.status_code, exc.message, path=request.url.path)
    portal = getattr(request.state, "portal", None)
    login_path = portal.settings.login_path if portal is not None else "/login"
    return RedirectResponse(login_path, status_code=status.HTTP_303_SEE_OTHER)


async def portal_exception_handler(request: Request, exc: PortalError):
    logger.error(
        f"PortalError: {exc.message}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    return _error_page(request, exc.status_code, exc.message, exc.details or None)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        f"HTTPException: {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    return _error_page(request, exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log with traceback; never expose internal details."""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        path=request.url.path,
    )


def register_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(SessionExpiredError, session_expired_handler)
    app.add_exception_handler(PortalError, portal_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")
