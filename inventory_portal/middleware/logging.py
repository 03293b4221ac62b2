"""
Structured Logging Middleware

One access line per navigation, emitted as JSON in production. Besides
method, path, status and timing, each line names the tenant key and the
signed-in user once the navigation gate has stored them on ``request.state``.
Exempt paths (health checks, static assets) are not logged.
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from inventory_portal.constants.routes import is_exempt

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"

# Third-party loggers that would otherwise repeat the access line
QUIET_LOGGERS = {"httpx": logging.WARNING, "uvicorn.access": logging.WARNING}


@dataclass
class AccessRecord:
    request_id: str
    method: str
    path: str
    status_code: int
    duration_ms: float
    client_ip: str
    tenant_key: str | None = None
    username: str | None = None

    @property
    def level(self) -> int:
        if self.status_code >= 500:
            return logging.ERROR
        if self.status_code >= 400:
            return logging.WARNING
        return logging.INFO

    def extra(self) -> dict:
        return {key: value for key, value in asdict(self).items() if value is not None}


ACCESS_FIELDS = tuple(AccessRecord.__dataclass_fields__)


def client_address(request: Request) -> str:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.headers.get("X-Real-IP"):
        return request.headers["X-Real-IP"]
    return request.client.host if request.client else "unknown"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")
        return True


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ""),
        }
        payload.update({key: getattr(record, key) for key in ACCESS_FIELDS if key not in payload and hasattr(record, key)})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access logging with request ids.

    An incoming X-Request-ID is reused, otherwise one is generated; either
    way it is echoed on the response.
    """

    def __init__(self, app: ASGIApp, logger_name: str = "portal.access"):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            self._emit(request, request_id, 500, started, error=e)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        self._emit(request, request_id, response.status_code, started)
        return response

    def _emit(
        self,
        request: Request,
        request_id: str,
        status_code: int,
        started: float,
        error: Exception | None = None,
    ) -> None:
        if is_exempt(request.url.path):
            return
        record = AccessRecord(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            client_ip=client_address(request),
            tenant_key=getattr(request.state, "tenant_key", None),
            username=getattr(request.state, "username", None),
        )
        message = f"{record.method} {record.path} -> {record.status_code} in {record.duration_ms}ms"
        if error is not None:
            message = f"{message} ({type(error).__name__}: {error})"
        self.logger.log(record.level, message, extra=record.extra())


def setup_structured_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Install a single root handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, a plain text layout otherwise
    """
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        StructuredFormatter()
        if json_format
        else logging.Formatter("%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] %(message)s")
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level.upper())

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
