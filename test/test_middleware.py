"""
Tests for middleware modules
"""

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from inventory_portal.middleware.logging import (
    AccessRecord,
    RequestIdFilter,
    StructuredFormatter,
    StructuredLoggingMiddleware,
    client_address,
    request_id_var,
    setup_structured_logging,
)


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


def make_app(handler: logging.Handler) -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    app.add_middleware(StructuredLoggingMiddleware, logger_name="test.access")
    logger = logging.getLogger("test.access")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return app


class TestStructuredLoggingMiddleware:
    """Access log lines and request ids"""

    def test_generates_request_id(self):
        handler = RecordingHandler()
        client = TestClient(make_app(handler))

        response = client.get("/ping")

        assert response.headers["x-request-id"]
        record = handler.records[-1]
        assert record.status_code == 200
        assert record.path == "/ping"
        assert record.levelno == logging.INFO

    def test_propagates_incoming_request_id(self):
        handler = RecordingHandler()
        client = TestClient(make_app(handler))

        response = client.get("/ping", headers={"X-Request-ID": "abc"})

        assert response.headers["x-request-id"] == "abc"
        assert handler.records[-1].request_id == "abc"

    def test_not_found_logged_as_warning(self):
        handler = RecordingHandler()
        client = TestClient(make_app(handler))

        client.get("/missing")

        assert handler.records[-1].levelno == logging.WARNING

    def test_health_checks_not_logged(self):
        handler = RecordingHandler()
        client = TestClient(make_app(handler))

        client.get("/health")

        assert handler.records == []


class TestStructuredFormatter:
    """JSON output"""

    def test_includes_request_id_and_extras(self):
        record = logging.LogRecord("portal", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.request_id = "rid-1"
        record.tenant_key = "acme"
        record.username = "alice"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "hello world"
        assert data["request_id"] == "rid-1"
        assert data["tenant_key"] == "acme"
        assert data["username"] == "alice"
        assert data["level"] == "INFO"

    def test_request_id_filter_reads_context(self):
        token = request_id_var.set("ctx-id")
        try:
            record = logging.LogRecord("portal", logging.INFO, __file__, 1, "x", (), None)
            assert RequestIdFilter().filter(record)
            assert record.request_id == "ctx-id"
        finally:
            request_id_var.reset(token)


class TestSetupStructuredLogging:
    """Root logger configuration"""

    def test_configures_root_and_quietens_httpx(self):
        setup_structured_logging("DEBUG", json_format=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

        setup_structured_logging("INFO", json_format=False)
        assert not isinstance(logging.getLogger().handlers[0].formatter, StructuredFormatter)


def request_with(headers: dict[str, str], client=("10.0.0.9", 5000)) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw, "query_string": b"", "client": client})


class TestAccessRecord:
    """Access line fields"""

    def test_forwarded_for_uses_first_hop(self):
        assert client_address(request_with({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})) == "203.0.113.7"

    def test_real_ip_then_peer(self):
        assert client_address(request_with({"X-Real-IP": "198.51.100.2"})) == "198.51.100.2"
        assert client_address(request_with({})) == "10.0.0.9"
        assert client_address(request_with({}, client=None)) == "unknown"

    def test_level_follows_status(self):
        record = AccessRecord("rid", "GET", "/", 200, 1.0, "ip")
        assert record.level == logging.INFO
        record.status_code = 404
        assert record.level == logging.WARNING
        record.status_code = 502
        assert record.level == logging.ERROR

    def test_extra_omits_unknown_tenant_and_user(self):
        extra = AccessRecord("rid", "GET", "/", 200, 1.0, "ip").extra()
        assert "tenant_key" not in extra
        assert "username" not in extra
        assert AccessRecord("rid", "GET", "/", 200, 1.0, "ip", tenant_key="acme").extra()["tenant_key"] == "acme"
