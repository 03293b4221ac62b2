import logging

import httpx
import uvicorn
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from inventory_portal.config import Settings, settings as default_settings
from inventory_portal.exception_handlers import register_exception_handlers
from inventory_portal.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from inventory_portal.middleware.navigation import NavigationMiddleware
from inventory_portal.routes import auth, pages, records, sales
from inventory_portal.routes import settings as tenant_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """
    Create the portal application.

    Args:
        settings: Overrides the environment-loaded settings
        transport: httpx transport for backend calls (tests inject a MockTransport)
    """
    settings = settings or default_settings
    setup_structured_logging(settings.log_level, json_format=settings.log_json)

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant inventory management portal",
        debug=settings.debug,
        version=settings.app_version,
    )

    # Middleware runs in reverse order of registration: access logging wraps
    # the session cookie, which wraps the navigation gate.
    app.add_middleware(NavigationMiddleware, settings=settings, transport=transport)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie=settings.session_cookie_name,
        max_age=None,
        https_only=settings.secure_cookies,
    )
    app.add_middleware(StructuredLoggingMiddleware)

    app.include_router(pages.router, tags=["Pages"])
    app.include_router(auth.router, tags=["Auth"])
    app.include_router(records.router, tags=["Records"])
    app.include_router(sales.router, tags=["Sales"])
    app.include_router(tenant_settings.router, tags=["Settings"])

    register_exception_handlers(app)

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode against {settings.api_base_url}")
        logging.getLogger("httpx").setLevel(logging.DEBUG)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=default_settings.debug)
