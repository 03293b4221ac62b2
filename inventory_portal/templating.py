from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates

from inventory_portal.constants.roles import display_role

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(request: Request, name: str, context: dict[str, Any] | None = None, status_code: int = 200):
    """Render a template with the tenant branding and current user in scope."""
    portal = getattr(request.state, "portal", None)
    session = portal.session if portal is not None else None
    base = {
        "tenant": portal.tenant_config if portal is not None else None,
        "user": session,
        "user_role": display_role(session.roles) if session else "",
        "is_admin": portal.is_admin if portal is not None else False,
        "path": request.url.path,
    }
    base.update(context or {})
    return templates.TemplateResponse(request, name, base, status_code=status_code)
