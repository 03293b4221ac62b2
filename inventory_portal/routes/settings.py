"""
Tenant settings (admin)

Shows the tenant's configuration and submits edits as a full replacement.
Form keys are ``<section>.<field>``, e.g. ``brand.primary_color``.
"""

import logging
from typing import Any, Literal, get_args, get_origin

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from inventory_portal.dependencies import PortalContext, get_portal, require_session
from inventory_portal.exceptions import ApiError, ValidationError
from inventory_portal.schemas import Brand, Features, Localization, TenantConfig, UiTheme
from inventory_portal.templating import render

router = APIRouter(dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)

SECTIONS: list[tuple[str, str, type[BaseModel]]] = [
    ("brand", "Branding", Brand),
    ("ui_theme", "Theme", UiTheme),
    ("localization", "Localization", Localization),
    ("features", "Features", Features),
]


def _field_kind(annotation: Any) -> tuple[str, tuple[str, ...]]:
    args = get_args(annotation)
    if bool in args:
        return "checkbox", ()
    for arg in args:
        if get_origin(arg) is Literal:
            return "select", get_args(arg)
    return "text", ()


def form_sections(config: TenantConfig | None) -> list[dict[str, Any]]:
    """Describe the settings form, pre-filled from ``config``."""
    config = config or TenantConfig()
    sections = []
    for name, title, model in SECTIONS:
        current = getattr(config, name)
        fields = []
        for field_name, info in model.model_fields.items():
            kind, options = _field_kind(info.annotation)
            fields.append(
                {
                    "key": f"{name}.{field_name}",
                    "label": field_name.replace("_", " ").capitalize(),
                    "kind": kind,
                    "options": options,
                    "value": getattr(current, field_name),
                }
            )
        sections.append({"title": title, "fields": fields})
    return sections


def config_from_form(form: dict[str, Any], base: TenantConfig | None = None) -> TenantConfig:
    """
    Build a complete TenantConfig from submitted form values.

    Unchecked checkboxes are False and blank text fields are None. Unknown
    top-level fields of ``base`` (backend ids and the like) are carried over
    so the replacement does not drop them.
    """
    values: dict[str, Any] = dict(base.model_extra or {}) if base is not None else {}
    for name, _title, model in SECTIONS:
        section: dict[str, Any] = {}
        for field_name, info in model.model_fields.items():
            key = f"{name}.{field_name}"
            kind, _options = _field_kind(info.annotation)
            if kind == "checkbox":
                section[field_name] = key in form
            else:
                raw = (form.get(key) or "").strip()
                section[field_name] = raw or None
        values[name] = section
    try:
        return TenantConfig.model_validate(values)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid value for {field}", field=field) from e


async def _settings_page(
    request: Request,
    portal: PortalContext,
    config: TenantConfig | None = None,
    error: str | None = None,
    message: str | None = None,
    status_code: int = status.HTTP_200_OK,
):
    missing = False
    if config is None:
        try:
            config = await portal.resolver.load_config()
        except ApiError as e:
            error = error or e.message
            status_code = max(status_code, e.status_code)
        missing = config is None and error is None
    return render(
        request,
        "settings.html",
        {
            "sections": form_sections(config),
            "missing": missing,
            "error": error,
            "message": message,
        },
        status_code=status_code,
    )


@router.get("/settings")
async def get_settings(request: Request, saved: bool = False, portal: PortalContext = Depends(get_portal)):
    return await _settings_page(request, portal, message="Settings saved" if saved else None)


@router.post("/settings")
async def update_settings(request: Request, portal: PortalContext = Depends(get_portal)):
    form = dict((await request.form()).items())
    config = None
    try:
        config = config_from_form(form, base=portal.tenant_config)
        await portal.resolver.update_config(config)
    except (ValidationError, ApiError) as e:
        return await _settings_page(request, portal, config=config, error=e.message, status_code=e.status_code)
    return RedirectResponse("/settings?saved=true", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/settings/initialize")
async def initialize_settings(request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        await portal.resolver.initialize_default_config()
    except ApiError as e:
        return await _settings_page(request, portal, error=e.message, status_code=e.status_code)
    return RedirectResponse("/settings?saved=true", status_code=status.HTTP_303_SEE_OTHER)
