"""
Tenant configuration schema.

A TenantConfig is cached and submitted as a whole; no field is ever merged
into a previously cached copy.
"""

from typing import Literal, Optional

from pydantic import ConfigDict, Field

from .base import CamelModel


class Brand(CamelModel):
    name: Optional[str] = None
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None
    favicon_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    font_family: Optional[str] = None


class UiTheme(CamelModel):
    mode: Optional[Literal["light", "dark", "auto"]] = None
    accent_color: Optional[str] = None
    layout_style: Optional[str] = None
    corner_style: Optional[str] = None


class Localization(CamelModel):
    language: Optional[str] = None
    timezone: Optional[str] = None
    currency: Optional[str] = None
    date_format: Optional[str] = None


class Features(CamelModel):
    inventory_module: Optional[bool] = None
    reporting_module: Optional[bool] = None
    supplier_management: Optional[bool] = None
    advanced_pricing: Optional[bool] = None


class TenantConfig(CamelModel):
    # Unknown backend fields (ids, audit stamps) survive a full replace
    model_config = ConfigDict(extra="allow")

    brand: Brand = Field(default_factory=Brand)
    ui_theme: UiTheme = Field(default_factory=UiTheme)
    localization: Localization = Field(default_factory=Localization)
    features: Features = Field(default_factory=Features)
