"""Inventory Portal: multi-tenant inventory/POS administration front end."""

__version__ = "1.0.0"
