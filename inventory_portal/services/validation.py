"""
Form validation

Required-field and non-negative checks run before any submission. A failing
check raises ValidationError and no network call is made.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from inventory_portal.exceptions import ValidationError


def require(value: Any, field: str, message: str | None = None) -> str:
    """Return ``value`` stripped, or raise when it is blank."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(message or f"{field.replace('_', ' ').capitalize()} is required", field=field)
    return text


def to_decimal(value: Any, field: str, default: Decimal | None = None) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required", field=field)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be a number", field=field)
    if not number.is_finite():
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be a number", field=field)
    return number


def non_negative(value: Any, field: str, message: str | None = None, default: Decimal | None = None) -> Decimal:
    number = to_decimal(value, field, default)
    if number < 0:
        raise ValidationError(message or f"{field.replace('_', ' ').capitalize()} cannot be negative", field=field)
    return number


def positive(value: Any, field: str, message: str | None = None) -> Decimal:
    number = to_decimal(value, field)
    if number <= 0:
        raise ValidationError(message or f"{field.replace('_', ' ').capitalize()} must be greater than 0", field=field)
    return number


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def validate_supplier(form: dict[str, Any]) -> dict[str, Any]:
    return _compact({
        "name": require(form.get("name"), "name"),
        "email": (form.get("email") or "").strip() or None,
        "contact": (form.get("contact") or "").strip() or None,
        "address": (form.get("address") or "").strip() or None,
    })


def validate_product(form: dict[str, Any]) -> dict[str, Any]:
    return _compact({
        "name": require(form.get("name"), "name"),
        "description": (form.get("description") or "").strip() or None,
        "category": (form.get("category") or "").strip() or None,
        "remainingQuantity": float(non_negative(form.get("remaining_quantity"), "remaining_quantity", default=Decimal(0))),
        "latestUnitPrice": float(non_negative(form.get("latest_unit_price"), "latest_unit_price", default=Decimal(0))),
    })


def validate_invoice(form: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "invoiceNo": require(form.get("invoice_no"), "invoice_no", "Invoice number is required"),
        "supplierId": require(form.get("supplier_id"), "supplier_id", "Please select a supplier"),
    }
    if form.get("date"):
        payload["date"] = str(form["date"]).strip()
    if form.get("total_amount") not in (None, ""):
        payload["totalAmount"] = float(non_negative(form.get("total_amount"), "total_amount"))
    return payload


def validate_batch(form: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "productId": require(form.get("product_id"), "product_id", "Please select a product"),
        "invoiceNo": require(form.get("invoice_no"), "invoice_no", "Please select an invoice"),
        "batchNo": (form.get("batch_no") or "").strip() or None,
        "qty": float(positive(form.get("qty"), "qty", "Quantity must be greater than 0")),
        "unitCost": float(non_negative(form.get("unit_cost"), "unit_cost", "Unit cost cannot be negative")),
        "unitPrice": float(non_negative(form.get("unit_price"), "unit_price", "Unit price cannot be negative")),
    }
    if form.get("exp"):
        payload["exp"] = str(form["exp"]).strip()
    return _compact(payload)
