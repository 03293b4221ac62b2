"""
Record pages

List/create/edit/delete views over the Record Gateway for products,
suppliers, invoices, product batches and users. List pages render the shared
records.html table and edit pages render record_edit.html; backend failures
are shown inline on the page.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from inventory_portal.constants.roles import display_role
from inventory_portal.dependencies import PortalContext, get_portal, require_session
from inventory_portal.exceptions import RecordOperationError, ValidationError
from inventory_portal.services import validation
from inventory_portal.templating import render

router = APIRouter(dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)

DATE_FIELDS = {"date", "exp"}


@dataclass
class FormField:
    name: str
    label: str
    type: str = "text"
    required: bool = False
    options: list[tuple[str, str]] = field(default_factory=list)


def _seg(value: Any) -> str:
    return quote(str(value), safe="")


def _records_page(
    request: Request,
    *,
    title: str,
    action: str | None,
    columns: list[str],
    rows: list[dict[str, Any]],
    fields: list[FormField] | None = None,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
):
    context = {
        "title": title,
        "action": action,
        "columns": columns,
        "rows": rows,
        "fields": fields or [],
        "error": error,
    }
    return render(request, "records.html", context, status_code=status_code)


def _form_values(record: BaseModel) -> dict[str, Any]:
    """Prefill values keyed by form field name; dates are cut to YYYY-MM-DD."""
    values = {}
    for name, value in record.model_dump().items():
        if value is None:
            continue
        values[name] = str(value)[:10] if name in DATE_FIELDS else value
    return values


async def _edit_page(
    request: Request,
    *,
    title: str,
    action: str,
    back: str,
    fields: list[FormField],
    load: Callable[[], Awaitable[BaseModel]],
    values: dict[str, Any] | None = None,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
):
    """
    Render the edit form for one record.

    With no ``values`` the record is fetched through ``load``; a failed fetch
    renders the error without a form so nothing stale can be submitted.
    """
    if values is None:
        try:
            values = _form_values(await load())
        except RecordOperationError as e:
            error = error or e.message
            status_code = max(status_code, e.status_code)
            fields = []
            values = {}
    context = {
        "title": title,
        "action": action,
        "back": back,
        "fields": fields,
        "values": values,
        "error": error,
    }
    return render(request, "record_edit.html", context, status_code=status_code)


async def _form_dict(request: Request) -> dict[str, Any]:
    form = await request.form()
    return {key: value for key, value in form.items()}


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(path, status_code=status.HTTP_303_SEE_OTHER)


# ══════════════════════════════════════════════════════════════════════════════
# Inventory (products)
# ══════════════════════════════════════════════════════════════════════════════

PRODUCT_FIELDS = [
    FormField("name", "Name", required=True),
    FormField("description", "Description"),
    FormField("category", "Category"),
    FormField("remaining_quantity", "Quantity", type="number"),
    FormField("latest_unit_price", "Unit Price", type="number"),
]


async def _inventory(request: Request, portal: PortalContext, error: str | None = None, status_code: int = 200):
    rows = []
    try:
        for product in await portal.gateway.products.list():
            base = f"/inventory/{_seg(product.product_id)}" if product.product_id else None
            rows.append(
                {
                    "cells": [
                        product.product_id,
                        product.name,
                        product.category or "",
                        product.remaining_quantity or 0,
                        product.latest_unit_price or 0,
                    ],
                    "edit_url": f"{base}/edit" if base else None,
                    "delete_url": f"{base}/delete" if base else None,
                }
            )
    except RecordOperationError as e:
        error = error or e.message
        status_code = max(status_code, e.status_code)
    return _records_page(
        request,
        title="Inventory",
        action="/inventory",
        columns=["ID", "Name", "Category", "Quantity", "Unit Price"],
        rows=rows,
        fields=PRODUCT_FIELDS,
        error=error,
        status_code=status_code,
    )


def _product_editor(request: Request, portal: PortalContext, product_id: str, **kwargs):
    return _edit_page(
        request,
        title=f"Edit product {product_id}",
        action=f"/inventory/{_seg(product_id)}/edit",
        back="/inventory",
        fields=PRODUCT_FIELDS,
        load=lambda: portal.gateway.products.get(product_id),
        **kwargs,
    )


@router.get("/inventory")
async def list_products(request: Request, portal: PortalContext = Depends(get_portal)):
    return await _inventory(request, portal)


@router.post("/inventory")
async def create_product(request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        payload = validation.validate_product(await _form_dict(request))
        await portal.gateway.products.create(payload)
    except (ValidationError, RecordOperationError) as e:
        return await _inventory(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/inventory")


@router.get("/inventory/{product_id}/edit")
async def edit_product(product_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    return await _product_editor(request, portal, product_id)


@router.post("/inventory/{product_id}/edit")
async def update_product(product_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    form = await _form_dict(request)
    try:
        payload = validation.validate_product(form)
        await portal.gateway.products.update(product_id, data={"productId": product_id, **payload})
    except (ValidationError, RecordOperationError) as e:
        return await _product_editor(request, portal, product_id, values=form, error=e.message, status_code=e.status_code)
    return _redirect("/inventory")


@router.post("/inventory/{product_id}/delete")
async def delete_product(product_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        await portal.gateway.products.delete(product_id)
    except RecordOperationError as e:
        return await _inventory(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/inventory")


# ══════════════════════════════════════════════════════════════════════════════
# Suppliers
# ══════════════════════════════════════════════════════════════════════════════

SUPPLIER_FIELDS = [
    FormField("name", "Name", required=True),
    FormField("email", "Email", type="email"),
    FormField("contact", "Contact"),
    FormField("address", "Address"),
]


async def _suppliers(request: Request, portal: PortalContext, error: str | None = None, status_code: int = 200):
    rows = []
    try:
        for supplier in await portal.gateway.suppliers.list():
            base = f"/suppliers/{_seg(supplier.supplier_id)}" if supplier.supplier_id else None
            rows.append(
                {
                    "cells": [supplier.supplier_id, supplier.name, supplier.email or "", supplier.contact or "", supplier.address or ""],
                    "edit_url": f"{base}/edit" if base else None,
                    "delete_url": f"{base}/delete" if base else None,
                }
            )
    except RecordOperationError as e:
        error = error or e.message
        status_code = max(status_code, e.status_code)
    return _records_page(
        request,
        title="Suppliers",
        action="/suppliers",
        columns=["ID", "Name", "Email", "Contact", "Address"],
        rows=rows,
        fields=SUPPLIER_FIELDS,
        error=error,
        status_code=status_code,
    )


def _supplier_editor(request: Request, portal: PortalContext, supplier_id: str, **kwargs):
    return _edit_page(
        request,
        title=f"Edit supplier {supplier_id}",
        action=f"/suppliers/{_seg(supplier_id)}/edit",
        back="/suppliers",
        fields=SUPPLIER_FIELDS,
        load=lambda: portal.gateway.suppliers.get(supplier_id),
        **kwargs,
    )


@router.get("/suppliers")
async def list_suppliers(request: Request, portal: PortalContext = Depends(get_portal)):
    return await _suppliers(request, portal)


@router.post("/suppliers")
async def create_supplier(request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        payload = validation.validate_supplier(await _form_dict(request))
        await portal.gateway.suppliers.create(payload)
    except (ValidationError, RecordOperationError) as e:
        return await _suppliers(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/suppliers")


@router.get("/suppliers/{supplier_id}/edit")
async def edit_supplier(supplier_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    return await _supplier_editor(request, portal, supplier_id)


@router.post("/suppliers/{supplier_id}/edit")
async def update_supplier(supplier_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    form = await _form_dict(request)
    try:
        payload = validation.validate_supplier(form)
        await portal.gateway.suppliers.update(supplier_id, data={"supplierId": supplier_id, **payload})
    except (ValidationError, RecordOperationError) as e:
        return await _supplier_editor(request, portal, supplier_id, values=form, error=e.message, status_code=e.status_code)
    return _redirect("/suppliers")


@router.post("/suppliers/{supplier_id}/delete")
async def delete_supplier(supplier_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        await portal.gateway.suppliers.delete(supplier_id)
    except RecordOperationError as e:
        return await _suppliers(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/suppliers")


# ══════════════════════════════════════════════════════════════════════════════
# Invoices
# ══════════════════════════════════════════════════════════════════════════════


async def _supplier_names(portal: PortalContext) -> dict[str, str]:
    # Supplier names are supplementary; invoice pages render without them
    try:
        suppliers = await portal.gateway.suppliers.list()
    except RecordOperationError as e:
        logger.warning("Could not load suppliers for invoices: %s", e.message)
        return {}
    return {s.supplier_id: s.name for s in suppliers if s.supplier_id}


def _invoice_fields(names: dict[str, str], *, with_key: bool = True) -> list[FormField]:
    fields = [
        FormField("supplier_id", "Supplier", type="select", required=True, options=sorted(names.items(), key=lambda kv: kv[1])),
        FormField("date", "Date", type="date"),
        FormField("total_amount", "Total Amount", type="number"),
    ]
    if with_key:
        fields.insert(0, FormField("invoice_no", "Invoice No", required=True))
    return fields


async def _invoices(request: Request, portal: PortalContext, error: str | None = None, status_code: int = 200):
    try:
        invoices = await portal.gateway.invoices.list()
    except RecordOperationError as e:
        invoices = []
        error = error or e.message
        status_code = max(status_code, e.status_code)

    names = await _supplier_names(portal)
    rows = [
        {
            "cells": [
                invoice.invoice_no,
                names.get(invoice.supplier_id, invoice.supplier_id),
                invoice.date or "",
                invoice.total_amount if invoice.total_amount is not None else "",
            ],
            "edit_url": f"/invoices/{_seg(invoice.invoice_no)}/edit",
            "delete_url": f"/invoices/{_seg(invoice.invoice_no)}/delete",
        }
        for invoice in invoices
    ]
    return _records_page(
        request,
        title="Invoices",
        action="/invoices",
        columns=["Invoice No", "Supplier", "Date", "Total"],
        rows=rows,
        fields=_invoice_fields(names),
        error=error,
        status_code=status_code,
    )


async def _invoice_editor(request: Request, portal: PortalContext, invoice_no: str, **kwargs):
    names = await _supplier_names(portal)
    return await _edit_page(
        request,
        title=f"Edit invoice {invoice_no}",
        action=f"/invoices/{_seg(invoice_no)}/edit",
        back="/invoices",
        fields=_invoice_fields(names, with_key=False),
        load=lambda: portal.gateway.invoices.get(invoice_no),
        **kwargs,
    )


@router.get("/invoices")
async def list_invoices(request: Request, portal: PortalContext = Depends(get_portal)):
    return await _invoices(request, portal)


@router.post("/invoices")
async def create_invoice(request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        payload = validation.validate_invoice(await _form_dict(request))
        await portal.gateway.invoices.create(payload)
    except (ValidationError, RecordOperationError) as e:
        return await _invoices(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/invoices")


@router.get("/invoices/{invoice_no}/edit")
async def edit_invoice(invoice_no: str, request: Request, portal: PortalContext = Depends(get_portal)):
    return await _invoice_editor(request, portal, invoice_no)


@router.post("/invoices/{invoice_no}/edit")
async def update_invoice(invoice_no: str, request: Request, portal: PortalContext = Depends(get_portal)):
    # The invoice number is the key and comes from the path, never the form
    form = {**await _form_dict(request), "invoice_no": invoice_no}
    try:
        payload = validation.validate_invoice(form)
        await portal.gateway.invoices.update(invoice_no, data=payload)
    except (ValidationError, RecordOperationError) as e:
        return await _invoice_editor(request, portal, invoice_no, values=form, error=e.message, status_code=e.status_code)
    return _redirect("/invoices")


@router.post("/invoices/{invoice_no}/delete")
async def delete_invoice(invoice_no: str, request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        await portal.gateway.invoices.delete(invoice_no)
    except RecordOperationError as e:
        return await _invoices(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/invoices")


# ══════════════════════════════════════════════════════════════════════════════
# Product batches
# ══════════════════════════════════════════════════════════════════════════════

BATCH_KEY_FIELDS = [
    FormField("product_id", "Product ID", required=True),
    FormField("invoice_no", "Invoice No", required=True),
]

BATCH_DETAIL_FIELDS = [
    FormField("batch_no", "Batch No"),
    FormField("qty", "Quantity", type="number", required=True),
    FormField("unit_cost", "Unit Cost", type="number", required=True),
    FormField("unit_price", "Unit Price", type="number", required=True),
    FormField("exp", "Expiry", type="date"),
]

BATCH_FIELDS = BATCH_KEY_FIELDS + BATCH_DETAIL_FIELDS


async def _batches(
    request: Request,
    portal: PortalContext,
    product: str | None = None,
    error: str | None = None,
    status_code: int = 200,
):
    rows = []
    try:
        if product:
            batches = await portal.gateway.product_batches.list_for_product(product)
        else:
            batches = await portal.gateway.product_batches.list()
        for batch in batches:
            base = f"/batches/{_seg(batch.product_id)}/{_seg(batch.invoice_no)}"
            rows.append(
                {
                    "cells": [batch.product_id, batch.invoice_no, batch.batch_no or "", batch.qty, batch.unit_cost, batch.unit_price, (batch.exp or "")[:10]],
                    "edit_url": f"{base}/edit",
                    "delete_url": f"{base}/delete",
                }
            )
    except RecordOperationError as e:
        error = error or e.message
        status_code = max(status_code, e.status_code)
    return _records_page(
        request,
        title=f"Product Batches: {product}" if product else "Product Batches",
        action="/batches",
        columns=["Product", "Invoice", "Batch No", "Qty", "Unit Cost", "Unit Price", "Expiry"],
        rows=rows,
        fields=BATCH_FIELDS,
        error=error,
        status_code=status_code,
    )


def _batch_editor(request: Request, portal: PortalContext, product_id: str, invoice_no: str, **kwargs):
    return _edit_page(
        request,
        title=f"Edit batch {product_id} / {invoice_no}",
        action=f"/batches/{_seg(product_id)}/{_seg(invoice_no)}/edit",
        back="/batches",
        fields=BATCH_DETAIL_FIELDS,
        load=lambda: portal.gateway.product_batches.get(product_id, invoice_no),
        **kwargs,
    )


@router.get("/batches")
async def list_batches(request: Request, product: str | None = None, portal: PortalContext = Depends(get_portal)):
    return await _batches(request, portal, product=product)


@router.post("/batches")
async def create_batch(request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        payload = validation.validate_batch(await _form_dict(request))
        await portal.gateway.product_batches.create(payload)
    except (ValidationError, RecordOperationError) as e:
        return await _batches(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/batches")


@router.get("/batches/{product_id}/{invoice_no}/edit")
async def edit_batch(product_id: str, invoice_no: str, request: Request, portal: PortalContext = Depends(get_portal)):
    return await _batch_editor(request, portal, product_id, invoice_no)


@router.post("/batches/{product_id}/{invoice_no}/edit")
async def update_batch(product_id: str, invoice_no: str, request: Request, portal: PortalContext = Depends(get_portal)):
    form = {**await _form_dict(request), "product_id": product_id, "invoice_no": invoice_no}
    try:
        payload = validation.validate_batch(form)
        await portal.gateway.product_batches.update(product_id, invoice_no, data=payload)
    except (ValidationError, RecordOperationError) as e:
        return await _batch_editor(
            request, portal, product_id, invoice_no, values=form, error=e.message, status_code=e.status_code
        )
    return _redirect("/batches")


@router.post("/batches/{product_id}/{invoice_no}/delete")
async def delete_batch(product_id: str, invoice_no: str, request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        await portal.gateway.product_batches.delete(product_id, invoice_no)
    except RecordOperationError as e:
        return await _batches(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/batches")


# ══════════════════════════════════════════════════════════════════════════════
# Users (admin)
# ══════════════════════════════════════════════════════════════════════════════


async def _users(request: Request, portal: PortalContext, error: str | None = None, status_code: int = 200):
    rows = []
    current = portal.session.subject if portal.session else None
    try:
        for account in await portal.gateway.users.list():
            rows.append(
                {
                    "cells": [account.username, account.email or "", display_role(account.roles)],
                    # Admins cannot delete their own account from here
                    "delete_url": None if account.username == current else f"/users/{_seg(account.username)}/delete",
                }
            )
    except RecordOperationError as e:
        error = error or e.message
        status_code = max(status_code, e.status_code)
    return _records_page(
        request,
        title="User Management",
        action=None,
        columns=["Username", "Email", "Role"],
        rows=rows,
        error=error,
        status_code=status_code,
    )


@router.get("/users")
async def list_users(request: Request, portal: PortalContext = Depends(get_portal)):
    return await _users(request, portal)


@router.post("/users/{username}/delete")
async def delete_user(username: str, request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        await portal.gateway.users.delete(username)
    except RecordOperationError as e:
        return await _users(request, portal, error=e.message, status_code=e.status_code)
    return _redirect("/users")
