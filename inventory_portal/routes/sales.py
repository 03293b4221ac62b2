"""
Sales entry and transaction history.

The entry form posts parallel ``product_id`` / ``qty`` / ``unit_price`` lists,
one entry per line item. Amounts are derived server-side; anything the
browser sends for gross/net/balance is ignored. Editing a recorded sale
goes through the same form and the same amount derivation.
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from starlette.datastructures import FormData

from inventory_portal.dependencies import PortalContext, get_portal, require_session
from inventory_portal.exceptions import RecordOperationError, ValidationError
from inventory_portal.services.sales_service import PAYMENT_METHODS, SaleDraft, draft_from_form
from inventory_portal.templating import render

router = APIRouter(dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)

BLANK_ROWS = 3


def _edit_url(transaction_id: str) -> str:
    return f"/sales/{quote(transaction_id, safe='')}/edit"


async def _sales_page(
    request: Request,
    portal: PortalContext,
    draft: SaleDraft | None = None,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
    editing: str | None = None,
):
    gateway = portal.gateway
    try:
        transactions = await gateway.transactions.list()
    except RecordOperationError as e:
        transactions = []
        error = error or e.message
        status_code = max(status_code, e.status_code)

    try:
        products = await gateway.products.list()
    except RecordOperationError as e:
        logger.warning("Could not load products for sale entry: %s", e.message)
        products = []

    return render(
        request,
        "sales.html",
        {
            "transactions": transactions,
            "products": products,
            "draft": draft or SaleDraft(),
            "blank_rows": BLANK_ROWS,
            "payment_methods": PAYMENT_METHODS,
            "error": error,
            "editing": editing,
            "action": _edit_url(editing) if editing else "/sales",
            "edit_url": _edit_url,
        },
        status_code=status_code,
    )


def _draft(form: FormData) -> SaleDraft:
    return draft_from_form(
        form.getlist("product_id"),
        form.getlist("qty"),
        form.getlist("unit_price"),
        discount=form.get("discount_amount"),
        paid=form.get("paid_amount"),
        payment_method=form.get("payment_method"),
    )


@router.get("/sales")
async def list_sales(request: Request, portal: PortalContext = Depends(get_portal)):
    return await _sales_page(request, portal)


@router.post("/sales")
async def create_sale(request: Request, portal: PortalContext = Depends(get_portal)):
    form = await request.form()
    draft = None
    try:
        draft = _draft(form)
        transaction = draft.to_transaction()
        await portal.gateway.transactions.create(transaction)
    except (ValidationError, RecordOperationError) as e:
        return await _sales_page(request, portal, draft=draft, error=e.message, status_code=e.status_code)

    logger.info("Recorded sale of %d item(s), net %s", len(draft.lines), draft.net)
    return RedirectResponse("/sales", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/sales/{transaction_id}/edit")
async def edit_sale(transaction_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    try:
        transaction = await portal.gateway.transactions.get(transaction_id)
    except RecordOperationError as e:
        return await _sales_page(request, portal, error=e.message, status_code=e.status_code)
    return await _sales_page(request, portal, draft=SaleDraft.from_transaction(transaction), editing=transaction_id)


@router.post("/sales/{transaction_id}/edit")
async def update_sale(transaction_id: str, request: Request, portal: PortalContext = Depends(get_portal)):
    form = await request.form()
    draft = None
    try:
        draft = _draft(form)
        transaction = draft.to_transaction(transaction_id)
        await portal.gateway.transactions.update(transaction_id, data=transaction)
    except (ValidationError, RecordOperationError) as e:
        return await _sales_page(
            request, portal, draft=draft, error=e.message, status_code=e.status_code, editing=transaction_id
        )

    logger.info("Updated sale %s, net %s", transaction_id, draft.net)
    return RedirectResponse("/sales", status_code=status.HTTP_303_SEE_OTHER)
