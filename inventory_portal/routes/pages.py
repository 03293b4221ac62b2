import logging

from fastapi import APIRouter, Depends, Request

from inventory_portal import __version__
from inventory_portal.dependencies import PortalContext, get_portal, require_session
from inventory_portal.exceptions import RecordOperationError
from inventory_portal.templating import render

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}


@router.get("/index")
async def marketing(request: Request):
    return render(request, "marketing.html")


@router.get("/dashboard", dependencies=[Depends(require_session)])
async def dashboard(request: Request, q: str | None = None, portal: PortalContext = Depends(get_portal)):
    gateway = portal.gateway
    counts: dict[str, int | None] = {}
    for label, service in (
        ("Products", gateway.products),
        ("Suppliers", gateway.suppliers),
        ("Invoices", gateway.invoices),
        ("Sales", gateway.transactions),
    ):
        try:
            counts[label] = len(await service.list())
        except RecordOperationError as e:
            logger.warning("Dashboard count for %s unavailable: %s", label, e.message)
            counts[label] = None

    results = None
    search_error = None
    query = (q or "").strip()
    if query:
        try:
            results = await gateway.chat.query(query)
        except RecordOperationError as e:
            search_error = e.message

    return render(
        request,
        "dashboard.html",
        {"counts": counts, "query": query, "results": results, "search_error": search_error},
    )
