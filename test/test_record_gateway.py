"""
Tests for the backend client and the record gateway
"""

import asyncio
import json

import httpx
import pytest

from inventory_portal.exceptions import ApiError, RecordOperationError, SessionExpiredError
from inventory_portal.schemas import Product, Transaction, TransactionItem
from inventory_portal.services.api_client import GENERIC_ERROR_MESSAGE, ApiClient, extract_error_message
from inventory_portal.services.record_service import RecordGateway

from utils.backend import API_BASE_URL, FakeBackend


def gateway_for(backend: FakeBackend, token: str | None = "tok", on_unauthorized=None) -> RecordGateway:
    client = ApiClient(
        API_BASE_URL,
        token_provider=lambda: token,
        on_unauthorized=on_unauthorized,
        transport=backend.transport,
    )
    return RecordGateway(client)


class TestExtractErrorMessage:
    """Error message extraction from backend bodies"""

    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"message": "Supplier not found"}, "Supplier not found"),
            ({"errorMessage": "Bad credentials"}, "Bad credentials"),
            ({"error": "Conflict"}, "Conflict"),
            ({"unrelated": 1}, GENERIC_ERROR_MESSAGE),
            ([1, 2], GENERIC_ERROR_MESSAGE),
        ],
    )
    def test_json_bodies(self, body, expected):
        assert extract_error_message(httpx.Response(400, json=body)) == expected

    def test_plain_text_body(self):
        assert extract_error_message(httpx.Response(500, text="Internal failure")) == "Internal failure"

    def test_empty_body(self):
        assert extract_error_message(httpx.Response(500)) == GENERIC_ERROR_MESSAGE


class TestApiClient:
    """Status handling"""

    def test_bearer_header_attached(self):
        backend = FakeBackend().add("GET", "/products", json=[])
        asyncio.run(gateway_for(backend, token="abc").products.list())
        assert backend.calls[0].headers["authorization"] == "Bearer abc"

    def test_no_header_without_token(self):
        backend = FakeBackend().add("GET", "/products", json=[])
        asyncio.run(gateway_for(backend, token=None).products.list())
        assert "authorization" not in backend.calls[0].headers

    def test_401_calls_purge_hook(self):
        purged = []
        backend = FakeBackend().add("GET", "/suppliers", 401)
        gateway = gateway_for(backend, on_unauthorized=lambda: purged.append(True))

        with pytest.raises(SessionExpiredError):
            asyncio.run(gateway.suppliers.list())
        assert purged == [True]

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = ApiClient(API_BASE_URL, transport=httpx.MockTransport(handler))
        with pytest.raises(ApiError) as exc_info:
            asyncio.run(client.get("/products"))
        assert exc_info.value.backend_status is None
        assert exc_info.value.message == "The server took too long to respond."

    def test_no_content(self):
        backend = FakeBackend().add("DELETE", "/products/P-1", 204)
        client = ApiClient(API_BASE_URL, transport=backend.transport)
        assert asyncio.run(client.delete("/products/P-1")) is None


class TestRecordService:
    """CRUD over backend resources"""

    def test_list_parses_camel_case(self):
        backend = FakeBackend().add(
            "GET",
            "/products",
            json=[{"productId": "P-1", "name": "Milk", "remainingQuantity": 12, "latestUnitPrice": 1.5}],
        )
        products = asyncio.run(gateway_for(backend).products.list())

        assert products == [Product(product_id="P-1", name="Milk", remaining_quantity=12, latest_unit_price=1.5)]

    def test_list_empty_body(self):
        backend = FakeBackend().add("GET", "/invoices", 200)
        assert asyncio.run(gateway_for(backend).invoices.list()) == []

    def test_get_by_key(self):
        backend = FakeBackend().add("GET", "/suppliers/S-1", json={"supplierId": "S-1", "name": "Acme"})
        supplier = asyncio.run(gateway_for(backend).suppliers.get("S-1"))
        assert supplier.name == "Acme"

    def test_composite_key_paths(self):
        backend = FakeBackend()
        backend.add("GET", "/product-batches/P-1/INV 9", json={"productId": "P-1", "invoiceNo": "INV 9", "qty": 4})
        backend.add("DELETE", "/product-batches/P-1/INV 9", 204)
        gateway = gateway_for(backend)

        batch = asyncio.run(gateway.product_batches.get("P-1", "INV 9"))
        asyncio.run(gateway.product_batches.delete("P-1", "INV 9"))

        assert batch.qty == 4
        assert backend.calls[0].url.raw_path == b"/api/product-batches/P-1/INV%209"

    def test_key_segments_are_escaped(self):
        backend = FakeBackend().add("DELETE", "/invoices/A/B", 204)
        asyncio.run(gateway_for(backend).invoices.delete("A/B"))
        assert backend.calls[0].url.raw_path == b"/api/invoices/A%2FB"

    def test_list_for_product(self):
        backend = FakeBackend().add("GET", "/product-batches/product/P-1", json=[{"productId": "P-1", "invoiceNo": "I-1"}])
        batches = asyncio.run(gateway_for(backend).product_batches.list_for_product("P-1"))
        assert [b.invoice_no for b in batches] == ["I-1"]

    def test_create_sends_wire_format(self):
        backend = FakeBackend().add("POST", "/transactions", json={"transactionId": "T-1", "netAmount": 9})
        transaction = Transaction(
            payment_method="CARD",
            gross_amount=10,
            discount_amount=1,
            net_amount=9,
            items=[TransactionItem(product_id="P-1", qty=2, unit_price=5)],
        )

        created = asyncio.run(gateway_for(backend).transactions.create(transaction))

        body = json.loads(backend.calls[0].content)
        assert body["paymentMethod"] == "CARD"
        assert body["items"] == [{"productId": "P-1", "qty": 2.0, "unitPrice": 5.0}]
        assert "transactionId" not in body
        assert created.transaction_id == "T-1"

    def test_update(self):
        backend = FakeBackend().add("PUT", "/suppliers/S-1", json={"supplierId": "S-1", "name": "Renamed"})
        updated = asyncio.run(gateway_for(backend).suppliers.update("S-1", data={"name": "Renamed"}))
        assert updated.name == "Renamed"
        assert json.loads(backend.calls[0].content) == {"name": "Renamed"}

    def test_failure_becomes_record_operation_error(self):
        backend = FakeBackend().add("DELETE", "/suppliers/S-1", 409, {"message": "Supplier has invoices"})

        with pytest.raises(RecordOperationError) as exc_info:
            asyncio.run(gateway_for(backend).suppliers.delete("S-1"))

        exc = exc_info.value
        assert exc.message == "Supplier has invoices"
        assert exc.status_code == 409
        assert (exc.resource, exc.operation) == ("suppliers", "delete")

    def test_session_expiry_passes_through(self):
        backend = FakeBackend().add("GET", "/products", 401)
        with pytest.raises(SessionExpiredError):
            asyncio.run(gateway_for(backend).products.list())

    def test_users_cannot_be_created(self):
        backend = FakeBackend()
        with pytest.raises(RecordOperationError) as exc_info:
            asyncio.run(gateway_for(backend).users.create({"username": "x"}))
        assert exc_info.value.status_code == 405
        assert exc_info.value.operation == "create"
        assert backend.calls == []


class TestChat:
    """Free-text query"""

    def test_query_preserves_order(self):
        backend = FakeBackend().add(
            "GET",
            "/chat/query",
            json=[{"id": "2", "content": "second", "source": "kb"}, {"id": "1", "content": "first"}],
        )
        docs = asyncio.run(gateway_for(backend).chat.query("low stock"))

        assert [d.id for d in docs] == ["2", "1"]
        assert docs[0].model_extra == {"source": "kb"}
        assert backend.calls[0].url.params["prompt"] == "low stock"

    def test_query_failure(self):
        backend = FakeBackend().add("GET", "/chat/query", 500, {"message": "model offline"})
        with pytest.raises(RecordOperationError) as exc_info:
            asyncio.run(gateway_for(backend).chat.query("x"))
        assert exc_info.value.message == "model offline"
