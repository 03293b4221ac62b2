"""
Record Gateway

Uniform list/get/create/update/delete access to the backend's entity
resources. Views only talk to the backend through these services.
"""

import logging
from typing import Any, Generic, TypeVar
from urllib.parse import quote

from fastapi import status
from pydantic import BaseModel

from inventory_portal.exceptions import ApiError, RecordOperationError
from inventory_portal.schemas import (
    ChatDocument,
    Invoice,
    Product,
    ProductBatch,
    Supplier,
    Transaction,
    UserAccount,
)
from inventory_portal.services.api_client import ApiClient

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _payload(data: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, exclude_none=True, mode="json")
    return data


class RecordService(Generic[ModelT]):
    """
    CRUD over one backend resource.

    Keys are passed positionally and joined as path segments, so composite
    keys work the same as single ones:
        products.get("P-1")                → GET /products/P-1
        product_batches.get("P-1", "INV9") → GET /product-batches/P-1/INV9
    """

    def __init__(self, client: ApiClient, resource: str, schema: type[ModelT]):
        self.client = client
        self.resource = resource
        self.schema = schema

    def _path(self, *key: Any) -> str:
        segments = [self.resource, *(quote(str(part), safe="") for part in key)]
        return "/" + "/".join(segments)

    async def _call(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            return await self.client.request(method, path, **kwargs)
        except RecordOperationError:
            raise
        except ApiError as e:
            # SessionExpiredError is not an ApiError and passes through untouched
            raise RecordOperationError(self.resource, operation, e.message, e.backend_status) from e

    def _parse(self, data: Any) -> ModelT:
        return self.schema.model_validate(data)

    def _parse_many(self, data: Any) -> list[ModelT]:
        return [self._parse(item) for item in data or []]

    async def list(self) -> list[ModelT]:
        return self._parse_many(await self._call("list", "GET", self._path()))

    async def get(self, *key: Any) -> ModelT:
        return self._parse(await self._call("get", "GET", self._path(*key)))

    async def create(self, data: BaseModel | dict[str, Any]) -> ModelT:
        result = await self._call("create", "POST", self._path(), json=_payload(data))
        logger.info("Created %s record", self.resource)
        return self._parse(result)

    async def update(self, *key: Any, data: BaseModel | dict[str, Any]) -> ModelT:
        result = await self._call("update", "PUT", self._path(*key), json=_payload(data))
        logger.info("Updated %s record %s", self.resource, "/".join(map(str, key)))
        return self._parse(result)

    async def delete(self, *key: Any) -> None:
        await self._call("delete", "DELETE", self._path(*key))
        logger.info("Deleted %s record %s", self.resource, "/".join(map(str, key)))


class ProductBatchService(RecordService[ProductBatch]):
    async def list_for_product(self, product_id: str) -> list[ProductBatch]:
        path = self._path("product", product_id)
        return self._parse_many(await self._call("list", "GET", path))


class UserService(RecordService[UserAccount]):
    async def create(self, data: BaseModel | dict[str, Any]) -> UserAccount:
        # Accounts are created through /auth/register only
        raise RecordOperationError(
            self.resource,
            "create",
            "Users are created through signup",
            status.HTTP_405_METHOD_NOT_ALLOWED,
        )


class ChatService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def query(self, prompt: str) -> list[ChatDocument]:
        """Run a free-text query; results keep the backend's ordering."""
        try:
            data = await self.client.get("/chat/query", params={"prompt": prompt})
        except RecordOperationError:
            raise
        except ApiError as e:
            raise RecordOperationError("chat", "query", e.message, e.backend_status) from e
        return [ChatDocument.model_validate(doc) for doc in data or []]


class RecordGateway:
    """All entity services bound to one ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client
        self.products = RecordService(client, "products", Product)
        self.suppliers = RecordService(client, "suppliers", Supplier)
        self.invoices = RecordService(client, "invoices", Invoice)
        self.product_batches = ProductBatchService(client, "product-batches", ProductBatch)
        self.transactions = RecordService(client, "transactions", Transaction)
        self.users = UserService(client, "users", UserAccount)
        self.chat = ChatService(client)
