"""
Record schemas for the backend entities.

One canonical schema per entity, keyed by business keys:
product by productId, invoice by invoiceNo, batch by productId + invoiceNo,
transaction by transactionId, user by username.
"""

from typing import Optional

from pydantic import ConfigDict, Field

from .base import CamelModel


class Product(CamelModel):
    product_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    remaining_quantity: Optional[float] = None
    latest_unit_price: Optional[float] = None
    latest_batch_no: Optional[str] = None


class Supplier(CamelModel):
    supplier_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    contact: Optional[str] = None
    address: Optional[str] = None


class Invoice(CamelModel):
    invoice_no: str
    supplier_id: str
    date: Optional[str] = None
    total_amount: Optional[float] = None
    created_at: Optional[str] = None


class ProductBatch(CamelModel):
    product_id: str
    invoice_no: str
    batch_no: Optional[str] = None
    qty: float = 0
    unit_cost: float = 0
    unit_price: float = 0
    exp: Optional[str] = None


class TransactionItem(CamelModel):
    product_id: str
    qty: float
    unit_price: float


class Transaction(CamelModel):
    transaction_id: Optional[str] = None
    payment_method: str = "CASH"
    gross_amount: float = 0
    discount_amount: float = 0
    net_amount: float = 0
    paid_amount: float = 0
    balance_amount: float = 0
    items: list[TransactionItem] = Field(default_factory=list)
    created_at: Optional[str] = None


class UserAccount(CamelModel):
    username: str
    email: Optional[str] = None
    roles: list[str] = Field(default_factory=list)


class ChatDocument(CamelModel):
    """Result document from /chat/query; arbitrary extra fields are kept."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    score: Optional[float] = None
