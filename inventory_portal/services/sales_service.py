"""
Sales entry

Derives the amounts of a sale from its line items:

    gross   = Σ qty × unit_price
    net     = gross − discount
    balance = net − paid
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from inventory_portal.exceptions import ValidationError
from inventory_portal.schemas import Transaction, TransactionItem
from inventory_portal.services.validation import to_decimal

CENTS = Decimal("0.01")
PAYMENT_METHODS = ("CASH", "CARD", "CREDIT")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class SaleLine:
    product_id: str
    qty: Decimal
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.qty * self.unit_price


@dataclass
class SaleDraft:
    lines: list[SaleLine] = field(default_factory=list)
    discount: Decimal = Decimal(0)
    paid: Decimal = Decimal(0)
    payment_method: str = "CASH"

    @property
    def gross(self) -> Decimal:
        return _money(sum((line.line_total for line in self.lines), Decimal(0)))

    @property
    def net(self) -> Decimal:
        return _money(self.gross - self.discount)

    @property
    def balance(self) -> Decimal:
        return _money(self.net - self.paid)

    def validate(self) -> None:
        """Raise ValidationError on the first failing check."""
        if not self.lines:
            raise ValidationError("Add at least one item", field="items")
        if any(not line.product_id for line in self.lines):
            raise ValidationError("Please select a product for all items", field="items")
        if any(line.qty <= 0 for line in self.lines):
            raise ValidationError("Quantity must be greater than 0 for all items", field="items")
        if any(line.unit_price < 0 for line in self.lines):
            raise ValidationError("Unit price cannot be negative", field="items")
        if self.discount < 0:
            raise ValidationError("Discount amount cannot be negative", field="discount_amount")
        if self.paid < 0:
            raise ValidationError("Paid amount cannot be negative", field="paid_amount")
        if self.payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method '{self.payment_method}'", field="payment_method")

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "SaleDraft":
        """Reopen a recorded sale for editing; its stored totals are recomputed, not trusted."""
        return cls(
            lines=[
                SaleLine(product_id=item.product_id, qty=Decimal(str(item.qty)), unit_price=Decimal(str(item.unit_price)))
                for item in transaction.items
            ],
            discount=Decimal(str(transaction.discount_amount)),
            paid=Decimal(str(transaction.paid_amount)),
            payment_method=transaction.payment_method,
        )

    def to_transaction(self, transaction_id: str | None = None) -> Transaction:
        self.validate()
        return Transaction(
            transaction_id=transaction_id,
            payment_method=self.payment_method,
            gross_amount=float(self.gross),
            discount_amount=float(_money(self.discount)),
            net_amount=float(self.net),
            paid_amount=float(_money(self.paid)),
            balance_amount=float(self.balance),
            items=[
                TransactionItem(product_id=line.product_id, qty=float(line.qty), unit_price=float(line.unit_price))
                for line in self.lines
            ],
        )


def draft_from_form(
    product_ids: list[str],
    quantities: list[Any],
    unit_prices: list[Any],
    discount: Any = None,
    paid: Any = None,
    payment_method: str | None = None,
) -> SaleDraft:
    """
    Build a draft from parallel form lists (one entry per line item).

    Rows with no product and no quantity are dropped as empty form rows.
    """
    lines = []
    for product_id, qty, unit_price in zip(product_ids, quantities, unit_prices):
        product_id = (product_id or "").strip()
        if not product_id and not str(qty or "").strip():
            continue
        lines.append(
            SaleLine(
                product_id=product_id,
                qty=to_decimal(qty, "qty"),
                unit_price=to_decimal(unit_price, "unit_price", default=Decimal(0)),
            )
        )
    return SaleDraft(
        lines=lines,
        discount=to_decimal(discount, "discount_amount", default=Decimal(0)),
        paid=to_decimal(paid, "paid_amount", default=Decimal(0)),
        payment_method=(payment_method or "CASH").strip().upper(),
    )
