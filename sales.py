"""
sales.py
This module models a customer transaction: line items built from catalog
products, and the Bill that collects them. A bill is edited while active,
can be parked (held) and resumed later, and ends either finalized, when it
becomes part of the revenue archive, or cancelled.

Money fields are derived on demand from the line items and never cached,
so a bill's totals always agree with its contents. All amounts are
Decimal; two-decimal rounding is applied only for display and reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from threading import Lock
from typing import Iterable, List, Optional

from errors import (
    BillImmutable,
    BillNotActive,
    IllegalTransition,
    IndexOutOfRange,
    InvalidDiscount,
    InvalidQuantity,
    ParseError,
)
from product import Product
from utils import Number, money, to_decimal

MAX_DISCOUNT = Decimal("75")
BILL_ID_PREFIX = "BILL-"
STORE_NAME = "SUPER-SAVING SUPERMARKET"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
RULE = "-" * 53


def validate_discount(percentage: Number) -> Decimal:
    """Return the discount as a Decimal, raising InvalidDiscount unless in [0, 75]."""
    try:
        value = to_decimal(percentage)
    except ParseError:
        raise InvalidDiscount(f"Discount must be a number, got {percentage!r}") from None
    if value < 0 or value > MAX_DISCOUNT:
        raise InvalidDiscount(f"Please enter a discount between 0 and {MAX_DISCOUNT}")
    return value


@dataclass(frozen=True)
class LineItem:
    product: Product
    quantity: Decimal
    discount_percentage: Decimal

    @property
    def gross_amount(self) -> Decimal:
        return self.product.unit_price * self.quantity

    @property
    def discount_amount(self) -> Decimal:
        return self.gross_amount * self.discount_percentage / 100

    @property
    def net_amount(self) -> Decimal:
        return self.gross_amount - self.discount_amount


def new_line_item(product: Product, quantity: Number, discount_percentage: Number = 0) -> LineItem:
    """Validate the entered values and build a LineItem."""
    try:
        qty = to_decimal(quantity)
    except ParseError:
        raise InvalidQuantity(f"Quantity must be a number, got {quantity!r}") from None
    if qty <= 0:
        raise InvalidQuantity("Quantity must be greater than zero")
    return LineItem(product, qty, validate_discount(discount_percentage))


class BillState(Enum):
    ACTIVE = "active"
    PENDING = "pending"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    BillState.ACTIVE: {BillState.PENDING, BillState.FINALIZED, BillState.CANCELLED},
    BillState.PENDING: {BillState.ACTIVE, BillState.CANCELLED},
}


class BillIdGenerator:
    """Produce "BILL-<epoch millis>" ids, unique and increasing per process.

    When two bills are created within the same millisecond (or the clock
    steps backwards) the suffix is bumped past the last one issued.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = Lock()

    def __call__(self, moment: datetime) -> str:
        millis = int(moment.timestamp() * 1000)
        with self._lock:
            millis = max(millis, self._last + 1)
            self._last = millis
        return f"{BILL_ID_PREFIX}{millis}"

    def observe(self, bill_id: str) -> None:
        """Record an id issued elsewhere (e.g. reloaded from storage)."""
        suffix = bill_id[len(BILL_ID_PREFIX):]
        if bill_id.startswith(BILL_ID_PREFIX) and suffix.isdigit():
            with self._lock:
                self._last = max(self._last, int(suffix))


class Bill:
    """One customer transaction with its lifecycle state."""

    def __init__(
        self,
        bill_id: str,
        cashier_name: str,
        branch_name: str,
        customer_name: Optional[str] = None,
        created_at: Optional[datetime] = None,
        items: Iterable[LineItem] = (),
        state: BillState = BillState.ACTIVE,
        finalized_at: Optional[datetime] = None,
    ) -> None:
        self.bill_id = bill_id
        self.cashier_name = cashier_name
        self.branch_name = branch_name
        self.customer_name = (customer_name or "").strip() or None
        self.created_at = created_at or datetime.now()
        self.finalized_at = finalized_at
        self._items: List[LineItem] = list(items)
        self._state = state

    def __repr__(self) -> str:
        return f"<Bill {self.bill_id} {self._state.value} items={len(self._items)}>"

    @property
    def state(self) -> BillState:
        return self._state

    @property
    def items(self) -> tuple:
        return tuple(self._items)

    @property
    def item_count(self) -> int:
        return len(self._items)

    @property
    def total_gross(self) -> Decimal:
        return sum((item.gross_amount for item in self._items), Decimal(0))

    @property
    def total_discount(self) -> Decimal:
        return sum((item.discount_amount for item in self._items), Decimal(0))

    @property
    def total_cost(self) -> Decimal:
        return sum((item.net_amount for item in self._items), Decimal(0))

    # Editing
    def _check_editable(self) -> None:
        if self._state is BillState.PENDING:
            raise BillNotActive(f"Bill {self.bill_id} is pending; resume it before editing")
        if self._state is not BillState.ACTIVE:
            raise BillImmutable(f"Bill {self.bill_id} is {self._state.value} and cannot be edited")

    def add_item(self, item: LineItem) -> None:
        self._check_editable()
        self._items.append(item)

    def remove_item(self, index: int) -> LineItem:
        """Remove and return the line item at a zero-based index."""
        self._check_editable()
        if not 0 <= index < len(self._items):
            raise IndexOutOfRange(
                f"Item index {index} out of range for bill with {len(self._items)} items"
            )
        return self._items.pop(index)

    # Lifecycle
    def _transition(self, target: BillState) -> None:
        if target not in ALLOWED_TRANSITIONS.get(self._state, set()):
            raise IllegalTransition(
                f"Bill {self.bill_id} cannot go from {self._state.value} to {target.value}"
            )
        self._state = target

    def park(self) -> None:
        self._transition(BillState.PENDING)

    def resume(self) -> None:
        self._transition(BillState.ACTIVE)

    def finalize(self, at: Optional[datetime] = None) -> None:
        """Commit the bill. Empty bills may be finalized."""
        self._transition(BillState.FINALIZED)
        self.finalized_at = at or datetime.now()

    def cancel(self) -> None:
        self._transition(BillState.CANCELLED)

    # Presentation
    def summary(self) -> str:
        return (
            f"{self.bill_id} - Items: {len(self._items)} - "
            f"Customer: {self.customer_name or 'Anonymous'}"
        )

    def render(self, currency: str = "Rs.") -> str:
        """Return the printable receipt text."""
        moment = self.finalized_at or self.created_at
        lines = [
            f"===== {STORE_NAME} =====",
            f"Bill ID: {self.bill_id}",
            f"Branch: {self.branch_name}",
            f"Cashier: {self.cashier_name}",
        ]
        if self.customer_name:
            lines.append(f"Customer: {self.customer_name}")
        lines.append(f"Date & Time: {moment.strftime(TIMESTAMP_FORMAT)}")
        lines.append("")
        lines.append(f"{'Item':<15} {'Price':<8} {'Quantity':<10} {'Disc%':<7} {'Net Price':<10}".rstrip())
        lines.append(RULE)
        for item in self._items:
            lines.append(
                f"{item.product.name:<15} "
                f"{money(item.product.unit_price):<8.2f} "
                f"{item.quantity:<10.2f} "
                f"{item.discount_percentage:<7.1f}% "
                f"{money(item.net_amount):<10.2f}".rstrip()
            )
        lines.append(RULE)
        lines.append(f"Total Discount: {currency} {money(self.total_discount):.2f}")
        lines.append(f"Total Cost: {currency} {money(self.total_cost):.2f}")
        lines.append("")
        lines.append("Thank you for shopping at Super-Saving!")
        return "\n".join(lines) + "\n"

    __str__ = render
