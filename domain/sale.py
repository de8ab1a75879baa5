"""
Domain: Sale aggregate (header + line items).

Rules implemented here:
- Header fields are required, trimmed and length-limited (64 / 256 characters).
- Line items are replaced wholesale on create and update; each new item gets a
  fresh identifier and a discount fixed from its quantity at that moment.
- Discount tiers: 1-3 items 0%, 4-9 items 10%, 10-20 items 20%; more than 20
  identical items cannot be sold.
- Totals: item total = round2(unit_price * quantity * (1 - discount)), zero when
  cancelled; sale total = round2(sum of non-cancelled item totals).
- Cancellation is one-way at both item and sale level; cancelling a sale cancels
  every item.

State changes only through the aggregate's operations. Every operation
validates all of its input before touching state, so a rejected call leaves the
sale exactly as it was.

This module contains only pure domain logic: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from .errors import NotFoundError, ValidationError, ValidationErrorKind
from .money import ZERO, MoneyInput, round2, to_decimal
from .time import is_unset_timestamp, to_utc, utc_now

MAX_SALE_NUMBER_LENGTH = 64
MAX_CUSTOMER_ID_LENGTH = 64
MAX_CUSTOMER_NAME_LENGTH = 256
MAX_BRANCH_ID_LENGTH = 64
MAX_BRANCH_NAME_LENGTH = 256
MAX_PRODUCT_ID_LENGTH = 64
MAX_PRODUCT_NAME_LENGTH = 256

MAX_IDENTICAL_ITEMS = 20
QUANTITY_LIMIT_MESSAGE = "It's not possible to sell above 20 identical items"

NO_DISCOUNT = Decimal("0.00")
TIER_1_DISCOUNT = Decimal("0.10")
TIER_2_DISCOUNT = Decimal("0.20")


def calculate_discount_percent(quantity: int) -> Decimal:
    """
    Discount for a line of `quantity` identical items.

    | quantity | discount |
    |----------|----------|
    | > 20     | rejected |
    | 10 - 20  | 0.20     |
    | 4 - 9    | 0.10     |
    | 1 - 3    | 0.00     |
    """

    if quantity > MAX_IDENTICAL_ITEMS:
        raise ValidationError("quantity", ValidationErrorKind.QUANTITY_LIMIT_EXCEEDED, QUANTITY_LIMIT_MESSAGE)
    if quantity >= 10:
        return TIER_2_DISCOUNT
    if quantity >= 4:
        return TIER_1_DISCOUNT
    return NO_DISCOUNT


def _require_text(value: Optional[str], field: str, max_length: int) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, ValidationErrorKind.REQUIRED, f"{field} is required")
    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise ValidationError(
            field,
            ValidationErrorKind.LENGTH_EXCEEDED,
            f"{field}: maximum length is {max_length} characters",
        )
    return trimmed


def _optional_text(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    # Absent, empty and whitespace-only all mean "keep the current value".
    if value is None or not value.strip():
        return None
    return _require_text(value, field, max_length)


@dataclass(frozen=True, slots=True)
class NewItem:
    """Specification of a line item supplied to create/update."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: MoneyInput


@dataclass(frozen=True, slots=True)
class SaleItem:
    """
    Line item owned by a Sale.

    Immutable: the aggregate swaps in a new instance when it cancels an item or
    recalculates totals. `discount_percent` is fixed when the item is created.
    """

    item_id: UUID
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal
    total_amount: Decimal = ZERO
    cancelled: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.quantity <= MAX_IDENTICAL_ITEMS:
            raise ValidationError(
                "quantity",
                ValidationErrorKind.QUANTITY_OUT_OF_RANGE,
                f"quantity must be between 1 and {MAX_IDENTICAL_ITEMS}",
            )

    @property
    def net_amount(self) -> Decimal:
        """Discounted line amount, ignoring cancellation."""

        return round2(self.unit_price * self.quantity * (1 - self.discount_percent))

    def recalculated(self) -> "SaleItem":
        return replace(self, total_amount=ZERO if self.cancelled else self.net_amount)

    def cancel(self) -> "SaleItem":
        if self.cancelled:
            return self
        return replace(self, cancelled=True, total_amount=ZERO)


def _build_item(spec: NewItem, *, cancelled: bool = False) -> SaleItem:
    product_id = _require_text(spec.product_id, "product_id", MAX_PRODUCT_ID_LENGTH)
    product_name = _require_text(spec.product_name, "product_name", MAX_PRODUCT_NAME_LENGTH)

    quantity = spec.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(
            "quantity",
            ValidationErrorKind.QUANTITY_OUT_OF_RANGE,
            "quantity must be greater than zero",
        )
    if quantity > MAX_IDENTICAL_ITEMS:
        raise ValidationError("quantity", ValidationErrorKind.QUANTITY_LIMIT_EXCEEDED, QUANTITY_LIMIT_MESSAGE)

    try:
        unit_price = round2(to_decimal(spec.unit_price))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(
            "unit_price",
            ValidationErrorKind.PRICE_OUT_OF_RANGE,
            "unit_price must be a number",
        ) from None
    if not unit_price.is_finite() or unit_price <= 0:
        raise ValidationError(
            "unit_price",
            ValidationErrorKind.PRICE_OUT_OF_RANGE,
            "unit_price must be a positive finite number",
        )

    item = SaleItem(
        item_id=uuid4(),
        product_id=product_id,
        product_name=product_name,
        quantity=quantity,
        unit_price=unit_price,
        discount_percent=calculate_discount_percent(quantity),
        cancelled=cancelled,
    )
    return item.recalculated()


def _build_items(items: Iterable[NewItem], *, cancelled: bool = False) -> List[SaleItem]:
    if items is None:
        raise ValidationError("items", ValidationErrorKind.REQUIRED, "items is required")
    return [_build_item(spec, cancelled=cancelled) for spec in items]


class Sale:
    """
    Sale aggregate root.

    Build new sales with `Sale.create`; persistence code reconstitutes stored
    sales with `Sale.restore`. Fields are read-only properties and change only
    through `update`, `cancel_item` and `cancel_sale`.

    Not thread-safe: callers serialize mutations of one instance.
    """

    __slots__ = (
        "_sale_id",
        "_sale_number",
        "_sale_date",
        "_customer_id",
        "_customer_name",
        "_branch_id",
        "_branch_name",
        "_items",
        "_total_amount",
        "_cancelled",
        "_created_at",
        "_updated_at",
    )

    def __init__(
        self,
        *,
        sale_id: UUID,
        sale_number: str,
        sale_date: datetime,
        customer_id: str,
        customer_name: str,
        branch_id: str,
        branch_name: str,
        items: Sequence[SaleItem],
        total_amount: Decimal,
        cancelled: bool,
        created_at: datetime,
        updated_at: datetime,
    ) -> None:
        self._sale_id = sale_id
        self._sale_number = sale_number
        self._sale_date = sale_date
        self._customer_id = customer_id
        self._customer_name = customer_name
        self._branch_id = branch_id
        self._branch_name = branch_name
        self._items: Tuple[SaleItem, ...] = tuple(items)
        self._total_amount = total_amount
        self._cancelled = cancelled
        self._created_at = created_at
        self._updated_at = updated_at

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        sale_number: str,
        sale_date: Optional[datetime],
        customer_id: str,
        customer_name: str,
        branch_id: str,
        branch_name: str,
        items: Iterable[NewItem],
    ) -> "Sale":
        """
        Create a new sale.

        Raises:
            ValidationError: a header field or any item specification is invalid.
                No sale is created in that case.
        """

        sale_number = _require_text(sale_number, "sale_number", MAX_SALE_NUMBER_LENGTH)
        customer_id = _require_text(customer_id, "customer_id", MAX_CUSTOMER_ID_LENGTH)
        customer_name = _require_text(customer_name, "customer_name", MAX_CUSTOMER_NAME_LENGTH)
        branch_id = _require_text(branch_id, "branch_id", MAX_BRANCH_ID_LENGTH)
        branch_name = _require_text(branch_name, "branch_name", MAX_BRANCH_NAME_LENGTH)
        new_items = _build_items(items)

        now = utc_now()
        sale = cls(
            sale_id=uuid4(),
            sale_number=sale_number,
            sale_date=now if is_unset_timestamp(sale_date) else to_utc(sale_date),  # type: ignore[arg-type]
            customer_id=customer_id,
            customer_name=customer_name,
            branch_id=branch_id,
            branch_name=branch_name,
            items=new_items,
            total_amount=ZERO,
            cancelled=False,
            created_at=now,
            updated_at=now,
        )
        sale._recalculate_totals()
        return sale

    @classmethod
    def restore(
        cls,
        *,
        sale_id: UUID,
        sale_number: str,
        sale_date: datetime,
        customer_id: str,
        customer_name: str,
        branch_id: str,
        branch_name: str,
        items: Sequence[SaleItem],
        total_amount: Decimal,
        cancelled: bool,
        created_at: datetime,
        updated_at: datetime,
    ) -> "Sale":
        """Reconstitute a stored sale as-is (no validation, no timestamp refresh)."""

        return cls(
            sale_id=sale_id,
            sale_number=sale_number,
            sale_date=sale_date,
            customer_id=customer_id,
            customer_name=customer_name,
            branch_id=branch_id,
            branch_name=branch_name,
            items=items,
            total_amount=total_amount,
            cancelled=cancelled,
            created_at=created_at,
            updated_at=updated_at,
        )

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def sale_id(self) -> UUID:
        return self._sale_id

    @property
    def sale_number(self) -> str:
        return self._sale_number

    @property
    def sale_date(self) -> datetime:
        return self._sale_date

    @property
    def customer_id(self) -> str:
        return self._customer_id

    @property
    def customer_name(self) -> str:
        return self._customer_name

    @property
    def branch_id(self) -> str:
        return self._branch_id

    @property
    def branch_name(self) -> str:
        return self._branch_name

    @property
    def items(self) -> Tuple[SaleItem, ...]:
        return self._items

    @property
    def total_amount(self) -> Decimal:
        return self._total_amount

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def get_item(self, item_id: UUID) -> Optional[SaleItem]:
        for item in self._items:
            if item.item_id == item_id:
                return item
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update(
        self,
        *,
        sale_number: Optional[str] = None,
        sale_date: Optional[datetime] = None,
        customer_id: Optional[str] = None,
        customer_name: Optional[str] = None,
        branch_id: Optional[str] = None,
        branch_name: Optional[str] = None,
        items: Iterable[NewItem],
    ) -> None:
        """
        Update header fields and replace the whole item collection.

        Header fields that are None, empty or whitespace-only keep their current
        value; an unset `sale_date` keeps the current date. `items` always
        replaces the collection, so previous item identifiers disappear. An
        empty list is accepted here; requiring items is the caller's decision.

        Items added to an already cancelled sale are created cancelled.
        """

        new_sale_number = _optional_text(sale_number, "sale_number", MAX_SALE_NUMBER_LENGTH)
        new_customer_id = _optional_text(customer_id, "customer_id", MAX_CUSTOMER_ID_LENGTH)
        new_customer_name = _optional_text(customer_name, "customer_name", MAX_CUSTOMER_NAME_LENGTH)
        new_branch_id = _optional_text(branch_id, "branch_id", MAX_BRANCH_ID_LENGTH)
        new_branch_name = _optional_text(branch_name, "branch_name", MAX_BRANCH_NAME_LENGTH)
        new_items = _build_items(items, cancelled=self._cancelled)

        if new_sale_number is not None:
            self._sale_number = new_sale_number
        if new_customer_id is not None:
            self._customer_id = new_customer_id
        if new_customer_name is not None:
            self._customer_name = new_customer_name
        if new_branch_id is not None:
            self._branch_id = new_branch_id
        if new_branch_name is not None:
            self._branch_name = new_branch_name
        if not is_unset_timestamp(sale_date):
            self._sale_date = to_utc(sale_date)  # type: ignore[arg-type]

        self._items = tuple(new_items)
        self._recalculate_totals()

    def cancel_item(self, item_id: UUID) -> None:
        """
        Cancel one item. Cancelling an already cancelled item is a no-op.

        Raises:
            NotFoundError: no item with `item_id` in this sale.
        """

        if self.get_item(item_id) is None:
            raise NotFoundError()

        self._items = tuple(item.cancel() if item.item_id == item_id else item for item in self._items)
        self._recalculate_totals()

    def cancel_sale(self) -> None:
        """Cancel the sale and every item. Idempotent."""

        if self._cancelled:
            return

        self._cancelled = True
        self._items = tuple(item.cancel() for item in self._items)
        self._recalculate_totals()

    def _recalculate_totals(self) -> None:
        self._items = tuple(item.recalculated() for item in self._items)
        self._total_amount = round2(sum((i.total_amount for i in self._items if not i.cancelled), ZERO))
        self._updated_at = utc_now()

    def __repr__(self) -> str:
        return (
            f"Sale(sale_id={self._sale_id!s}, sale_number={self._sale_number!r}, "
            f"total_amount={self._total_amount}, cancelled={self._cancelled}, items={len(self._items)})"
        )


__all__ = [
    "MAX_IDENTICAL_ITEMS",
    "NewItem",
    "QUANTITY_LIMIT_MESSAGE",
    "Sale",
    "SaleItem",
    "calculate_discount_percent",
]
