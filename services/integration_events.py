"""
Integration events for the Sales context.

Published after a state change has been persisted. Each event is a frozen
copy of the aggregate fields relevant to the change; consumers outside this
service must not need to load the sale to act on it.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional, Union
from uuid import UUID

from domain.sale import Sale, SaleItem
from domain.time import utc_now


def _json_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


class _IntegrationEvent:
    __slots__ = ()

    event_type: ClassVar[str]

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict of the event fields."""

        return {f.name: _json_value(getattr(self, f.name)) for f in fields(self)}  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class SaleCreatedEvent(_IntegrationEvent):
    event_type: ClassVar[str] = "sale.created"

    sale_id: UUID
    sale_number: str
    sale_date: datetime
    customer_id: str
    customer_name: str
    branch_id: str
    branch_name: str
    total_amount: Decimal

    @classmethod
    def from_sale(cls, sale: Sale) -> "SaleCreatedEvent":
        return cls(
            sale_id=sale.sale_id,
            sale_number=sale.sale_number,
            sale_date=sale.sale_date,
            customer_id=sale.customer_id,
            customer_name=sale.customer_name,
            branch_id=sale.branch_id,
            branch_name=sale.branch_name,
            total_amount=sale.total_amount,
        )


@dataclass(frozen=True, slots=True)
class SaleModifiedEvent(_IntegrationEvent):
    event_type: ClassVar[str] = "sale.modified"

    sale_id: UUID
    sale_number: str
    sale_date: datetime
    customer_id: str
    customer_name: str
    branch_id: str
    branch_name: str
    total_amount: Decimal

    @classmethod
    def from_sale(cls, sale: Sale) -> "SaleModifiedEvent":
        return cls(
            sale_id=sale.sale_id,
            sale_number=sale.sale_number,
            sale_date=sale.sale_date,
            customer_id=sale.customer_id,
            customer_name=sale.customer_name,
            branch_id=sale.branch_id,
            branch_name=sale.branch_name,
            total_amount=sale.total_amount,
        )


@dataclass(frozen=True, slots=True)
class SaleCancelledEvent(_IntegrationEvent):
    event_type: ClassVar[str] = "sale.cancelled"

    sale_id: UUID
    cancelled_at: datetime
    sale_number: str
    customer_id: str
    customer_name: str
    branch_id: str
    branch_name: str
    total_amount: Decimal

    @classmethod
    def from_sale(cls, sale: Sale, cancelled_at: Optional[datetime] = None) -> "SaleCancelledEvent":
        return cls(
            sale_id=sale.sale_id,
            cancelled_at=cancelled_at or utc_now(),
            sale_number=sale.sale_number,
            customer_id=sale.customer_id,
            customer_name=sale.customer_name,
            branch_id=sale.branch_id,
            branch_name=sale.branch_name,
            total_amount=sale.total_amount,
        )


@dataclass(frozen=True, slots=True)
class ItemCancelledEvent(_IntegrationEvent):
    event_type: ClassVar[str] = "sale.item_cancelled"

    sale_id: UUID
    item_id: UUID
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal

    @classmethod
    def from_item(cls, sale: Sale, item: SaleItem) -> "ItemCancelledEvent":
        return cls(
            sale_id=sale.sale_id,
            item_id=item.item_id,
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            discount_percent=item.discount_percent,
        )


IntegrationEvent = Union[SaleCreatedEvent, SaleModifiedEvent, SaleCancelledEvent, ItemCancelledEvent]


__all__ = [
    "IntegrationEvent",
    "ItemCancelledEvent",
    "SaleCancelledEvent",
    "SaleCreatedEvent",
    "SaleModifiedEvent",
]
