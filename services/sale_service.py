"""
Sale service (application layer).

Orchestrates the Sale aggregate, the sale repository and the integration event
publisher:
- Load the aggregate (or fail with SaleNotFoundError)
- Apply the domain operation
- Persist the full aggregate
- Publish the matching integration event

Events are only published after the repository call succeeded. Domain
validation errors, repository errors and publisher errors propagate unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from domain.sale import NewItem, Sale
from repositories.sale_repository import SaleRepository, normalize_page
from services.event_publisher import IntegrationEventPublisher
from services.integration_events import (
    ItemCancelledEvent,
    SaleCancelledEvent,
    SaleCreatedEvent,
    SaleModifiedEvent,
)

logger = logging.getLogger(__name__)


class SaleNotFoundError(LookupError):
    """Raised when a sale id does not exist."""

    def __init__(self, sale_id: UUID) -> None:
        self.sale_id = sale_id
        super().__init__(f"Sale not found: {sale_id}")


@dataclass(frozen=True, slots=True)
class SalePage:
    """One page of sales, with the page values actually applied."""

    page: int
    page_size: int
    items: List[Sale]


class SaleService:
    def __init__(self, repository: SaleRepository, publisher: IntegrationEventPublisher) -> None:
        self._repository = repository
        self._publisher = publisher

    def _load(self, sale_id: UUID) -> Sale:
        sale = self._repository.get_by_id(sale_id)
        if sale is None:
            raise SaleNotFoundError(sale_id)
        return sale

    def get_sale(self, sale_id: UUID) -> Sale:
        return self._load(sale_id)

    def list_sales(self, page: int = 1, page_size: int = 20) -> SalePage:
        page, page_size = normalize_page(page, page_size)
        return SalePage(page=page, page_size=page_size, items=self._repository.list(page, page_size))

    def create_sale(
        self,
        *,
        sale_number: str,
        sale_date: Optional[datetime],
        customer_id: str,
        customer_name: str,
        branch_id: str,
        branch_name: str,
        items: Iterable[NewItem],
    ) -> Sale:
        """
        Create, persist and announce a new sale.

        Raises:
            ValidationError: invalid header or item data (nothing is stored)
        """

        sale = Sale.create(
            sale_number=sale_number,
            sale_date=sale_date,
            customer_id=customer_id,
            customer_name=customer_name,
            branch_id=branch_id,
            branch_name=branch_name,
            items=items,
        )

        self._repository.add(sale)
        self._publisher.publish(SaleCreatedEvent.from_sale(sale))

        logger.info("SaleCreated: %s Number=%s Total=%s", sale.sale_id, sale.sale_number, sale.total_amount)
        return sale

    def update_sale(
        self,
        sale_id: UUID,
        *,
        sale_number: Optional[str] = None,
        sale_date: Optional[datetime] = None,
        customer_id: Optional[str] = None,
        customer_name: Optional[str] = None,
        branch_id: Optional[str] = None,
        branch_name: Optional[str] = None,
        items: Iterable[NewItem],
    ) -> Sale:
        """Update header fields that were supplied and replace all items."""

        sale = self._load(sale_id)
        sale.update(
            sale_number=sale_number,
            sale_date=sale_date,
            customer_id=customer_id,
            customer_name=customer_name,
            branch_id=branch_id,
            branch_name=branch_name,
            items=items,
        )

        self._repository.update(sale)
        self._publisher.publish(SaleModifiedEvent.from_sale(sale))

        logger.info("SaleModified: %s Number=%s Total=%s", sale.sale_id, sale.sale_number, sale.total_amount)
        return sale

    def delete_sale(self, sale_id: UUID) -> None:
        """Delete a sale. Deleting an unknown id is not an error."""

        self._repository.delete(sale_id)
        logger.info("SaleDeleted: %s", sale_id)

    def cancel_sale(self, sale_id: UUID) -> Sale:
        sale = self._load(sale_id)
        sale.cancel_sale()

        self._repository.update(sale)
        self._publisher.publish(SaleCancelledEvent.from_sale(sale))

        logger.info("SaleCancelled: %s", sale_id)
        return sale

    def cancel_item(self, sale_id: UUID, item_id: UUID) -> Sale:
        """
        Cancel one item of a sale.

        Raises:
            SaleNotFoundError: unknown sale
            NotFoundError: the sale has no item with `item_id`
        """

        sale = self._load(sale_id)
        sale.cancel_item(item_id)

        self._repository.update(sale)

        item = sale.get_item(item_id)
        self._publisher.publish(ItemCancelledEvent.from_item(sale, item))  # type: ignore[arg-type]

        logger.info("ItemCancelled: %s ItemId=%s", sale_id, item_id)
        return sale


__all__ = ["SaleNotFoundError", "SalePage", "SaleService"]
