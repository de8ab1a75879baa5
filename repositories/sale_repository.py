"""
Sale repository (persistence).

This module provides *only* persistence operations for the Sale aggregate. It
does not enforce business rules; it stores and loads the aggregate exactly as
the domain computed it.

Tables:
- sales: one row per sale header.
- sale_items: one row per line item, keyed by item_id, with `position` to keep
  the aggregate's item order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from postgrest.exceptions import APIError

from domain.sale import Sale, SaleItem
from domain.time import require_utc_timestamp

logger = logging.getLogger(__name__)

# Supabase table names. Keep these aligned with sql/schema.sql.
_SALES_TABLE: str = "sales"
_SALE_ITEMS_TABLE: str = "sale_items"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


class RepositoryError(RuntimeError):
    """Raised when Supabase reports an error for a sale query."""


def normalize_page(page: int, page_size: int) -> Tuple[int, int]:
    """Clamp paging input: page >= 1, page_size in 1..200 (default 20)."""

    if page <= 0:
        page = 1
    if page_size <= 0 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _execute(query: Any, action: str) -> List[Mapping[str, Any]]:
    """Run a query builder and return its rows, raising RepositoryError on failure."""

    try:
        response = query.execute()
    except APIError as e:
        raise RepositoryError(f"Failed to {action}: {e.message}") from e

    error = getattr(response, "error", None)
    if error:
        raise RepositoryError(f"Failed to {action}: {error}")
    return getattr(response, "data", None) or []


def sale_to_row(sale: Sale) -> Dict[str, Any]:
    """Serialize the sale header for the `sales` table."""

    return {
        "sale_id": str(sale.sale_id),
        "sale_number": sale.sale_number,
        "sale_date_utc": _to_iso_utc(sale.sale_date, name="sale_date"),
        "customer_id": sale.customer_id,
        "customer_name": sale.customer_name,
        "branch_id": sale.branch_id,
        "branch_name": sale.branch_name,
        "total_amount": str(sale.total_amount),
        "cancelled": sale.cancelled,
        "created_at_utc": _to_iso_utc(sale.created_at, name="created_at"),
        "updated_at_utc": _to_iso_utc(sale.updated_at, name="updated_at"),
    }


def item_to_row(sale_id: UUID, position: int, item: SaleItem) -> Dict[str, Any]:
    """Serialize a line item for the `sale_items` table."""

    return {
        "item_id": str(item.item_id),
        "sale_id": str(sale_id),
        "position": position,
        "product_id": item.product_id,
        "product_name": item.product_name,
        "quantity": item.quantity,
        "unit_price": str(item.unit_price),
        "discount_percent": str(item.discount_percent),
        "total_amount": str(item.total_amount),
        "cancelled": item.cancelled,
    }


def _row_to_item(row: Mapping[str, Any]) -> SaleItem:
    return SaleItem(
        item_id=UUID(str(row["item_id"])),
        product_id=str(row["product_id"]),
        product_name=str(row["product_name"]),
        quantity=int(row["quantity"]),
        unit_price=Decimal(str(row["unit_price"])),
        discount_percent=Decimal(str(row["discount_percent"])),
        total_amount=Decimal(str(row["total_amount"])),
        cancelled=bool(row.get("cancelled", False)),
    )


def row_to_sale(row: Mapping[str, Any], item_rows: Sequence[Mapping[str, Any]]) -> Sale:
    """Rebuild a Sale from its header row and item rows (any order)."""

    ordered = sorted(item_rows, key=lambda r: int(r.get("position", 0)))
    return Sale.restore(
        sale_id=UUID(str(row["sale_id"])),
        sale_number=str(row["sale_number"]),
        sale_date=_parse_utc_datetime(row["sale_date_utc"]),
        customer_id=str(row["customer_id"]),
        customer_name=str(row["customer_name"]),
        branch_id=str(row["branch_id"]),
        branch_name=str(row["branch_name"]),
        items=[_row_to_item(r) for r in ordered],
        total_amount=Decimal(str(row["total_amount"])),
        cancelled=bool(row.get("cancelled", False)),
        created_at=_parse_utc_datetime(row["created_at_utc"]),
        updated_at=_parse_utc_datetime(row["updated_at_utc"]),
    )


class SaleRepository:
    """Load and store Sale aggregates through a Supabase client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def _items_for(self, sale_ids: Sequence[str]) -> Dict[str, List[Mapping[str, Any]]]:
        grouped: Dict[str, List[Mapping[str, Any]]] = {sale_id: [] for sale_id in sale_ids}
        if not sale_ids:
            return grouped

        query = (
            self._client.table(_SALE_ITEMS_TABLE)
            .select("*")
            .in_("sale_id", list(sale_ids))
        )
        for row in _execute(query, "list sale items"):
            grouped.setdefault(str(row["sale_id"]), []).append(row)
        return grouped

    def get_by_id(self, sale_id: UUID) -> Optional[Sale]:
        """
        Retrieve a sale with its full item collection.

        Returns:
            Sale or None if not found
        """

        query = (
            self._client.table(_SALES_TABLE)
            .select("*")
            .eq("sale_id", str(sale_id))
            .limit(1)
        )
        rows = _execute(query, "get sale")
        if not rows:
            return None

        items = self._items_for([str(sale_id)])
        return row_to_sale(rows[0], items[str(sale_id)])

    def list(self, page: int, page_size: int) -> List[Sale]:
        """
        Retrieve one page of sales, newest sale date first.

        Ties on sale date are broken by creation time (newest first).
        """

        page, page_size = normalize_page(page, page_size)
        start = (page - 1) * page_size

        query = (
            self._client.table(_SALES_TABLE)
            .select("*")
            .order("sale_date_utc", desc=True)
            .order("created_at_utc", desc=True)
            .range(start, start + page_size - 1)
        )
        rows = _execute(query, "list sales")

        items = self._items_for([str(row["sale_id"]) for row in rows])
        return [row_to_sale(row, items[str(row["sale_id"])]) for row in rows]

    def add(self, sale: Sale) -> None:
        """Insert a new sale and its items."""

        _execute(self._client.table(_SALES_TABLE).insert(sale_to_row(sale)), "insert sale")

        item_rows = [item_to_row(sale.sale_id, pos, item) for pos, item in enumerate(sale.items)]
        if item_rows:
            _execute(self._client.table(_SALE_ITEMS_TABLE).insert(item_rows), "insert sale items")

        logger.debug("Inserted sale %s with %d items", sale.sale_id, len(item_rows))

    def update(self, sale: Sale) -> None:
        """
        Persist the full aggregate graph.

        Items no longer in the aggregate are deleted, existing items are
        updated by identifier, and new items are inserted.
        """

        sale_id = str(sale.sale_id)
        header = sale_to_row(sale)
        header.pop("sale_id")
        _execute(
            self._client.table(_SALES_TABLE).update(header).eq("sale_id", sale_id),
            "update sale",
        )

        stored = _execute(
            self._client.table(_SALE_ITEMS_TABLE).select("item_id").eq("sale_id", sale_id),
            "list sale items",
        )
        stored_ids = {str(row["item_id"]) for row in stored}
        current_ids = {str(item.item_id) for item in sale.items}

        removed = sorted(stored_ids - current_ids)
        if removed:
            _execute(
                self._client.table(_SALE_ITEMS_TABLE).delete().in_("item_id", removed),
                "delete sale items",
            )

        new_rows: List[Dict[str, Any]] = []
        for pos, item in enumerate(sale.items):
            row = item_to_row(sale.sale_id, pos, item)
            if row["item_id"] in stored_ids:
                item_id = row.pop("item_id")
                _execute(
                    self._client.table(_SALE_ITEMS_TABLE).update(row).eq("item_id", item_id),
                    "update sale item",
                )
            else:
                new_rows.append(row)

        if new_rows:
            _execute(self._client.table(_SALE_ITEMS_TABLE).insert(new_rows), "insert sale items")

        logger.debug(
            "Updated sale %s: %d items removed, %d inserted", sale_id, len(removed), len(new_rows)
        )

    def delete(self, sale_id: UUID) -> None:
        """Delete a sale and its items. Deleting a missing sale is a no-op."""

        _execute(
            self._client.table(_SALE_ITEMS_TABLE).delete().eq("sale_id", str(sale_id)),
            "delete sale items",
        )
        _execute(
            self._client.table(_SALES_TABLE).delete().eq("sale_id", str(sale_id)),
            "delete sale",
        )


__all__ = [
    "RepositoryError",
    "SaleRepository",
    "item_to_row",
    "normalize_page",
    "row_to_sale",
    "sale_to_row",
]
