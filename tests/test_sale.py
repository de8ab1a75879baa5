"""
Tests for `domain/sale.py`.

Covers contract rules:
- Discount tiers: 0% for 1-3, 10% for 4-9, 20% for 10-20; above 20 rejected.
- Item total = round2(unit_price * quantity * (1 - discount)); sale total is the
  rounded sum of non-cancelled item totals.
- Header and item validation raises ValidationError naming field and kind.
- Update replaces the whole item collection and is all-or-nothing.
- Cancellation of items and sales is one-way and idempotent.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from domain.errors import NotFoundError, ValidationError, ValidationErrorKind
from domain.sale import NewItem, Sale, calculate_discount_percent


def _sale(*items: NewItem, sale_date: datetime | None = None) -> Sale:
    return Sale.create(
        sale_number="S-0001",
        sale_date=sale_date or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        customer_id="cust-1",
        customer_name="John",
        branch_id="br-1",
        branch_name="Main",
        items=list(items),
    )


def _assert_total_invariant(sale: Sale) -> None:
    expected = sum((i.total_amount for i in sale.items if not i.cancelled), Decimal("0.00"))
    assert sale.total_amount == expected.quantize(Decimal("0.01"))


@pytest.mark.parametrize(
    "quantity, expected",
    [
        (1, Decimal("0.00")),
        (3, Decimal("0.00")),
        (4, Decimal("0.10")),
        (9, Decimal("0.10")),
        (10, Decimal("0.20")),
        (20, Decimal("0.20")),
    ],
)
def test_discount_percent_follows_quantity_tiers(quantity: int, expected: Decimal) -> None:
    """Verify tier boundaries of the discount function."""

    assert calculate_discount_percent(quantity) == expected


def test_discount_percent_rejects_more_than_twenty_items() -> None:
    """Verify quantities above 20 fail with a quantity-limit error."""

    with pytest.raises(ValidationError, match="above 20 identical items") as exc_info:
        calculate_discount_percent(21)

    assert exc_info.value.kind is ValidationErrorKind.QUANTITY_LIMIT_EXCEEDED
    assert exc_info.value.field == "quantity"


def test_create_initializes_aggregate_and_computes_totals() -> None:
    """3 x 10.00 (no discount) + 5 x 20.00 (10% off) = 30.00 + 90.00 = 120.00."""

    sale = _sale(NewItem("p-1", "Prod 1", 3, Decimal("10.00")), NewItem("p-2", "Prod 2", 5, Decimal("20.00")))

    assert sale.sale_number == "S-0001"
    assert sale.customer_id == "cust-1"
    assert sale.customer_name == "John"
    assert sale.branch_id == "br-1"
    assert sale.branch_name == "Main"
    assert sale.cancelled is False
    assert len(sale.items) == 2
    assert len({i.item_id for i in sale.items}) == 2

    first, second = sale.items
    assert (first.product_id, first.discount_percent, first.total_amount) == ("p-1", Decimal("0.00"), Decimal("30.00"))
    assert (second.product_id, second.discount_percent, second.total_amount) == ("p-2", Decimal("0.10"), Decimal("90.00"))
    assert sale.total_amount == Decimal("120.00")
    _assert_total_invariant(sale)


def test_create_applies_twenty_percent_discount() -> None:
    """10 x 5.00 = 50.00 gross, 20% off = 40.00."""

    sale = _sale(NewItem("p-1", "Prod 1", 10, Decimal("5.00")))

    assert sale.items[0].total_amount == Decimal("40.00")
    assert sale.total_amount == Decimal("40.00")


def test_create_trims_text_fields_and_rounds_unit_price() -> None:
    """Verify header/product fields are trimmed and unit price rounded half away from zero."""

    sale = Sale.create(
        sale_number="  S-9  ",
        sale_date=None,
        customer_id=" c ",
        customer_name=" Customer ",
        branch_id=" b ",
        branch_name=" Branch ",
        items=[NewItem("  p  ", "  Product  ", 1, Decimal("2.345"))],
    )

    assert sale.sale_number == "S-9"
    assert sale.customer_id == "c"
    assert sale.customer_name == "Customer"
    assert sale.branch_id == "b"
    assert sale.branch_name == "Branch"
    assert sale.items[0].product_id == "p"
    assert sale.items[0].product_name == "Product"
    assert sale.items[0].unit_price == Decimal("2.35")


def test_create_sets_timestamps_and_defaults_unset_sale_date() -> None:
    """Verify unset sale_date (None or datetime.min) becomes creation time."""

    before = datetime.now(timezone.utc)
    for unset in (None, datetime.min):
        sale = Sale.create("s", unset, "c", "n", "b", "bn", [NewItem("p", "pn", 1, 1)])
        after = datetime.now(timezone.utc)

        assert before <= sale.sale_date <= after
        assert before <= sale.created_at <= after
        assert sale.updated_at >= sale.created_at


def test_create_converts_sale_date_to_utc() -> None:
    """Verify offset-aware sale dates are stored in UTC."""

    local = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone(timedelta(hours=-3)))
    sale = _sale(NewItem("p", "pn", 1, 1), sale_date=local)

    assert sale.sale_date == datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert sale.sale_date.utcoffset() == timedelta(0)


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"sale_number": ""}, "sale_number"),
        ({"customer_id": "   "}, "customer_id"),
        ({"customer_name": ""}, "customer_name"),
        ({"branch_id": ""}, "branch_id"),
        ({"branch_name": None}, "branch_name"),
    ],
)
def test_create_rejects_empty_header_fields(kwargs: dict, field: str) -> None:
    """Verify each required header field is checked after trimming."""

    args = {
        "sale_number": "s",
        "sale_date": None,
        "customer_id": "c",
        "customer_name": "n",
        "branch_id": "b",
        "branch_name": "bn",
        "items": [NewItem("p", "pn", 1, 1)],
    }
    args.update(kwargs)

    with pytest.raises(ValidationError) as exc_info:
        Sale.create(**args)

    assert exc_info.value.field == field
    assert exc_info.value.kind is ValidationErrorKind.REQUIRED


@pytest.mark.parametrize(
    "field, limit",
    [
        ("sale_number", 64),
        ("customer_id", 64),
        ("customer_name", 256),
        ("branch_id", 64),
        ("branch_name", 256),
    ],
)
def test_create_rejects_over_length_header_fields(field: str, limit: int) -> None:
    """Verify max lengths apply to trimmed values (limit accepted, limit + 1 rejected)."""

    args = {
        "sale_number": "s",
        "sale_date": None,
        "customer_id": "c",
        "customer_name": "n",
        "branch_id": "b",
        "branch_name": "bn",
        "items": [NewItem("p", "pn", 1, 1)],
    }

    Sale.create(**{**args, field: " " + "x" * limit + " "})

    with pytest.raises(ValidationError) as exc_info:
        Sale.create(**{**args, field: "x" * (limit + 1)})

    assert exc_info.value.field == field
    assert exc_info.value.kind is ValidationErrorKind.LENGTH_EXCEEDED


@pytest.mark.parametrize(
    "item, field, kind",
    [
        (NewItem("", "pn", 1, 1), "product_id", ValidationErrorKind.REQUIRED),
        (NewItem("p", " ", 1, 1), "product_name", ValidationErrorKind.REQUIRED),
        (NewItem("p" * 65, "pn", 1, 1), "product_id", ValidationErrorKind.LENGTH_EXCEEDED),
        (NewItem("p", "n" * 257, 1, 1), "product_name", ValidationErrorKind.LENGTH_EXCEEDED),
        (NewItem("p", "pn", 0, 1), "quantity", ValidationErrorKind.QUANTITY_OUT_OF_RANGE),
        (NewItem("p", "pn", -1, 1), "quantity", ValidationErrorKind.QUANTITY_OUT_OF_RANGE),
        (NewItem("p", "pn", 21, 1), "quantity", ValidationErrorKind.QUANTITY_LIMIT_EXCEEDED),
        (NewItem("p", "pn", 1, 0), "unit_price", ValidationErrorKind.PRICE_OUT_OF_RANGE),
        (NewItem("p", "pn", 1, Decimal("-5.00")), "unit_price", ValidationErrorKind.PRICE_OUT_OF_RANGE),
        (NewItem("p", "pn", 1, float("nan")), "unit_price", ValidationErrorKind.PRICE_OUT_OF_RANGE),
        (NewItem("p", "pn", 1, Decimal("NaN")), "unit_price", ValidationErrorKind.PRICE_OUT_OF_RANGE),
        (NewItem("p", "pn", 1, "NaN"), "unit_price", ValidationErrorKind.PRICE_OUT_OF_RANGE),
        (NewItem("p", "pn", 1, float("inf")), "unit_price", ValidationErrorKind.PRICE_OUT_OF_RANGE),
    ],
)
def test_create_rejects_invalid_item_data(item: NewItem, field: str, kind: ValidationErrorKind) -> None:
    """Verify item validation names the offending field and constraint."""

    with pytest.raises(ValidationError) as exc_info:
        _sale(item)

    assert exc_info.value.field == field
    assert exc_info.value.kind is kind


def test_create_with_twenty_one_items_mentions_limit() -> None:
    """Verify the quantity limit message for a single item of 21."""

    with pytest.raises(ValidationError, match="above 20 identical items"):
        _sale(NewItem("p", "pn", 21, Decimal("1.00")))


def test_create_accepts_empty_item_list() -> None:
    """Verify an empty item list is legal at the aggregate boundary."""

    sale = _sale()

    assert sale.items == ()
    assert sale.total_amount == Decimal("0.00")


def test_update_modifies_fields_and_replaces_items() -> None:
    """Verify update replaces header values and recalculates from the new items only."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")))
    old_ids = {i.item_id for i in sale.items}
    new_date = datetime(2025, 2, 1, 0, 0, 0, tzinfo=timezone.utc)

    sale.update(
        sale_number="S-2",
        sale_date=new_date,
        customer_id="c2",
        customer_name="cust 2",
        branch_id="b2",
        branch_name="branch 2",
        items=[NewItem("p2", "Prod 2", 4, Decimal("20"))],  # 80.00 - 10% = 72.00
    )

    assert sale.sale_number == "S-2"
    assert sale.sale_date == new_date
    assert sale.customer_id == "c2"
    assert sale.customer_name == "cust 2"
    assert sale.branch_id == "b2"
    assert sale.branch_name == "branch 2"
    assert len(sale.items) == 1
    assert sale.items[0].product_id == "p2"
    assert sale.items[0].item_id not in old_ids
    assert sale.total_amount == Decimal("72.00")
    _assert_total_invariant(sale)


def test_update_keeps_values_for_absent_fields() -> None:
    """Verify None, empty, whitespace-only and unset dates keep current values."""

    sale = _sale(NewItem("p1", "Prod 1", 1, 1))
    original_date = sale.sale_date

    sale.update(sale_number=None, customer_id="", customer_name="   ", sale_date=datetime.min, items=[])

    assert sale.sale_number == "S-0001"
    assert sale.customer_id == "cust-1"
    assert sale.customer_name == "John"
    assert sale.sale_date == original_date
    assert sale.items == ()
    assert sale.total_amount == Decimal("0.00")


def test_update_refreshes_updated_at_but_not_created_at() -> None:
    """Verify created_at is immutable and updated_at moves forward."""

    sale = _sale(NewItem("p1", "Prod 1", 1, 1))
    created_at = sale.created_at
    updated_at = sale.updated_at

    sale.update(items=[NewItem("p2", "Prod 2", 1, 2)])

    assert sale.created_at == created_at
    assert sale.updated_at >= updated_at


def test_update_is_all_or_nothing() -> None:
    """Verify a failing item leaves header and items untouched."""

    sale = _sale(NewItem("p1", "Prod 1", 3, Decimal("10")))
    items_before = sale.items
    total_before = sale.total_amount

    with pytest.raises(ValidationError):
        sale.update(
            sale_number="S-NEW",
            customer_name="Someone Else",
            items=[NewItem("p2", "Prod 2", 2, 5), NewItem("p3", "Prod 3", 25, 5)],
        )

    assert sale.sale_number == "S-0001"
    assert sale.customer_name == "John"
    assert sale.items == items_before
    assert sale.total_amount == total_before


def test_update_rejects_over_length_field_without_changes() -> None:
    """Verify header validation on update runs before anything is applied."""

    sale = _sale(NewItem("p1", "Prod 1", 1, 1))

    with pytest.raises(ValidationError) as exc_info:
        sale.update(sale_number="S-2", branch_name="x" * 257, items=[])

    assert exc_info.value.field == "branch_name"
    assert sale.sale_number == "S-0001"
    assert len(sale.items) == 1


def test_discount_is_fixed_per_item_instance() -> None:
    """Verify discount stays with the item until the item is replaced."""

    sale = _sale(NewItem("p1", "Prod 1", 4, Decimal("10")))
    assert sale.items[0].discount_percent == Decimal("0.10")

    sale.update(items=[NewItem("p1", "Prod 1", 12, Decimal("10"))])

    assert sale.items[0].discount_percent == Decimal("0.20")
    assert sale.total_amount == Decimal("96.00")


def test_cancel_item_cancels_only_selected_item() -> None:
    """20.00 + 36.00; cancelling the 36.00 item leaves 20.00."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")), NewItem("p2", "Prod 2", 4, Decimal("10")))
    target = next(i for i in sale.items if i.product_id == "p2")
    assert sale.total_amount == Decimal("56.00")

    sale.cancel_item(target.item_id)

    cancelled = sale.get_item(target.item_id)
    assert cancelled is not None
    assert cancelled.cancelled is True
    assert cancelled.total_amount == Decimal("0.00")
    assert sale.get_item(sale.items[0].item_id).cancelled is False
    assert sale.total_amount == Decimal("20.00")
    assert sale.cancelled is False
    _assert_total_invariant(sale)


def test_cancel_item_is_idempotent() -> None:
    """Verify cancelling an already cancelled item changes nothing."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")), NewItem("p2", "Prod 2", 4, Decimal("10")))
    target = sale.items[1].item_id

    sale.cancel_item(target)
    items_once, total_once = sale.items, sale.total_amount
    sale.cancel_item(target)

    assert sale.items == items_once
    assert sale.total_amount == total_once


def test_cancel_item_raises_when_item_not_found() -> None:
    """Verify unknown item ids fail with NotFoundError('Item not found')."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")))

    with pytest.raises(NotFoundError, match="Item not found") as exc_info:
        sale.cancel_item(uuid4())

    assert exc_info.value.kind == "item-not-found"


def test_cancel_sale_cancels_all_items_and_zeroes_totals() -> None:
    """20.00 + 40.00 = 60.00; cancelling the sale zeroes everything."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")), NewItem("p2", "Prod 2", 10, Decimal("5")))
    assert sale.total_amount == Decimal("60.00")

    sale.cancel_sale()

    assert sale.cancelled is True
    assert all(i.cancelled for i in sale.items)
    assert all(i.total_amount == Decimal("0.00") for i in sale.items)
    assert sale.total_amount == Decimal("0.00")


def test_cancel_sale_is_idempotent() -> None:
    """Verify a second cancel_sale leaves state (including updated_at) unchanged."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")))
    sale.cancel_item(sale.items[0].item_id)
    sale.cancel_sale()
    items_once, total_once, updated_once = sale.items, sale.total_amount, sale.updated_at

    sale.cancel_sale()

    assert sale.items == items_once
    assert sale.total_amount == total_once
    assert sale.updated_at == updated_once


def test_update_on_cancelled_sale_keeps_items_cancelled() -> None:
    """Verify a cancelled sale stays fully cancelled after its items are replaced."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")))
    sale.cancel_sale()

    sale.update(items=[NewItem("p2", "Prod 2", 5, Decimal("20"))])

    assert sale.cancelled is True
    assert all(i.cancelled for i in sale.items)
    assert sale.total_amount == Decimal("0.00")


def test_sale_items_are_immutable() -> None:
    """Verify items cannot be changed from outside the aggregate."""

    sale = _sale(NewItem("p1", "Prod 1", 2, Decimal("10")))

    with pytest.raises(FrozenInstanceError):
        sale.items[0].cancelled = True  # type: ignore[misc]

    with pytest.raises(AttributeError):
        sale.total_amount = Decimal("1.00")  # type: ignore[misc]


def test_item_totals_round_half_away_from_zero() -> None:
    """1 x 0.125 is stored as 0.13 (half away from zero), not 0.12."""

    sale = _sale(NewItem("p1", "Prod 1", 1, Decimal("0.125")))

    assert sale.items[0].unit_price == Decimal("0.13")
    assert sale.total_amount == Decimal("0.13")


def test_net_amount_rounding_on_discounted_tie() -> None:
    """4 x 0.35 = 1.40, 10% off = 1.26; 9 x 0.05 = 0.45, 10% off = 0.405 -> 0.41."""

    sale = _sale(NewItem("p1", "Prod 1", 4, Decimal("0.35")), NewItem("p2", "Prod 2", 9, Decimal("0.05")))

    assert sale.items[0].total_amount == Decimal("1.26")
    assert sale.items[1].total_amount == Decimal("0.41")
    assert sale.total_amount == Decimal("1.67")
