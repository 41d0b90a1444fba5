from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from database import atomic
from exceptions import InvalidQuantity, NoItemsSelected, QuantityExceedsRemaining, ValidationFailed
from models.sales_order_items import SalesOrderItem
from crud.fulfillment import (
    apply_partial_document,
    compute_remaining,
    get_order_remaining,
    selections_for_amount,
    selections_for_full_remaining,
)
from crud.sales_orders import create_sales_order
from schemas.sales_orders import SalesOrderCreate
from models.sales_orders import SalesOrderStatus


def _line(id, product_id, quantity, price="10"):
    return SimpleNamespace(id=id, product_id=product_id, quantity=Decimal(quantity), price_per_unit=Decimal(price),
                           description=f"Product {product_id}", product=None)


def test_remaining_counts_linked_lines():
    order = [_line(1, 7, "10"), _line(2, 8, "5")]
    applied = [{"so_item_id": 1, "product_id": 7, "quantity": "4"}, {"so_item_id": 1, "product_id": 7, "quantity": "2"}]

    first, second = compute_remaining(order, applied)

    assert (first.applied_qty, first.remaining_qty, first.fully_invoiced) == (Decimal("6"), Decimal("4"), False)
    assert (second.applied_qty, second.remaining_qty) == (Decimal("0"), Decimal("5"))


def test_unlinked_lines_match_by_product_without_double_counting():
    order = [_line(1, 7, "3"), _line(2, 7, "5")]
    applied = [{"so_item_id": None, "product_id": 7, "quantity": "4"}]

    first, second = compute_remaining(order, applied)

    assert first.remaining_qty == Decimal("0")
    assert first.fully_invoiced
    assert second.applied_qty == Decimal("1")
    assert second.remaining_qty == Decimal("4")


def test_remaining_is_never_negative():
    order = [_line(1, 7, "2")]
    applied = [{"so_item_id": 1, "product_id": 7, "quantity": "5"}]

    (line,) = compute_remaining(order, applied)

    assert line.remaining_qty == Decimal("0")
    assert line.fully_invoiced


def test_selections_for_amount_spreads_by_value():
    remaining = compute_remaining([_line(1, 7, "10", "100"), _line(2, 8, "10", "100")], [])

    selections = selections_for_amount(remaining, Decimal("500"))

    assert selections == [{"so_item_id": 1, "quantity": Decimal("2.50")}, {"so_item_id": 2, "quantity": Decimal("2.50")}]


def test_selections_for_amount_rejects_more_than_uninvoiced():
    remaining = compute_remaining([_line(1, 7, "1", "100")], [])
    with pytest.raises(ValidationFailed):
        selections_for_amount(remaining, Decimal("100.01"))


def test_fully_invoiced_order_has_nothing_to_select():
    remaining = compute_remaining([_line(1, 7, "1")], [{"so_item_id": 1, "product_id": 7, "quantity": "1"}])
    with pytest.raises(NoItemsSelected):
        selections_for_full_remaining(remaining)


@pytest.fixture
def open_order(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    widget, gadget = products
    with atomic(db):
        so = create_sales_order(db, SalesOrderCreate(
            company_id=manufacturer.id,
            customer_id=customer.id,
            order_date=date(2026, 3, 1),
            status=SalesOrderStatus.OPEN,
            items=[
                {"product_id": widget.id, "quantity": "10", "price_per_unit": "100"},
                {"product_id": gadget.id, "quantity": "4", "price_per_unit": "50"},
            ],
        ), tenant_id, "alice")
    return so


def test_apply_partial_document_consumes_selected_quantity(db, open_order, products):
    widget_line = open_order.items[0]
    with atomic(db):
        lines = apply_partial_document(db, open_order, [{"product_id": products[0].id, "quantity": "4"}])

    assert lines == [{
        "so_item_id": widget_line.id,
        "product_id": products[0].id,
        "product_name": "Widget",
        "description": widget_line.description,
        "quantity": Decimal("4"),
        "price_per_unit": Decimal("100.00"),
        "line_total": Decimal("400.00"),
    }]
    db.refresh(widget_line)
    assert widget_line.invoiced_quantity == Decimal("4")
    assert not widget_line.fully_invoiced


def test_over_selection_leaves_every_line_untouched(db, open_order):
    widget_line, gadget_line = open_order.items
    with pytest.raises(QuantityExceedsRemaining) as exc:
        with atomic(db):
            apply_partial_document(db, open_order, [
                {"so_item_id": gadget_line.id, "quantity": "2"},
                {"so_item_id": widget_line.id, "quantity": "11"},
            ])

    assert Decimal(exc.value.context["requested"]) == Decimal("11")
    assert Decimal(exc.value.context["remaining"]) == Decimal("10")
    for line in db.query(SalesOrderItem).all():
        assert not line.invoiced_quantity


def test_repeated_lines_are_summed_before_checking(db, open_order):
    gadget_line = open_order.items[1]
    with pytest.raises(QuantityExceedsRemaining):
        apply_partial_document(db, open_order, [
            {"so_item_id": gadget_line.id, "quantity": "3"},
            {"so_item_id": gadget_line.id, "quantity": "2"},
        ])


@pytest.mark.parametrize("selection, error", [
    ([], NoItemsSelected),
    ([{"product_id": 999, "quantity": "1"}], ValidationFailed),
    ([{"product_id": 1, "quantity": "0"}], InvalidQuantity),
    ([{"product_id": 1, "quantity": "-2"}], InvalidQuantity),
])
def test_invalid_selections(db, open_order, selection, error):
    with pytest.raises(error):
        apply_partial_document(db, open_order, selection)


def test_order_remaining_counts_issued_invoices_only(db, open_order, products):
    with atomic(db):
        apply_partial_document(db, open_order, [{"product_id": products[1].id, "quantity": "1"}])

    remaining = get_order_remaining(db, open_order)

    # Quantities only count once they reach an issued invoice
    assert remaining["remaining_amount"] == Decimal("1200.00")
    assert len(remaining["invoiceable_lines"]) == 2
