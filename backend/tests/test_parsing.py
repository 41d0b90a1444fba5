from decimal import Decimal

import pytest
from pydantic import BaseModel, ValidationError

from exceptions import InvalidAmount, InvalidQuantity, ValidationFailed
from utils.parsing import Money, OrderId, parse_amount, parse_order_id, parse_quantity, round_money


def test_parse_amount_accepts_thousands_separators():
    assert parse_amount("1,234.50") == Decimal("1234.50")


def test_parse_amount_accepts_numbers():
    assert parse_amount(10) == Decimal("10.00")
    assert parse_amount(0.1) == Decimal("0.10")


@pytest.mark.parametrize("value", [None, "", "abc", "NaN", "Infinity", 0, "-5", True])
def test_parse_amount_rejects_invalid_values(value):
    with pytest.raises(InvalidAmount):
        parse_amount(value)


def test_parse_amount_rejects_sub_cent_precision():
    with pytest.raises(InvalidAmount) as exc:
        parse_amount("10.005", field="partial_amount")
    assert exc.value.context["field"] == "partial_amount"


def test_parse_quantity_rejects_zero_and_names_the_field():
    with pytest.raises(InvalidQuantity) as exc:
        parse_quantity("0", field="items[2].quantity")
    assert "items[2].quantity" in exc.value.detail


def test_parse_order_id_accepts_numeric_strings():
    assert parse_order_id(" 42 ") == 42
    assert parse_order_id(7) == 7


@pytest.mark.parametrize("value", ["IC-42", "", None, 0, -3, "4.5", False])
def test_parse_order_id_rejects_non_identifiers(value):
    with pytest.raises(ValidationFailed):
        parse_order_id(value)


def test_round_money_rounds_half_up():
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(Decimal("2.344")) == Decimal("2.34")


class _Payload(BaseModel):
    order_id: OrderId
    amount: Money


def test_annotated_types_parse_request_values():
    payload = _Payload(order_id="12", amount="2,000.00")
    assert payload.order_id == 12
    assert payload.amount == Decimal("2000.00")


def test_annotated_types_reject_bad_values():
    with pytest.raises(ValidationError):
        _Payload(order_id="twelve", amount="10")
    with pytest.raises(ValidationError):
        _Payload(order_id=1, amount="-10")
