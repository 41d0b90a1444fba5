"""
Input normalization for identifiers, quantities and money.

These functions are the only place raw request values (strings with thousands
separators, floats, ints) become typed values. Everything past the API edge
works with `int` ids and `Decimal` amounts. A value that cannot be parsed is
rejected with an error naming the field; nothing is ever replaced by a default.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated
from pydantic import BeforeValidator

from exceptions import InvalidAmount, InvalidQuantity, ValidationFailed

CENTS = Decimal("0.01")


def _to_decimal(value, field: str, error_cls) -> Decimal:
    if value is None or isinstance(value, bool):
        raise error_cls(f"{field} is required and must be a number.", field=field)
    if isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned:
            raise error_cls(f"{field} is required and must be a number.", field=field)
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            raise error_cls(f"{field} '{value}' is not a valid number.", field=field)
    elif isinstance(value, (int, float, Decimal)):
        # str() avoids binary float artefacts (0.1 -> 0.1000000000000000055511)
        result = Decimal(str(value))
    else:
        raise error_cls(f"{field} must be a number, got {type(value).__name__}.", field=field)

    if not result.is_finite():
        raise error_cls(f"{field} must be a finite number.", field=field)
    return result


def _check_positive_cents(result: Decimal, field: str, error_cls) -> Decimal:
    if result <= 0:
        raise error_cls(f"{field} must be greater than zero, got {result}.", field=field)
    if result != result.quantize(CENTS):
        raise error_cls(f"{field} allows at most 2 decimal places, got {result}.", field=field)
    return result.quantize(CENTS)


def parse_quantity(value, field: str = "quantity") -> Decimal:
    """Parse a strictly positive quantity with at most 2 decimal places."""
    return _check_positive_cents(_to_decimal(value, field, InvalidQuantity), field, InvalidQuantity)


def parse_amount(value, field: str = "amount") -> Decimal:
    """Parse a strictly positive money amount with at most 2 decimal places."""
    return _check_positive_cents(_to_decimal(value, field, InvalidAmount), field, InvalidAmount)


def parse_order_id(value, field: str = "order_id") -> int:
    """Parse a positive integer identifier from an int or a numeric string."""
    if isinstance(value, bool):
        raise ValidationFailed(f"{field} must be a positive integer.", field=field)
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and value.strip().isdigit():
        result = int(value.strip())
    else:
        raise ValidationFailed(f"{field} '{value}' is not a valid identifier.", field=field)
    if result <= 0:
        raise ValidationFailed(f"{field} must be a positive integer.", field=field)
    return result


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


# Pydantic field types that run the parsers above before validation
OrderId = Annotated[int, BeforeValidator(parse_order_id)]
Quantity = Annotated[Decimal, BeforeValidator(parse_quantity)]
Money = Annotated[Decimal, BeforeValidator(parse_amount)]
