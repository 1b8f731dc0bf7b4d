"""Money helpers for prices shown in the storefront."""

from decimal import Decimal, InvalidOperation
from typing import Union

CURRENCY_SYMBOL = "£"
CENTS = Decimal("0.01")


def parse_price(value: Union[str, int, float, Decimal]) -> Decimal:
    """
    Parse a catalog price into an exact Decimal.

    Accepts currency strings such as "£4.50" as well as plain numbers.

    Raises:
        ValueError: If the value is not a non-negative amount in whole pence
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        # str() first so 4.1 stays 4.10 and not 4.0999...
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(CURRENCY_SYMBOL, "").replace(",", "")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Invalid price: {value!r}") from None
    else:
        raise ValueError(f"Invalid price: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Invalid price: {value!r}")

    if amount < 0:
        raise ValueError(f"Price cannot be negative: {value!r}")

    try:
        price = amount.quantize(CENTS)
    except InvalidOperation:
        raise ValueError(f"Price out of range: {value!r}") from None

    if price != amount:
        raise ValueError(f"Price has more than two decimal places: {value!r}")

    return price


def format_price(amount: Decimal) -> str:
    """Render an amount as "£4.50"."""
    amount = Decimal(amount).quantize(CENTS)
    if amount < 0:
        return f"-{CURRENCY_SYMBOL}{-amount}"
    return f"{CURRENCY_SYMBOL}{amount}"
