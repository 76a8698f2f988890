"""
Amount parsing and display.

Money is always a Decimal with at most two places. Floats are
converted through str() so 0.1 stays 0.1.
"""

from decimal import Decimal, InvalidOperation

from pocketbank.config import get_settings
from pocketbank.errors import InvalidRequest

CENT = Decimal("0.01")


def parse_amount(value) -> Decimal:
    """
    Turn a caller-supplied amount into a positive, two-place Decimal.

    Raises InvalidRequest for anything else.
    """
    if isinstance(value, bool):
        raise InvalidRequest("Amount must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidRequest("Amount must be a number")

    if not amount.is_finite():
        raise InvalidRequest("Amount must be a number")
    if amount <= 0:
        raise InvalidRequest("Amount must be greater than 0")
    if amount != amount.quantize(CENT):
        raise InvalidRequest("Amount cannot have more than 2 decimal places")
    return amount.quantize(CENT)


def format_amount(amount) -> str:
    """Render an amount for messages, e.g. ₹250.00."""
    symbol = get_settings().CURRENCY_SYMBOL
    return f"{symbol}{Decimal(amount).quantize(CENT)}"
