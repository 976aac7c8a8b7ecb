"""Amount parsing and money rounding utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

CENTS = Decimal("0.01")

# Currency codes and symbols accepted around an amount
_CURRENCY_PATTERN = re.compile(r"(?i)\b(AED|USD|EUR|GBP|SAR)\b|[$€£]|د\.إ")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "AED 123.45"
    - "123.45 AED"
    - "$123.45"
    - "1,234.56"

    Negative amounts are rejected: every amount in billing is a price, fee or
    collected value.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is negative
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = _CURRENCY_PATTERN.sub("", amount_str.strip())
    cleaned = cleaned.replace(",", "").strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount < 0:
        raise ValueError(f"Amount must not be negative: '{amount_str}'")
    return amount


def round_money(amount: Decimal) -> Decimal:
    """Round a money amount to 2 places, half-up."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
