"""Amount and rate parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Currency symbols and thousands separators
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_rate(rate_str: str) -> Decimal:
    """Parse an annual rate into a decimal fraction.

    "6%" and "6 %" are percentages; a bare number is taken as a fraction,
    so "0.06" and "6%" are the same rate.

    Raises:
        ValueError: If rate string cannot be parsed
    """
    if not rate_str or not rate_str.strip():
        raise ValueError("Empty rate string")

    rate_str = rate_str.strip()
    is_percent = rate_str.endswith("%")
    if is_percent:
        rate_str = rate_str[:-1].strip()

    try:
        rate = Decimal(rate_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse rate '{rate_str}'") from e
    if not rate.is_finite():
        raise ValueError(f"Could not parse rate '{rate_str}'")
    return rate / 100 if is_percent else rate
