"""Money amount parsing."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")

_CURRENCY_MARKS = re.compile(r"[$€£¥৳₹]|\b[A-Z]{3}\b")


def parse_amount(amount_str: str, allow_negative: bool = False) -> Decimal:
    """Parse a money amount, rounded to cents.

    Accepts "1234.5", "$1,234.50", "1 234.50 USD" and accounting-style
    negatives such as "(12.00)" or "-12".

    Args:
        amount_str: Amount text
        allow_negative: If False, negative amounts are rejected

    Raises:
        ValueError: If the text is empty, not a number, or negative when
            negatives are not allowed
    """
    if amount_str is None or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    text = _CURRENCY_MARKS.sub("", text).replace(",", "").replace(" ", "")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'") from None
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")

    if negative:
        amount = -amount
    if amount < 0 and not allow_negative:
        raise ValueError(f"Amount must not be negative, got '{amount_str}'")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
