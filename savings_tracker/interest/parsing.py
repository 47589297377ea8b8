"""
Lenient amount parsing.

Balances, zone bounds and rates reach us as strings serialized by the
backend. A display calculation must never fail on a malformed value, so
everything that cannot be read as a finite number becomes zero.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

ZERO = Decimal("0")

AmountLike = Union[str, int, float, Decimal, None]


def parse_amount(value: AmountLike) -> Decimal:
    """
    Parse a monetary amount or percentage, defaulting to zero.

    None, empty strings, unparsable text, NaN and infinities all give
    Decimal("0"). Floats go through their shortest repr so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, float):
        parsed = Decimal(repr(value))
    elif isinstance(value, int):
        parsed = Decimal(value)
    else:
        text = str(value).strip()
        if not text:
            return ZERO
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return ZERO

    if not parsed.is_finite():
        return ZERO
    return parsed
