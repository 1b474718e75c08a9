"""
Shared money parsing utilities.

Amounts on receipts and statements arrive as loose text tokens:
- Currency prefix: $12.34, £ 12.34, €12
- Thousands separators: 1,234.56
- Missing decimals: 1234 → 1234.00

All parsed values are Decimal quantized to cents.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
import re

CENTS = Decimal('0.01')

# Symbols stripped before numeric parsing
CURRENCY_SYMBOLS = '£€$'

# A number with optional thousands groups and up to two decimals.
# Longest alternative first so "1,234.56" is not split at the comma.
NUMBER_PATTERN = r'\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?'

_symbol_re = re.compile(f'[{CURRENCY_SYMBOLS}]')
_plain_number_re = re.compile(r'\d+(?:\.\d+)?')


def parse_money(amount_str: str) -> Optional[Decimal]:
    """
    Parse a money token into a non-negative Decimal.

    Only plain digits with an optional decimal part are accepted once
    symbols, commas and spaces are removed. Signs, exponents ("1e5") and
    words are rejected.

    Args:
        amount_str: String containing amount (e.g., "$1,234.56", "£ 4.50")

    Returns:
        Decimal amount quantized to 0.01, or None if parsing fails

    Examples:
        >>> parse_money("$1,234.56")
        Decimal('1234.56')
        >>> parse_money("12")
        Decimal('12.00')
        >>> parse_money("-3.00") is None
        True
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    cleaned = _symbol_re.sub('', amount_str.strip())
    cleaned = cleaned.replace(',', '').replace(' ', '')

    if not _plain_number_re.fullmatch(cleaned):
        return None

    try:
        return Decimal(cleaned).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def has_decimal_point(amount_str: str) -> bool:
    """True if the token carries an explicit decimal part ("12.50", not "12")."""
    return '.' in amount_str
