"""
Candidate dataclasses for extraction scoring.

Each candidate represents a potential extracted value with metadata
used for selection.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from fintrack.utils.money import has_decimal_point

# Amount tiers (lower is better)
TIER_TOTAL = 1       # "Total: 48.60"
TIER_KEYWORD = 2     # "Amount", "Sale", "Subtotal"
TIER_STANDALONE = 3  # Any bare number


@dataclass(frozen=True)
class Candidate:
    """Base class for extraction candidates."""
    value: Any
    pattern_name: str
    match_span: tuple[int, int]  # (start, end) character positions
    priority: int = 100  # Lower is better
    raw_text: str = ""  # Original matched text


@dataclass(frozen=True)
class AmountCandidate(Candidate):
    """
    Candidate for extracted amount.

    Selection factors:
    - priority: amount tier (TIER_TOTAL, TIER_KEYWORD, TIER_STANDALONE)
    - has_decimal: the matched number carried a decimal point, used by the
      largest-number fallback
    """
    value: Decimal
    has_decimal: bool = False


def create_amount_candidate(
    value: Decimal,
    pattern_name: str,
    match_span: tuple[int, int],
    raw_text: str,
    priority: int,
    amount_str: str,
) -> AmountCandidate:
    """
    Create AmountCandidate with computed flags.

    Args:
        value: Parsed amount
        pattern_name: Name of pattern that matched
        match_span: Character span of match
        raw_text: Original matched text (keyword included)
        priority: Amount tier
        amount_str: The captured number token before parsing

    Returns:
        AmountCandidate
    """
    return AmountCandidate(
        value=value,
        pattern_name=pattern_name,
        match_span=match_span,
        priority=priority,
        raw_text=raw_text,
        has_decimal=has_decimal_point(amount_str),
    )
