"""
Selection rules for extraction candidates.

Amount selection is tier-based rather than score-based:
    1. first TIER_TOTAL candidate, else first TIER_KEYWORD candidate
    2. if none is keyword-anchored: largest decimal number >= 1
    3. otherwise the first TIER_STANDALONE candidate
Whatever is picked by (1) or (3) is then reconciled against the detected
tax total: a candidate equal to selected + tax replaces the selection.
"""

from typing import List, Optional
from decimal import Decimal
import logging

from .candidates import (
    AmountCandidate,
    TIER_TOTAL,
    TIER_KEYWORD,
    TIER_STANDALONE,
)

__all__ = [
    'TAX_TOLERANCE', 'MIN_FALLBACK_AMOUNT',
    'select_best_amount', 'reconcile_with_tax', 'select_largest_decimal',
]

logger = logging.getLogger(__name__)

TAX_TOLERANCE = Decimal('0.01')
MIN_FALLBACK_AMOUNT = Decimal('1')


def _first_in_tier(candidates: List[AmountCandidate], tier: int) -> Optional[AmountCandidate]:
    return next((c for c in candidates if c.priority == tier), None)


def reconcile_with_tax(
    selected: AmountCandidate,
    candidates: List[AmountCandidate],
    tax_total: Optional[Decimal]
) -> AmountCandidate:
    """
    Prefer a tax-inclusive total over a pre-tax figure.

    If any candidate equals selected + tax_total (within TAX_TOLERANCE),
    the first such candidate wins. Without a tax total the selection is
    returned unchanged.
    """
    if not tax_total:
        return selected

    target = selected.value + tax_total
    for candidate in candidates:
        if abs(candidate.value - target) <= TAX_TOLERANCE:
            if candidate.value != selected.value:
                logger.debug(
                    "Tax reconciliation override: %s + tax %s -> %s",
                    selected.value, tax_total, candidate.value
                )
            return candidate

    return selected


def select_largest_decimal(candidates: List[AmountCandidate]) -> Optional[AmountCandidate]:
    """Largest candidate written with a decimal point and worth at least 1."""
    eligible = [
        c for c in candidates
        if c.has_decimal and c.value >= MIN_FALLBACK_AMOUNT
    ]
    if not eligible:
        return None
    # max() keeps the first of equal values, preserving text order
    return max(eligible, key=lambda c: c.value)


def select_best_amount(
    candidates: List[AmountCandidate],
    tax_total: Optional[Decimal] = None
) -> Optional[AmountCandidate]:
    """
    Select best amount candidate.

    Args:
        candidates: AmountCandidate objects in text order, all tiers mixed
        tax_total: Sum of all detected tax lines, if any

    Returns:
        Best candidate or None
    """
    if not candidates:
        return None

    keyword_pick = _first_in_tier(candidates, TIER_TOTAL) or _first_in_tier(candidates, TIER_KEYWORD)
    if keyword_pick is not None:
        return reconcile_with_tax(keyword_pick, candidates, tax_total)

    largest = select_largest_decimal(candidates)
    if largest is not None:
        return largest

    standalone = _first_in_tier(candidates, TIER_STANDALONE)
    if standalone is not None:
        return reconcile_with_tax(standalone, candidates, tax_total)

    return None
