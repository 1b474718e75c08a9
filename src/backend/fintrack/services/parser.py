"""
Receipt parser service for extracting structured data from OCR text.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Tuple
from datetime import date, datetime
from decimal import Decimal

from fintrack.config import settings
from fintrack.utils.money import parse_money, NUMBER_PATTERN
from fintrack.utils.candidates import (
    AmountCandidate,
    TIER_TOTAL,
    TIER_KEYWORD,
    TIER_STANDALONE,
    create_amount_candidate,
)
from fintrack.utils.scoring import select_best_amount

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = 'Other'

MONTHS = r'(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)'

# Optional currency symbol followed by a number
AMOUNT_TOKEN = rf'([£€$]?\s*(?:{NUMBER_PATTERN}))'


class ParserInputError(ValueError):
    """Raised when a parser entry point receives non-text or empty input."""


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    priority: Optional[int] = None
    flags: int = re.IGNORECASE
    formats: Tuple[str, ...] = ()  # strptime formats, date grammars only
    ambiguous: bool = False  # numeric day/month order not fixed by the grammar
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))


@dataclass(frozen=True)
class ParsedReceipt:
    """Structured result of parsing one receipt. Absent fields are None."""
    amount: Optional[Decimal]
    date: Optional[date]
    category: str
    raw_text: str

    def missing_fields(self) -> List[str]:
        missing = []
        if self.amount is None:
            missing.append('amount')
        if self.date is None:
            missing.append('date')
        return missing

    def is_acceptable(self, min_amount: Decimal = Decimal('1')) -> bool:
        """Both amount and date present, amount at least min_amount."""
        return not self.missing_fields() and self.amount >= min_amount


def normalize_text(text: str) -> str:
    """
    Collapse OCR whitespace noise while keeping row boundaries.

    Newline runs collapse first so single newlines survive, then any
    remaining run of 2+ whitespace characters becomes one space.
    """
    text = re.sub(r'\n+', '\n', text)
    text = re.sub(r'\s{2,}', ' ', text)
    return text.strip()


class ReceiptParser:
    """Service for parsing receipt text and extracting structured data."""

    # Ordered: first category with a keyword hit wins
    CATEGORY_KEYWORDS = [
        ('Groceries', ['grocery', 'groceries', 'supermarket', 'food', 'market']),
        ('Dining', ['restaurant', 'cafe', 'dining', 'swiggy', 'zomato']),
        ('Transport', ['fuel', 'gas', 'taxi', 'uber', 'train', 'bus']),
        ('Retail', ['shop', 'clothing', 'electronics', 'amazon']),
        ('Gift', ['gift']),
    ]

    def __init__(self, date_order: Optional[str] = None):
        """
        Initialize parser with regex patterns.

        Args:
            date_order: "DMY" or "MDY" preference for ambiguous numeric dates
                (defaults to settings.DATE_ORDER)
        """
        self.date_order = (date_order or settings.DATE_ORDER).upper()
        if self.date_order not in ('DMY', 'MDY'):
            raise ValueError(f"Unsupported date order: {self.date_order}")
        self._init_patterns()

    def _init_patterns(self):
        """Initialize regex patterns for parsing."""

        self.tax_pattern = PatternSpec(
            name='tax',
            pattern=rf'\btax\s*[:=~]?\s*{AMOUNT_TOKEN}',
            example='Tax: 3.60',
        )

        # Priority-based amount patterns (lower number = higher priority)
        self.amount_patterns = [
            PatternSpec(
                name='total',
                pattern=rf'\btotal\s*[:=~]?\s*{AMOUNT_TOKEN}\b',
                example='Total: $48.60',
                notes='"total" immediately followed by a number (subtotal excluded by \\b)',
                priority=TIER_TOTAL,
            ),
            PatternSpec(
                name='amount_sale_subtotal',
                pattern=rf'\b(?:amount|sale|subtotal)\s*[:=~]?\s*{AMOUNT_TOKEN}\b',
                example='Subtotal: 45.00',
                priority=TIER_KEYWORD,
            ),
            PatternSpec(
                name='standalone_number',
                pattern=rf'\b({NUMBER_PATTERN})\b',
                example='12.50',
                notes='Unlabeled figures (last resort)',
                priority=TIER_STANDALONE,
            ),
        ]

        numeric_formats = self._numeric_formats()

        # Date grammars in priority order, first calendar-valid match wins
        self.date_patterns = [
            PatternSpec(
                name='numeric_date',
                pattern=r'\b(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})\b',
                example='27/05/2016',
                notes='Day/month order follows date_order, opposite order only if invalid',
                formats=numeric_formats,
                ambiguous=True,
            ),
            PatternSpec(
                name='iso_date',
                pattern=r'\b(\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2})\b',
                example='2023-12-31',
                formats=('%Y/%m/%d',),
            ),
            PatternSpec(
                name='compact_date',
                pattern=r'\b(\d{8})\b',
                example='20231231',
                formats=('%Y%m%d',),
            ),
            PatternSpec(
                name='day_month_name',
                pattern=rf'\b(\d{{1,2}}(?:st|nd|rd|th)?\s+{MONTHS}[a-z]*\s+\d{{2,4}})\b',
                example='31 Dec 2023',
                formats=('%d %b %Y', '%d %b %y'),
            ),
            PatternSpec(
                name='month_name_day',
                pattern=rf'\b({MONTHS}[a-z]*\s+\d{{1,2}}(?:st|nd|rd|th)?[,\s]+\d{{2,4}})\b',
                example='Dec 31, 2023',
                formats=('%b %d %Y', '%b %d %y'),
            ),
            PatternSpec(
                name='day_slash_month_name',
                pattern=rf'\b(\d{{1,2}}[/\-.]{MONTHS}[a-z]*[/\-.]\d{{2,4}})\b',
                example='31/Dec/2023',
                formats=('%d/%b/%Y', '%d/%b/%y'),
            ),
            PatternSpec(
                name='day_month_abbrev_short_year',
                pattern=r'\b(\d{1,2}-[A-Za-z]{3}-\d{2,4})\b',
                example='31-Dec-23',
                formats=('%d/%b/%y', '%d/%b/%Y'),
                flags=0,
            ),
            PatternSpec(
                name='labeled_date',
                pattern=r'Date\s*:?\s*(\d{1,2}/\d{1,2}/\d{2,4})(?:\s+\d{1,2}:\d{2}:\d{2})?',
                example='Date:27/05/2016 10:42:01',
                formats=numeric_formats,
                ambiguous=True,
                flags=0,
            ),
        ]

    def _numeric_formats(self) -> Tuple[str, ...]:
        """Preferred day/month order first, then the opposite order."""
        dmy = ('%d/%m/%Y', '%d/%m/%y')
        mdy = ('%m/%d/%Y', '%m/%d/%y')
        return dmy + mdy if self.date_order == 'DMY' else mdy + dmy

    def parse(self, text: str) -> ParsedReceipt:
        """
        Parse receipt text and extract all available fields.

        Extractors run independently on the same normalized text, so a
        missing date never blocks the amount and vice versa.

        Args:
            text: OCR-extracted text from receipt

        Returns:
            ParsedReceipt with absent fields set to None

        Raises:
            ParserInputError: text is not a string or is blank
        """
        if not isinstance(text, str) or not text.strip():
            raise ParserInputError('Invalid text input for receipt parsing')

        normalized = normalize_text(text)
        logger.debug("Normalized text for parsing: %r", normalized)

        amount = self.extract_amount(normalized)
        receipt_date = self.extract_date(normalized)
        category = self.infer_category(normalized)

        if amount is None:
            logger.warning("Could not extract amount from receipt text")
        if receipt_date is None:
            logger.warning("Could not extract date from receipt text")

        return ParsedReceipt(
            amount=amount,
            date=receipt_date,
            category=category,
            raw_text=normalized,
        )

    def extract_tax(self, text: str) -> Optional[Decimal]:
        """
        Sum every "tax <number>" occurrence.

        Returns:
            Total tax as Decimal, or None when no tax line is present
        """
        taxes = []
        for match in self.tax_pattern.compiled.finditer(text):
            tax = parse_money(match.group(1))
            if tax is not None:
                taxes.append(tax)

        if not taxes:
            return None

        total_tax = sum(taxes, Decimal('0.00'))
        logger.debug("Found %d tax line(s), total: %s", len(taxes), total_tax)
        return total_tax

    def collect_amount_candidates(self, text: str) -> List[AmountCandidate]:
        """All amount candidates from every tier, in pattern then text order."""
        candidates: List[AmountCandidate] = []

        for spec in self.amount_patterns:
            for match in spec.compiled.finditer(text):
                amount_str = match.group(1)
                amount = parse_money(amount_str)
                if amount is None:
                    continue

                candidates.append(create_amount_candidate(
                    value=amount,
                    pattern_name=spec.name,
                    match_span=(match.start(), match.end()),
                    raw_text=match.group(0),
                    priority=spec.priority,
                    amount_str=amount_str,
                ))

        return candidates

    def extract_amount(self, text: str) -> Optional[Decimal]:
        """
        Extract total amount from receipt using tiered candidates.

        Args:
            text: Normalized receipt text

        Returns:
            Amount as Decimal or None
        """
        tax_total = self.extract_tax(text)
        candidates = self.collect_amount_candidates(text)

        best = select_best_amount(candidates, tax_total)
        if best is None:
            return None

        logger.debug(
            "Extracted amount %s from %r (pattern %s)",
            best.value, best.raw_text, best.pattern_name
        )
        return best.value

    def _normalize_date_string(self, date_str: str) -> str:
        """Canonical separators, no ordinals, three-letter month names."""
        date_str = date_str.replace('-', '/').replace('.', '/')
        date_str = re.sub(r'(\d{1,2})(?:st|nd|rd|th)\b', r'\1', date_str, flags=re.IGNORECASE)
        date_str = re.sub(
            rf'\b({MONTHS})[a-z]*\b',
            lambda m: m.group(1),
            date_str,
            flags=re.IGNORECASE,
        )
        date_str = date_str.replace(',', ' ')
        return ' '.join(date_str.split())

    def parse_date_string(self, date_str: str, spec: PatternSpec) -> Optional[date]:
        """
        Parse a matched date string with the grammar's formats.

        Returns None when no format yields a real calendar date.
        """
        normalized = self._normalize_date_string(date_str)
        for fmt in spec.formats:
            try:
                parsed = datetime.strptime(normalized, fmt).date()
            except ValueError:
                continue

            if spec.ambiguous and fmt not in spec.formats[:2]:
                logger.debug(
                    "Date %r invalid as %s, read with opposite day/month order",
                    date_str, self.date_order
                )
            return parsed

        return None

    def extract_date(self, text: str) -> Optional[date]:
        """
        Extract receipt date by trying each grammar in priority order.

        A match that is not a valid calendar date is discarded and the
        search continues with later matches and grammars.

        Args:
            text: Receipt text

        Returns:
            date or None
        """
        if not isinstance(text, str):
            raise ParserInputError('Invalid text input for date extraction')

        for spec in self.date_patterns:
            for match in spec.compiled.finditer(text):
                date_str = match.group(1)
                parsed = self.parse_date_string(date_str, spec)
                if parsed is not None:
                    logger.debug("Parsed date %s from %r (pattern %s)", parsed, date_str, spec.name)
                    return parsed
                logger.debug("Discarding invalid date %r (pattern %s)", date_str, spec.name)

        return None

    def infer_category(self, text: str) -> str:
        """Map text to a coarse spending category, defaulting to Other."""
        lowered = text.lower()
        for category, keywords in self.CATEGORY_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return category
        return DEFAULT_CATEGORY


def parse_receipt_text(raw_text: str) -> ParsedReceipt:
    """Parse a single receipt with default settings."""
    return ReceiptParser().parse(raw_text)
