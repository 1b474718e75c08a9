"""
Tabular statement parser for bank/card statement text.

Rows are expected as: date, description, category, amount, debit|credit.
A strict grammar is tried first; only when it recovers nothing does a
whitespace-split fallback run over the same lines.
"""

import re
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fintrack.services.parser import (
    ReceiptParser,
    ParserInputError,
    PatternSpec,
    normalize_text,
    DEFAULT_CATEGORY,
)
from fintrack.utils.money import parse_money, NUMBER_PATTERN

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ('debit', 'credit')

# Fewest tokens a fallback row can have: date, description, category, amount, type
MIN_FALLBACK_TOKENS = 5


@dataclass(frozen=True)
class StatementRow:
    """One transaction recovered from a statement line."""
    date: date
    description: str
    category: str
    amount: Decimal
    type: str  # "debit" or "credit"


class StatementParser:
    """Service for recovering transaction rows from statement text."""

    def __init__(self, receipt_parser: Optional[ReceiptParser] = None):
        self.receipt_parser = receipt_parser or ReceiptParser()
        self._init_patterns()

    def _init_patterns(self):
        """Initialize regex patterns for parsing."""

        self.row_pattern = PatternSpec(
            name='statement_row',
            pattern=(
                r'^(\d{4}-\d{2}-\d{2})\s+(.+?)\s+([A-Za-z]+)\s+'
                rf'([£€$]?(?:{NUMBER_PATTERN}))\s+(debit|credit)$'
            ),
            example='2023-05-01 Coffee Dining 4.50 debit',
        )

        # Lines that never carry a transaction
        self.header_patterns = [
            re.compile(r'^Table\s+\d+$', re.IGNORECASE),
            re.compile(r'^Date\s*Description\s*Category\s*Amount\s*Type$', re.IGNORECASE),
            re.compile(r'^\d+$'),
            re.compile(r'^page\s+\d+(?:\s+of\s+\d+)?$', re.IGNORECASE),
        ]

        # Only the ISO grammar is valid in the strict column
        self.row_date_spec = next(
            spec for spec in self.receipt_parser.date_patterns if spec.name == 'iso_date'
        )

    def split_lines(self, text: str) -> List[str]:
        """
        Normalized, non-empty lines with headers and footers removed.

        Raw text is split before normalizing so "\\r\\n" and trailing
        spaces never merge adjacent rows.
        """
        lines = []
        for line in text.splitlines():
            line = normalize_text(line)
            if not line:
                continue
            if any(pattern.match(line) for pattern in self.header_patterns):
                logger.debug("Skipping header/footer line: %r", line)
                continue
            lines.append(line)
        return lines

    def parse(self, text: str) -> List[StatementRow]:
        """
        Parse statement text into rows, preserving source line order.

        Malformed lines are logged and dropped; an empty list means nothing
        was recoverable.

        Raises:
            ParserInputError: text is not a string
        """
        if not isinstance(text, str):
            raise ParserInputError('Invalid text input for tabular statement parsing')

        lines = self.split_lines(text)
        rows = self._parse_strict(lines)

        if not rows:
            rows = self._parse_fallback(lines)

        if rows:
            logger.info("Extracted %d transactions", len(rows))
        else:
            logger.warning("No valid transactions extracted from statement")

        return rows

    def _parse_strict(self, lines: List[str]) -> List[StatementRow]:
        rows = []
        for line in lines:
            match = self.row_pattern.compiled.match(line)
            if not match:
                logger.debug("Line does not match table pattern: %r", line)
                continue

            row_date = self.receipt_parser.parse_date_string(match.group(1), self.row_date_spec)
            amount = parse_money(match.group(4))

            if row_date is None or amount is None:
                logger.warning("Invalid transaction in line: %r", line)
                continue

            rows.append(StatementRow(
                date=row_date,
                description=match.group(2).strip(),
                category=match.group(3).strip() or DEFAULT_CATEGORY,
                amount=amount,
                type=match.group(5).lower(),
            ))
        return rows

    def _parse_fallback(self, lines: List[str]) -> List[StatementRow]:
        rows = []
        for line in lines:
            parts = line.split()
            if len(parts) < MIN_FALLBACK_TOKENS:
                logger.debug("Too few columns for fallback row: %r", line)
                continue

            row_date = self.receipt_parser.extract_date(parts[0])
            amount = parse_money(parts[-2])
            row_type = parts[-1].lower()

            if row_date is None or amount is None or row_type not in TRANSACTION_TYPES:
                logger.debug("Fallback rejected line: %r", line)
                continue

            rows.append(StatementRow(
                date=row_date,
                description=' '.join(parts[1:-3]),
                category=parts[-3] or DEFAULT_CATEGORY,
                amount=amount,
                type=row_type,
            ))
        return rows


def parse_tabular_statement(raw_text: str) -> List[StatementRow]:
    """Parse a multi-line statement with default settings."""
    return StatementParser().parse(raw_text)
