"""
Tests for tabular statement parsing (strict row grammar + whitespace fallback).
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from datetime import date
from decimal import Decimal
import pytest

from fintrack.services.parser import ReceiptParser, ParserInputError
from fintrack.services.statement import (
    StatementParser,
    StatementRow,
    parse_tabular_statement,
)


STATEMENT_WITH_HEADERS = """\
Table 1
Date Description Category Amount Type
2023-05-01 Coffee Dining 4.50 debit
2023-05-02   Train ticket   Transport   12.00   DEBIT

2023-05-03 Salary Income 1,500.00 credit
2023-05-04 Broken row
1
"""


@pytest.fixture
def parser():
    return StatementParser(ReceiptParser(date_order='DMY'))


class TestStrictGrammar:

    def test_single_row(self, parser):
        rows = parser.parse("2023-05-01 Coffee Dining 4.50 debit")

        assert rows == [StatementRow(
            date=date(2023, 5, 1),
            description="Coffee",
            category="Dining",
            amount=Decimal('4.50'),
            type="debit",
        )]

    def test_malformed_row_dropped_and_order_kept(self, parser):
        rows = parser.parse(STATEMENT_WITH_HEADERS)

        assert len(rows) == 3
        assert [r.date for r in rows] == [date(2023, 5, 1), date(2023, 5, 2), date(2023, 5, 3)]
        assert rows[1].description == "Train ticket"
        assert rows[1].category == "Transport"
        assert rows[1].type == "debit"
        assert rows[2].amount == Decimal('1500.00')
        assert rows[2].type == "credit"

    def test_currency_symbol_in_amount(self, parser):
        rows = parser.parse("2023-05-01 Lunch Dining $12.30 debit")
        assert rows[0].amount == Decimal('12.30')

    def test_calendar_invalid_row_dropped(self, parser):
        assert parser.parse("2023-02-30 Coffee Dining 4.50 debit") == []


class TestFallback:

    def test_recovers_rows_strict_grammar_rejects(self, parser):
        text = (
            "05/01/2023 Corner Shop Groceries 12.00 Debit\n"
            "06/01/2023 Salary ACME Income 1,500.00 credit\n"
        )
        rows = parser.parse(text)

        assert len(rows) == 2
        assert rows[0] == StatementRow(
            date=date(2023, 1, 5),
            description="Corner Shop",
            category="Groceries",
            amount=Decimal('12.00'),
            type="debit",
        )
        assert rows[1].description == "Salary ACME"
        assert rows[1].amount == Decimal('1500.00')
        assert rows[1].type == "credit"

    @pytest.mark.parametrize("line", [
        "05/01/2023 too few",
        "notadate Corner Shop Groceries 12.00 debit",
        "05/01/2023 Corner Shop Groceries twelve debit",
        "05/01/2023 Corner Shop Groceries 12.00 transfer",
        "05/01/2023 Corner Shop Groceries 1e5 debit",
    ])
    def test_rejects_unusable_lines(self, parser, line):
        assert parser.parse(line) == []

    def test_fallback_skipped_when_strict_succeeds(self, parser):
        text = (
            "2023-05-01 Coffee Dining 4.50 debit\n"
            "05/01/2023 Corner Shop Groceries 12.00 debit\n"
        )
        rows = parser.parse(text)
        assert len(rows) == 1
        assert rows[0].description == "Coffee"


class TestInputHandling:

    @pytest.mark.parametrize("text", ["", "   ", "\n\n  \n"])
    def test_empty_input_yields_no_rows(self, parser, text):
        assert parser.parse(text) == []

    def test_headers_only(self, parser):
        assert parser.parse("Table 2\nPage 1 of 3\n7") == []

    def test_non_string_raises(self, parser):
        with pytest.raises(ParserInputError):
            parser.parse(None)

    def test_module_level_helper(self):
        assert len(parse_tabular_statement(STATEMENT_WITH_HEADERS)) == 3


class TestLineEndings:

    ROWS = [
        "2023-05-01 Coffee Dining 4.50 debit",
        "2023-05-02 Train Transport 12.00 debit",
        "2023-05-03 Salary Income 1500.00 credit",
    ]

    @pytest.mark.parametrize("separator", ["\r\n", " \n", "\t\n", "\n\n"])
    def test_rows_stay_separate(self, parser, separator):
        rows = parser.parse(separator.join(self.ROWS) + separator)

        assert len(rows) == 3
        assert [r.description for r in rows] == ["Coffee", "Train", "Salary"]
        assert [r.type for r in rows] == ["debit", "debit", "credit"]

    def test_fallback_rows_with_crlf(self, parser):
        text = (
            "05/01/2023 Corner Shop Groceries 12.00 debit \r\n"
            "06/01/2023 Salary ACME Income 1,500.00 credit\r\n"
        )
        rows = parser.parse(text)

        assert len(rows) == 2
        assert rows[0].description == "Corner Shop"
        assert rows[1].amount == Decimal('1500.00')
