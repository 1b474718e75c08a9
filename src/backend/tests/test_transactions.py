"""
Tests for TransactionStore mapping and inserts against a fake Supabase client.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from datetime import date
from decimal import Decimal
import pytest

from fintrack.services.parser import ParsedReceipt
from fintrack.services.statement import StatementRow
from fintrack.services.transactions import TransactionStore


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeTable:
    def __init__(self, client, name):
        self.client = client
        self.name = name
        self.payload = None

    def insert(self, payload):
        self.payload = payload
        return self

    def execute(self):
        if self.client.return_empty:
            return FakeResponse([])
        self.client.inserted.append((self.name, self.payload))
        return FakeResponse([{"id": "1", **self.payload}])


class FakeSupabase:
    def __init__(self, return_empty=False):
        self.inserted = []
        self.return_empty = return_empty

    def table(self, name):
        return FakeTable(self, name)


USER_ID = "user-1"


@pytest.fixture
def client():
    return FakeSupabase()


@pytest.fixture
def store(client):
    return TransactionStore(client=client)


class TestReceiptMapping:

    def test_receipt_becomes_expense(self, store, client):
        receipt = ParsedReceipt(
            amount=Decimal('48.60'),
            date=date(2016, 5, 27),
            category='Other',
            raw_text='STORE ABC',
        )

        stored = store.insert(store.from_receipt(USER_ID, receipt))

        assert stored["id"] == "1"
        table, payload = client.inserted[0]
        assert table == "transactions"
        assert payload == {
            "user_id": USER_ID,
            "type": "expense",
            "amount": "48.60",
            "category": "Other",
            "date": "2016-05-27",
            "description": "Extracted from receipt",
        }

    def test_empty_response_raises(self):
        store = TransactionStore(client=FakeSupabase(return_empty=True))
        receipt = ParsedReceipt(Decimal('5.00'), date(2023, 1, 1), 'Dining', 'cafe')

        with pytest.raises(RuntimeError):
            store.insert(store.from_receipt(USER_ID, receipt))


class TestStatementRowMapping:

    @pytest.mark.parametrize("row_type,expected", [
        ("debit", "expense"),
        ("credit", "income"),
    ])
    def test_type_mapping(self, store, row_type, expected):
        row = StatementRow(date(2023, 5, 1), "Coffee", "Dining", Decimal('4.50'), row_type)
        assert store.from_statement_row(USER_ID, row).type == expected

    def test_blank_fields_get_defaults(self, store):
        row = StatementRow(date(2023, 5, 1), "", "", Decimal('4.50'), "debit")
        transaction = store.from_statement_row(USER_ID, row)

        assert transaction.category == "Other"
        assert transaction.description == "Imported from PDF"

    def test_zero_amount_skipped(self, store):
        row = StatementRow(date(2023, 5, 1), "Refund", "Other", Decimal('0.00'), "credit")
        assert store.from_statement_row(USER_ID, row) is None
