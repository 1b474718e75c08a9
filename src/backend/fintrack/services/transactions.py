"""
Transaction store for persisting parsed receipts and statement rows.
"""

import logging
from typing import Any, Dict, Optional

from supabase import create_client

from fintrack.config import settings
from fintrack.models.receipt import TransactionCreate
from fintrack.services.parser import ParsedReceipt
from fintrack.services.statement import StatementRow

logger = logging.getLogger(__name__)

# Statement row type -> stored transaction type
TYPE_MAP = {
    'debit': 'expense',
    'credit': 'income',
}


class TransactionStore:
    """Service for writing transactions to the Supabase transactions table."""

    def __init__(self, client=None):
        """Initialize store; a client can be injected for tests."""
        # Service key so inserts can set user_id on behalf of the caller
        self.supabase = client or create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
        self.table_name = settings.TRANSACTIONS_TABLE

    def insert(self, transaction: TransactionCreate) -> Dict[str, Any]:
        """
        Insert one transaction.

        Returns:
            The stored row as returned by Supabase

        Raises:
            RuntimeError: Supabase returned no row
        """
        payload = transaction.model_dump(mode='json')
        response = self.supabase.table(self.table_name).insert(payload).execute()

        if not response.data:
            raise RuntimeError("Transaction insert returned no data")

        logger.debug("Stored transaction", extra={
            "user_id": transaction.user_id,
            "type": transaction.type,
            "amount": str(transaction.amount),
        })
        return response.data[0]

    def from_receipt(self, user_id: str, receipt: ParsedReceipt) -> TransactionCreate:
        return TransactionCreate(
            user_id=user_id,
            type='expense',
            amount=receipt.amount,
            category=receipt.category,
            date=receipt.date,
            description='Extracted from receipt',
        )

    def from_statement_row(self, user_id: str, row: StatementRow) -> Optional[TransactionCreate]:
        """Map a statement row; rows without a usable amount are skipped."""
        if not row.amount:
            logger.warning("Skipping invalid transaction: %r", row)
            return None

        return TransactionCreate(
            user_id=user_id,
            type=TYPE_MAP.get(row.type, 'expense'),
            amount=row.amount,
            category=row.category or 'Other',
            date=row.date,
            description=row.description or 'Imported from PDF',
        )
