"""
Receipts API router: receipt uploads, statement (history) uploads, and
text-only parsing.
"""

from fastapi import APIRouter, HTTPException, UploadFile, File, Form
from pathlib import Path
from datetime import date
from typing import Optional
from decimal import Decimal
import logging

from fintrack.config import settings
from fintrack.models.receipt import (
    ParseTextRequest,
    ParsedReceiptResponse,
    StatementResponse,
    StatementRowResponse,
)
from fintrack.services.ocr import OCRService, TextExtractionError, IMAGE_EXTENSIONS
from fintrack.services.parser import ReceiptParser, ParserInputError
from fintrack.services.statement import StatementParser
from fintrack.services.transactions import TransactionStore

router = APIRouter(prefix="/receipts", tags=["receipts"])
logger = logging.getLogger(__name__)


def _decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Convert Decimal to string for JSON diagnostics."""
    return str(value) if value is not None else None


async def _read_upload(file: UploadFile, allowed_extensions: tuple) -> bytes:
    """Validate extension and size, return file bytes."""
    suffix = Path(file.filename or "").suffix.lower()
    if suffix not in allowed_extensions:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {suffix or 'unknown'}. Allowed: {', '.join(allowed_extensions)}"
        )

    file_data = await file.read()
    file_size_mb = len(file_data) / (1024 * 1024)
    if file_size_mb > settings.MAX_UPLOAD_MB:
        raise HTTPException(
            status_code=413,
            detail=f"File too large: {file_size_mb:.2f}MB. Maximum: {settings.MAX_UPLOAD_MB}MB"
        )
    if not file_data:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    return file_data


def _extract_text(file: UploadFile, file_data: bytes) -> str:
    """Run OCR/PDF extraction, mapping failures to a 422 diagnostic."""
    ocr = OCRService()
    try:
        return ocr.extract_text(
            file_data=file_data,
            mime_type=file.content_type or "application/octet-stream",
            filename=file.filename or ""
        )
    except TextExtractionError as e:
        logger.warning("Text extraction failed", extra={"upload_name": file.filename, "error": str(e)})
        raise HTTPException(
            status_code=422,
            detail={
                "error": "OCR failed to extract meaningful text",
                "extracted_text": "No text extracted",
                "details": {"amount_extracted": False, "date_extracted": False},
            }
        )


@router.post("/parse", response_model=ParsedReceiptResponse)
async def parse_receipt(request: ParseTextRequest):
    """Parse already-extracted receipt text without storing anything."""
    try:
        parsed = ReceiptParser().parse(request.text)
    except ParserInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ParsedReceiptResponse.from_parsed(parsed)


@router.post("/parse-statement", response_model=StatementResponse)
async def parse_statement(request: ParseTextRequest):
    """Parse already-extracted statement text without storing anything."""
    rows = StatementParser().parse(request.text)
    return StatementResponse(
        count=len(rows),
        rows=[StatementRowResponse.model_validate(row) for row in rows],
    )


@router.post("/upload")
async def upload_receipt(
    file: UploadFile = File(...),
    user_id: str = Form(...)
):
    """
    Upload a receipt image or PDF and record it as an expense.

    This endpoint:
    1. Accepts file upload (JPG, PNG, BMP, PDF)
    2. Extracts text (OCR, or PDF text layer with OCR fallback)
    3. Parses amount, date and category
    4. Rejects with 422 when amount/date are missing or amount is too low
    5. Creates the transaction

    Args:
        file: Uploaded file
        user_id: User ID

    Returns:
        Parsed data and the stored transaction
    """
    try:
        file_data = await _read_upload(file, IMAGE_EXTENSIONS + ('.pdf',))
        text = _extract_text(file, file_data)

        try:
            parsed = ReceiptParser().parse(text)
        except ParserInputError:
            raise HTTPException(
                status_code=422,
                detail={
                    "error": "OCR failed to extract meaningful text",
                    "extracted_text": text,
                    "details": {"amount_extracted": False, "date_extracted": False},
                }
            )

        if parsed.missing_fields():
            raise HTTPException(
                status_code=422,
                detail={
                    "error": "Could not extract amount or date from receipt.",
                    "extracted_text": parsed.raw_text,
                    "details": {
                        "amount_extracted": parsed.amount is not None,
                        "date_extracted": parsed.date is not None,
                        "extracted_amount": _decimal_to_str(parsed.amount),
                        "fallback_date": date.today().isoformat() if parsed.date is None else None,
                    },
                }
            )

        min_amount = Decimal(str(settings.MIN_RECEIPT_AMOUNT))
        if not parsed.is_acceptable(min_amount):
            raise HTTPException(
                status_code=422,
                detail={
                    "error": "Extracted amount is too low or invalid.",
                    "extracted_text": parsed.raw_text,
                    "details": {
                        "amount_extracted": True,
                        "date_extracted": True,
                        "extracted_amount": _decimal_to_str(parsed.amount),
                    },
                }
            )

        store = TransactionStore()
        transaction = store.insert(store.from_receipt(user_id, parsed))

        logger.info("Receipt stored as transaction", extra={
            "user_id": user_id,
            "upload_name": file.filename,
            "amount": str(parsed.amount),
        })

        return {
            "extracted": ParsedReceiptResponse.from_parsed(parsed).model_dump(mode="json"),
            "transaction": transaction,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to process receipt", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process receipt: {str(e)}"
        )


@router.post("/history")
async def upload_history(
    file: UploadFile = File(...),
    user_id: str = Form(...)
):
    """
    Upload a statement PDF and record every recoverable row.

    Debit rows become expenses, credit rows become income. Rows that fail
    to insert are logged and skipped.

    Args:
        file: Uploaded PDF statement
        user_id: User ID

    Returns:
        Count and list of stored transactions
    """
    try:
        file_data = await _read_upload(file, ('.pdf',))
        text = _extract_text(file, file_data)

        rows = StatementParser().parse(text)
        if not rows:
            raise HTTPException(status_code=422, detail="No valid transactions found in PDF.")

        store = TransactionStore()
        created = []
        for row in rows:
            transaction = store.from_statement_row(user_id, row)
            if transaction is None:
                continue
            try:
                created.append(store.insert(transaction))
            except Exception:
                logger.error("Failed to insert transaction", exc_info=True, extra={"row": repr(row)})

        if not created:
            raise HTTPException(status_code=422, detail="No valid transactions could be saved.")

        logger.info("Statement imported", extra={"user_id": user_id, "count": len(created)})
        return {"count": len(created), "transactions": created}

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to process PDF history", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process PDF history: {str(e)}"
        )
