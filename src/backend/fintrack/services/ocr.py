"""
OCR service for extracting text from receipt images and statement PDFs.
"""

import io
import logging
from pathlib import Path

import pytesseract
from PIL import Image, ImageEnhance
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
import PyPDF2

from fintrack.config import settings

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp')

# Restrict recognition to characters that appear on receipts and statements
TESSERACT_CONFIG = (
    r'--oem 3 --psm 6 -c tessedit_char_whitelist='
    r'0123456789./-:,$ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz'
)


class TextExtractionError(Exception):
    """Raised when a file yields no usable text."""


class OCRService:
    """Service for extracting text from receipt files."""

    def __init__(self):
        """Initialize OCR service with Tesseract configuration."""
        pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD
        self.min_text_length = settings.MIN_EXTRACTED_TEXT_LENGTH

    def extract_text_from_image(self, image_data: bytes) -> str:
        """
        Extract text from an image using Tesseract OCR.

        Args:
            image_data: Raw image bytes (JPEG, PNG, BMP)

        Returns:
            Extracted text

        Raises:
            TextExtractionError: image unreadable or no text recognized
        """
        try:
            image = Image.open(io.BytesIO(image_data))
            text = self._ocr_image(image)
        except (OSError, pytesseract.TesseractError) as e:
            raise TextExtractionError(f"Failed to extract text from image: {e}") from e

        if not text.strip():
            raise TextExtractionError("No text extracted from image")

        return text

    def extract_text_from_pdf(self, pdf_data: bytes) -> str:
        """
        Extract text from a PDF file.
        First tries the text layer, then falls back to OCR of the first page.

        Args:
            pdf_data: Raw PDF bytes

        Returns:
            Extracted text

        Raises:
            TextExtractionError: neither the text layer nor OCR produced
                at least min_text_length characters
        """
        text = self._extract_pdf_text_direct(pdf_data)

        if len(text.strip()) < self.min_text_length:
            logger.info("Insufficient PDF text layer, treating as scanned PDF")
            text = self._extract_pdf_text_ocr(pdf_data)

        if len(text.strip()) < self.min_text_length:
            raise TextExtractionError("OCR failed to extract meaningful text")

        return text

    def _extract_pdf_text_direct(self, pdf_data: bytes) -> str:
        """
        Extract text directly from PDF (for text-based PDFs).

        Returns an empty string when the PDF cannot be read.
        """
        try:
            pdf_reader = PyPDF2.PdfReader(io.BytesIO(pdf_data))
            pages = [page.extract_text() or "" for page in pdf_reader.pages]
        except PyPDF2.errors.PdfReadError:
            logger.warning("Error in direct PDF text extraction", exc_info=True)
            return ""

        return "\n".join(pages)

    def _extract_pdf_text_ocr(self, pdf_data: bytes) -> str:
        """OCR the first page of an image-based PDF."""
        try:
            images = convert_from_bytes(pdf_data, dpi=300, first_page=1, last_page=1)
            if not images:
                raise TextExtractionError("Failed to convert PDF to image")
            return self._ocr_image(images[0])
        except (OSError, pytesseract.TesseractError, PDFInfoNotInstalledError,
                PDFPageCountError, PDFSyntaxError) as e:
            raise TextExtractionError(f"Failed to OCR scanned PDF: {e}") from e

    def _ocr_image(self, image: Image.Image) -> str:
        image = self._preprocess_image(image)
        return pytesseract.image_to_string(image, config=TESSERACT_CONFIG)

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """
        Preprocess image to improve OCR accuracy.

        Args:
            image: PIL Image object

        Returns:
            Grayscale, contrast-enhanced image
        """
        if image.mode != 'RGB':
            image = image.convert('RGB')

        image = image.convert('L')

        # Helps with faded thermal receipts
        enhancer = ImageEnhance.Contrast(image)
        return enhancer.enhance(2.0)

    def extract_text(self, file_data: bytes, mime_type: str, filename: str = "") -> str:
        """
        Extract text from a file (auto-detects format).

        Args:
            file_data: Raw file bytes
            mime_type: MIME type of the file
            filename: Optional filename for extension detection

        Returns:
            Raw extracted text

        Raises:
            TextExtractionError: unsupported type or no usable text
        """
        suffix = Path(filename).suffix.lower()
        is_pdf = mime_type == 'application/pdf' or suffix == '.pdf'
        is_image = mime_type.startswith('image/') or suffix in IMAGE_EXTENSIONS

        if is_pdf:
            return self.extract_text_from_pdf(file_data)
        if is_image:
            return self.extract_text_from_image(file_data)

        raise TextExtractionError(f"Unsupported file type: {mime_type}")
