from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "FinTrack"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173"]

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    TRANSACTIONS_TABLE: str = "transactions"

    # OCR
    TESSERACT_CMD: str = "/usr/bin/tesseract"
    MIN_EXTRACTED_TEXT_LENGTH: int = 10  # Below this the PDF text layer is treated as scanned

    # Uploads
    MAX_UPLOAD_MB: int = 10

    # Parsing
    MIN_RECEIPT_AMOUNT: float = 1.0
    DATE_ORDER: str = "DMY"  # "DMY" or "MDY" for ambiguous numeric dates

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
