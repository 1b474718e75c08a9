import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fintrack.config import settings
from fintrack.routers import receipts

__version__ = "0.1.0"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Receipt and statement extraction for personal finance tracking",
    version=__version__,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(receipts.router)


@app.get("/")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "date_order": settings.DATE_ORDER,
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


logger.info("%s API configured (date order %s)", settings.APP_NAME, settings.DATE_ORDER)
