from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from app.database.database import engine, Base

# Import routers
from app.modules.ledger.router import ledger_router
from app.modules.cash_tracker.router import cash_tracker_router
from app.modules.receivings.router import receivings_router
from app.modules.exchange.router import exchange_router
from app.modules.expenses.router import expenses_router
from app.modules.settings.router import settings_router

# Import models for table creation
import app.modules.cash_tracker.models
import app.modules.exchange.models
import app.modules.expenses.models
import app.modules.receivings.models
import app.modules.settings.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Money Exchange Ledger API",
    description="Daily NPR/INR ledger reconciliation, cash counts and staff settlement",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Add your frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(cash_tracker_router, prefix="/api/v1")
app.include_router(receivings_router, prefix="/api/v1")
app.include_router(exchange_router, prefix="/api/v1")
app.include_router(expenses_router, prefix="/api/v1")
app.include_router(settings_router, prefix="/api/v1")

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=engine)

@app.get("/")
async def read_root():
    return {
        "message": "Money Exchange Ledger API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}

@app.on_event("startup")
async def startup_event():
    logger.info("Money Exchange Ledger API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Business timezone: {settings.BUSINESS_TIMEZONE}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Money Exchange Ledger API shutting down...")
