"""
Main entry point for the StockNote trading journal API
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import EntryValidationError, StockNoteError
from app.api.routes import api_router, set_services
from app.services.market_data_service import MarketDataService

# Configure logging
Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting StockNote API...")

    init_db()

    market_data_service = MarketDataService()
    set_services(market_data_service)

    logger.info("StockNote API started successfully!")

    yield

    logger.info("Shutting down StockNote API...")
    await market_data_service.close()
    logger.info("StockNote API stopped.")

# Create FastAPI app
app = FastAPI(
    title="StockNote Trading Journal API",
    description="Trade journal, focus stock watchlist and P&L statistics",
    version="2.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error envelopes
@app.exception_handler(EntryValidationError)
async def validation_error_handler(request: Request, exc: EntryValidationError):
    logger.info(f"Validation failed on {request.method} {request.url.path}: {exc.fields}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "errors": [error.to_dict() for error in exc.errors],
        },
    )

@app.exception_handler(StockNoteError)
async def stocknote_error_handler(request: Request, exc: StockNoteError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
            "message": error.get("msg", "Invalid value"),
            "value": None,
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"success": False, "message": "Invalid request", "errors": errors})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})

# Include API routes
app.include_router(api_router, prefix="/api")

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "StockNote Trading Journal API",
        "version": "2.0.0",
        "status": "running"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "auth_enabled": settings.API_AUTH_ENABLED,
    }

def main():
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level=settings.LOG_LEVEL.lower()
    )

if __name__ == "__main__":
    main()
