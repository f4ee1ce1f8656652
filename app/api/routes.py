"""
API routes for the trading journal
"""
from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

from app.api.schemas import (
    ApiResponse,
    EntryListQuery,
    FocusStatsOut,
    FocusStockListQuery,
    MonthlyPerformanceOut,
    QuoteOut,
    QuotesRequest,
    SymbolMatchOut,
    TradeStatsOut,
)
from app.api.security import require_owner
from app.core.database import get_db
from app.core.exceptions import EntryValidationError, field_errors_from
from app.services.focus_stock_service import FocusStockService
from app.services.journal_service import JournalService
from app.services.market_data_service import MarketDataService
from app.services.statistics_service import StatisticsService

logger = logging.getLogger(__name__)

# Create routers
api_router = APIRouter()
journal_router = APIRouter(prefix="/journal-entries", tags=["journal"])
focus_router = APIRouter(prefix="/focus-stocks", tags=["focus-stocks"])
market_router = APIRouter(prefix="/market", tags=["market"])

# Global services (will be injected)
market_data_service: Optional[MarketDataService] = None

def set_services(mds: MarketDataService):
    """Set global services"""
    global market_data_service
    market_data_service = mds

def respond(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success envelope; absent data/message keys are omitted, nested None values are kept"""
    fields = {key: value for key, value in (("data", data), ("message", message)) if value is not None}
    return ApiResponse(success=True, **fields).model_dump(exclude_unset=True)

def _parse_query(model, **params):
    try:
        return model(**{key: value for key, value in params.items() if value is not None})
    except ValidationError as e:
        raise EntryValidationError(field_errors_from(e))

# Journal Entry Routes
@journal_router.get("")
def list_journal_entries(
    status: Optional[str] = None,
    symbol: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    """List the owner's journal entries"""
    query = _parse_query(
        EntryListQuery, status=status, symbol=symbol, month=month, year=year,
        sort_by=sort_by, sort_order=sort_order, page=page, limit=limit,
    )
    result = JournalService(db, owner_id).list_entries(**query.model_dump())
    return respond({
        "entries": [entry.to_dict() for entry in result.items],
        "pagination": result.pagination(),
    })

@journal_router.get("/stats")
def get_journal_stats(db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    """Summary statistics over all of the owner's entries"""
    stats = StatisticsService(db, owner_id).get_trade_stats()
    return respond(TradeStatsOut(**stats).model_dump())

@journal_router.get("/monthly")
@journal_router.get("/monthly/{year}")
def get_monthly_performance(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    """Per-month performance for a year (current year by default)"""
    if year is not None and not 1900 <= year <= 2100:
        raise HTTPException(status_code=400, detail="Year must be a valid year")
    months = StatisticsService(db, owner_id).get_monthly_performance(year)
    return respond([MonthlyPerformanceOut(**month).model_dump() for month in months])

@journal_router.get("/{entry_id}")
def get_journal_entry(entry_id: int, db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    entry = JournalService(db, owner_id).get_entry(entry_id)
    return respond({"entry": entry.to_dict()})

@journal_router.post("", status_code=201)
def create_journal_entry(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    entry = JournalService(db, owner_id).create_entry(payload)
    return respond({"entry": entry.to_dict()}, "Journal entry created successfully")

@journal_router.put("/{entry_id}")
def update_journal_entry(
    entry_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    entry = JournalService(db, owner_id).update_entry(entry_id, payload)
    return respond({"entry": entry.to_dict()}, "Journal entry updated successfully")

@journal_router.patch("/{entry_id}/close")
def close_journal_entry(
    entry_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    """Close an open trade with its exit price and date"""
    entry = JournalService(db, owner_id).close_entry(entry_id, payload)
    return respond({"entry": entry.to_dict()}, "Journal entry closed successfully")

@journal_router.delete("/{entry_id}")
def delete_journal_entry(entry_id: int, db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    JournalService(db, owner_id).delete_entry(entry_id)
    return respond(message="Journal entry deleted successfully")

# Focus Stock Routes
@focus_router.get("")
def list_focus_stocks(
    trade_taken: Optional[str] = None,
    symbol: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    """List the owner's focus stocks"""
    query = _parse_query(
        FocusStockListQuery, trade_taken=trade_taken, symbol=symbol,
        sort_by=sort_by, sort_order=sort_order, page=page, limit=limit,
    )
    result = FocusStockService(db, owner_id).list_focus_stocks(**query.model_dump())
    return respond({
        "focus_stocks": [item.to_dict() for item in result.items],
        "pagination": result.pagination(),
    })

@focus_router.get("/stats")
def get_focus_stats(db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    stats = StatisticsService(db, owner_id).get_focus_stats()
    return respond(FocusStatsOut(**stats).model_dump())

@focus_router.get("/pending")
def get_pending_focus_stocks(db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    items = FocusStockService(db, owner_id).pending()
    return respond({"focus_stocks": [item.to_dict() for item in items]})

@focus_router.get("/taken")
def get_taken_focus_stocks(db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    items = FocusStockService(db, owner_id).taken()
    return respond({"focus_stocks": [item.to_dict() for item in items]})

@focus_router.get("/{focus_id}")
def get_focus_stock(focus_id: int, db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    item = FocusStockService(db, owner_id).get_focus_stock(focus_id)
    return respond({"focus_stock": item.to_dict()})

@focus_router.post("", status_code=201)
def create_focus_stock(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    item = FocusStockService(db, owner_id).create_focus_stock(payload)
    return respond({"focus_stock": item.to_dict()}, "Focus stock created successfully")

@focus_router.put("/{focus_id}")
def update_focus_stock(
    focus_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    item = FocusStockService(db, owner_id).update_focus_stock(focus_id, payload)
    return respond({"focus_stock": item.to_dict()}, "Focus stock updated successfully")

@focus_router.patch("/{focus_id}/mark-taken")
def mark_focus_stock_taken(
    focus_id: int,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    owner_id: str = Depends(require_owner),
):
    item = FocusStockService(db, owner_id).mark_taken(focus_id, payload)
    state = "taken" if item.trade_taken else "pending"
    return respond({"focus_stock": item.to_dict()}, f"Focus stock marked as {state}")

@focus_router.delete("/{focus_id}")
def delete_focus_stock(focus_id: int, db: Session = Depends(get_db), owner_id: str = Depends(require_owner)):
    FocusStockService(db, owner_id).delete_focus_stock(focus_id)
    return respond(message="Focus stock deleted successfully")

# Market Data Routes
def _require_market_service() -> MarketDataService:
    if not market_data_service:
        raise HTTPException(status_code=503, detail="Market data service not available")
    return market_data_service

@market_router.get("/quote/{symbol}")
async def get_quote(symbol: str, owner_id: str = Depends(require_owner)):
    """Current quote for one symbol"""
    service = _require_market_service()
    if not symbol or not symbol.strip():
        raise HTTPException(status_code=400, detail="Symbol is required")
    quote = await service.get_quote(symbol)
    return respond(QuoteOut(**quote).model_dump())

@market_router.post("/quotes")
async def get_quotes(payload: Dict[str, Any] = Body(...), owner_id: str = Depends(require_owner)):
    """Current quotes for up to MAX_BATCH_SYMBOLS symbols"""
    service = _require_market_service()
    request = _parse_query(QuotesRequest, symbols=payload.get("symbols"))
    quotes = await service.get_quotes(request.symbols)
    return respond([QuoteOut(**quote).model_dump() for quote in quotes])

@market_router.get("/search/{query}")
async def search_symbols(query: str, owner_id: str = Depends(require_owner)):
    service = _require_market_service()
    if not query or len(query.strip()) < 2:
        raise HTTPException(status_code=400, detail="Search query must be at least 2 characters")
    results = await service.search_symbols(query)
    return respond([SymbolMatchOut(**item).model_dump() for item in results])

@market_router.get("/health")
async def get_market_health():
    service = _require_market_service()
    return respond(service.get_market_health())

# System Routes
@api_router.get("/system/health")
async def system_health():
    """Get system health status"""
    return respond({
        "market_data_service": market_data_service is not None,
        "timestamp": datetime.now(timezone.utc).isoformat()
    })

api_router.include_router(journal_router)
api_router.include_router(focus_router)
api_router.include_router(market_router)
