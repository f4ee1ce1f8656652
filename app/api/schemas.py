"""
Pydantic schemas for API request/response contracts.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.config import settings


VALID_SORT_ORDERS = {"asc", "desc"}
VALID_ENTRY_STATUSES = {"open", "closed"}
# Keeps OFFSET inside a 64-bit integer.
MAX_PAGE = 1_000_000


def _normalize_sort_order(value: str) -> str:
    normalized = str(value or "desc").strip().lower()
    if normalized not in VALID_SORT_ORDERS:
        raise ValueError(f"sort_order must be one of: {', '.join(sorted(VALID_SORT_ORDERS))}")
    return normalized


class ApiResponse(BaseModel):
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None


class EntryListQuery(BaseModel):
    status: Optional[str] = None
    symbol: Optional[str] = Field(default=None, max_length=20)
    month: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    limit: Optional[int] = Field(default=None, ge=1, le=100)

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        normalized = str(value).strip().lower()
        if normalized not in VALID_ENTRY_STATUSES:
            raise ValueError("status must be either open or closed")
        return normalized

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, value: str) -> str:
        return _normalize_sort_order(value)


class FocusStockListQuery(BaseModel):
    trade_taken: Optional[bool] = None
    symbol: Optional[str] = Field(default=None, max_length=10)
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    limit: Optional[int] = Field(default=None, ge=1, le=100)

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, value: str) -> str:
        return _normalize_sort_order(value)


class QuotesRequest(BaseModel):
    symbols: List[str] = Field(min_length=1)

    @field_validator("symbols")
    @classmethod
    def validate_symbols(cls, value: List[str]) -> List[str]:
        cleaned = [str(symbol).strip() for symbol in value if str(symbol).strip()]
        if not cleaned:
            raise ValueError("Symbols array is required")
        if len(cleaned) > settings.MAX_BATCH_SYMBOLS:
            raise ValueError(f"Maximum {settings.MAX_BATCH_SYMBOLS} symbols allowed per request")
        return cleaned


class TradeStatsOut(BaseModel):
    total_trades: int = 0
    open_trades: int = 0
    closed_trades: int = 0
    total_pnl: float = 0.0
    avg_pnl_percentage: float = 0.0
    team_trades: int = 0


class MonthlyPerformanceOut(BaseModel):
    month: str
    month_number: int = Field(ge=1, le=12)
    year: int
    total_pnl: float = 0.0
    total_trades: int = 0
    avg_pnl_percentage: float = 0.0


class FocusStatsOut(BaseModel):
    total_focus_stocks: int = 0
    pending_stocks: int = 0
    taken_stocks: int = 0
    average_potential_return: float = 0.0
    conversion_rate: float = 0.0


class QuoteOut(BaseModel):
    symbol: str
    available: bool
    current_price: Optional[float] = None
    provider_symbol: Optional[str] = None
    source: Optional[str] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    previous_close: Optional[float] = None
    currency: Optional[str] = None
    name: Optional[str] = None
    timestamp: Optional[str] = None
    error: Optional[str] = None


class SymbolMatchOut(BaseModel):
    symbol: str
    description: str = ""
    display_name: str = ""
    type: Optional[str] = None
    exchange: str = ""
