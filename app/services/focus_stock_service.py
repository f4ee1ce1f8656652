"""
Focus stock (watchlist) service
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EntryValidationError, FieldError
from app.models.focus_stock import FocusStock
from app.services.entry_validator import FocusStockInput, utc_now, validate_focus_stock, validate_mark_taken
from app.services.repository import OwnerScopedRepository, Page

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at", "updated_at", "date_added", "trade_date", "symbol",
    "target_price", "current_price", "potential_return", "potential_return_percentage",
}


class FocusStockService:
    """CRUD operations on one owner's watchlist"""

    def __init__(self, db: Session, owner_id: str, now: Optional[Callable[[], datetime]] = None):
        self.repository = OwnerScopedRepository(db, FocusStock, owner_id, label="Focus stock")
        self._now = now or utc_now

    @property
    def owner_id(self) -> str:
        return self.repository.owner_id

    def list_focus_stocks(
        self,
        trade_taken: Optional[bool] = None,
        symbol: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[FocusStock]:
        if sort_by not in SORTABLE_FIELDS:
            raise EntryValidationError([
                FieldError("sort_by", f"sort_by must be one of: {', '.join(sorted(SORTABLE_FIELDS))}", sort_by)
            ])
        limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        filters = {
            "trade_taken": trade_taken,
            "symbol": symbol.strip().upper() if symbol else None,
        }
        return self.repository.list(
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            page=max(page, 1),
            limit=max(limit, 1),
        )

    def pending(self) -> List[FocusStock]:
        """Focus stocks not yet traded, newest first"""
        return (
            self.repository.query()
            .filter(FocusStock.trade_taken.is_(False))
            .order_by(FocusStock.created_at.desc(), FocusStock.id.desc())
            .all()
        )

    def taken(self) -> List[FocusStock]:
        """Focus stocks converted into trades, most recent trade first"""
        return (
            self.repository.query()
            .filter(FocusStock.trade_taken.is_(True))
            .order_by(FocusStock.trade_date.desc(), FocusStock.id.desc())
            .all()
        )

    def get_focus_stock(self, focus_id: Any) -> FocusStock:
        return self.repository.get(focus_id)

    def create_focus_stock(self, payload: Dict[str, Any]) -> FocusStock:
        item = validate_focus_stock(payload, now=self._now())
        focus_stock = FocusStock()
        self._apply_input(focus_stock, item)
        focus_stock = self.repository.add(focus_stock)
        logger.info(f"Added focus stock {focus_stock.id} ({focus_stock.symbol}) for owner {self.owner_id}")
        return focus_stock

    def update_focus_stock(self, focus_id: Any, payload: Dict[str, Any]) -> FocusStock:
        focus_stock = self.repository.get(focus_id)
        data = dict(payload or {})
        # Keep the stored date_added unless the client sends a new one.
        if "date_added" not in data and "dateAdded" not in data:
            data["date_added"] = focus_stock.date_added
        item = validate_focus_stock(data, now=self._now())
        self._apply_input(focus_stock, item)
        focus_stock = self.repository.save(focus_stock)
        logger.info(f"Updated focus stock {focus_stock.id} for owner {self.owner_id}")
        return focus_stock

    def mark_taken(self, focus_id: Any, payload: Optional[Dict[str, Any]] = None) -> FocusStock:
        """
        Flip a focus stock between taken and pending.

        ``trade_taken`` defaults to True; a taken stock without a supplied
        ``trade_date`` is stamped with the current time.
        """
        focus_stock = self.repository.get(focus_id)
        mark = validate_mark_taken(payload, focus_stock.date_added, now=self._now())
        focus_stock.trade_taken = mark.trade_taken
        focus_stock.trade_date = mark.trade_date

        focus_stock = self.repository.save(focus_stock)
        logger.info(
            f"Focus stock {focus_stock.id} marked as {'taken' if focus_stock.trade_taken else 'pending'} "
            f"for owner {self.owner_id}"
        )
        return focus_stock

    def delete_focus_stock(self, focus_id: Any) -> None:
        self.repository.delete(focus_id)
        logger.info(f"Deleted focus stock {focus_id} for owner {self.owner_id}")

    @staticmethod
    def _apply_input(focus_stock: FocusStock, item: FocusStockInput):
        focus_stock.symbol = item.symbol
        focus_stock.target_price = item.target_price
        focus_stock.current_price = item.current_price
        focus_stock.reason = item.reason
        focus_stock.date_added = item.date_added
        focus_stock.trade_taken = item.trade_taken
        focus_stock.trade_date = item.trade_date
        focus_stock.notes = item.notes
