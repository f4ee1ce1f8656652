"""
Journal entry service: validate, derive and persist a user's trades
"""
import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EntryValidationError, FieldError
from app.models.journal_entry import JournalEntry
from app.services.entry_validator import TradeInput, VALID_STATUSES, ensure_finite_pnl, validate_close, validate_entry
from app.services.pnl_calculator import MONTH_NAMES, STATUS_CLOSED
from app.services.repository import OwnerScopedRepository, Page

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at", "updated_at", "entry_date", "exit_date", "symbol",
    "pnl", "pnl_percentage", "entry_price", "current_price", "quantity",
}


class JournalService:
    """CRUD operations on one owner's journal entries"""

    def __init__(self, db: Session, owner_id: str, today: Optional[Callable[[], date]] = None):
        self.repository = OwnerScopedRepository(db, JournalEntry, owner_id, label="Journal entry")
        self._today = today or date.today

    @property
    def owner_id(self) -> str:
        return self.repository.owner_id

    def list_entries(
        self,
        status: Optional[str] = None,
        symbol: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[JournalEntry]:
        """List entries with optional filters, sorting and pagination"""
        errors = []
        if status is not None and status not in VALID_STATUSES:
            errors.append(FieldError("status", "Status must be either open or closed", status))
        month_number = None
        if month:
            names = [name.lower() for name in MONTH_NAMES]
            if month.strip().lower() in names:
                month_number = names.index(month.strip().lower()) + 1
            else:
                errors.append(FieldError("month", "Month must be an English month name", month))
        if sort_by not in SORTABLE_FIELDS:
            errors.append(FieldError("sort_by", f"sort_by must be one of: {', '.join(sorted(SORTABLE_FIELDS))}", sort_by))
        if errors:
            raise EntryValidationError(errors)

        limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        filters = {
            "status": status,
            "symbol": symbol.strip().upper() if symbol else None,
            "report_month_number": month_number,
            "report_year": year,
        }
        return self.repository.list(
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            page=max(page, 1),
            limit=max(limit, 1),
        )

    def get_entry(self, entry_id: Any) -> JournalEntry:
        return self.repository.get(entry_id)

    def create_entry(self, payload: Dict[str, Any]) -> JournalEntry:
        """Validate a submission and store it as a new entry"""
        trade = validate_entry(payload, today=self._today())
        entry = JournalEntry()
        self._apply_input(entry, trade)
        entry = self.repository.add(entry)
        logger.info(f"Created journal entry {entry.id} ({entry.symbol}, {entry.status}) for owner {self.owner_id}")
        return entry

    def update_entry(self, entry_id: Any, payload: Dict[str, Any]) -> JournalEntry:
        """Replace an entry's fields with a validated submission"""
        entry = self.repository.get(entry_id)
        trade = validate_entry(payload, today=self._today(), current_status=entry.status)
        self._apply_input(entry, trade)
        entry = self.repository.save(entry)
        logger.info(f"Updated journal entry {entry.id} for owner {self.owner_id}")
        return entry

    def close_entry(self, entry_id: Any, payload: Dict[str, Any]) -> JournalEntry:
        """Close an open entry; exit price and exit date are set together"""
        entry = self.repository.get(entry_id)
        if entry.status == STATUS_CLOSED:
            raise EntryValidationError([FieldError("status", "Entry is already closed", entry.status)])
        exit_data = validate_close(payload, entry_date=entry.entry_date, today=self._today())
        ensure_finite_pnl(entry.entry_price, exit_data["exit_price"], entry.quantity, field="exit_price")
        entry.status = STATUS_CLOSED
        entry.exit_price = exit_data["exit_price"]
        entry.exit_date = exit_data["exit_date"]
        entry = self.repository.save(entry)
        logger.info(f"Closed journal entry {entry.id} at {entry.exit_price} for owner {self.owner_id}")
        return entry

    def delete_entry(self, entry_id: Any) -> None:
        self.repository.delete(entry_id)
        logger.info(f"Deleted journal entry {entry_id} for owner {self.owner_id}")

    @staticmethod
    def _apply_input(entry: JournalEntry, trade: TradeInput):
        entry.symbol = trade.symbol
        entry.entry_price = trade.entry_price
        entry.entry_date = trade.entry_date
        entry.current_price = trade.current_price
        entry.quantity = trade.quantity
        entry.remarks = trade.remarks
        entry.is_team_trade = trade.is_team_trade
        entry.status = trade.status
        # Exit fields only exist on closed trades.
        entry.exit_price = trade.exit_price
        entry.exit_date = trade.exit_date
