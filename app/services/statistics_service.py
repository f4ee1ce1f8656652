"""
Read-only statistics over a user's journal and watchlist
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models.focus_stock import FocusStock
from app.models.journal_entry import JournalEntry
from app.services.pnl_calculator import STATUS_CLOSED, STATUS_OPEN, month_name
from app.services.repository import OwnerScopedRepository

logger = logging.getLogger(__name__)


def _count_where(condition):
    return func.sum(case((condition, 1), else_=0))


class StatisticsService:
    """Aggregations scoped to a single owner"""

    def __init__(self, db: Session, owner_id: str):
        self.entries = OwnerScopedRepository(db, JournalEntry, owner_id, label="Journal entry")
        self.focus_stocks = OwnerScopedRepository(db, FocusStock, owner_id, label="Focus stock")

    def get_trade_stats(self) -> Dict[str, Any]:
        """
        Summary counts and P&L totals for all entries

        Returns a zero-filled record when the owner has no entries.
        """
        row = self.entries.scoped(
            func.count(JournalEntry.id),
            _count_where(JournalEntry.status == STATUS_OPEN),
            _count_where(JournalEntry.status == STATUS_CLOSED),
            func.sum(JournalEntry.pnl),
            func.avg(JournalEntry.pnl_percentage),
            _count_where(JournalEntry.is_team_trade.is_(True)),
        ).one()

        total, open_count, closed_count, total_pnl, avg_pct, team_count = row
        return {
            "total_trades": int(total or 0),
            "open_trades": int(open_count or 0),
            "closed_trades": int(closed_count or 0),
            "total_pnl": float(total_pnl or 0.0),
            "avg_pnl_percentage": float(avg_pct or 0.0),
            "team_trades": int(team_count or 0),
        }

    def get_monthly_performance(self, year: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Per-month P&L for one year, in calendar order

        Grouping uses the numeric month so January sorts before April.
        """
        year = year or date.today().year
        rows = (
            self.entries.scoped(
                JournalEntry.report_month_number,
                func.sum(JournalEntry.pnl),
                func.count(JournalEntry.id),
                func.avg(JournalEntry.pnl_percentage),
            )
            .filter(JournalEntry.report_year == year)
            .group_by(JournalEntry.report_month_number)
            .order_by(JournalEntry.report_month_number.asc())
            .all()
        )

        return [
            {
                "month": month_name(month_number),
                "month_number": int(month_number),
                "year": year,
                "total_pnl": float(total_pnl or 0.0),
                "total_trades": int(count or 0),
                "avg_pnl_percentage": float(avg_pct or 0.0),
            }
            for month_number, total_pnl, count, avg_pct in rows
        ]

    def get_focus_stats(self) -> Dict[str, Any]:
        """Watchlist counts, pending upside and conversion rate"""
        row = self.focus_stocks.scoped(
            func.count(FocusStock.id),
            _count_where(FocusStock.trade_taken.is_(False)),
            _count_where(FocusStock.trade_taken.is_(True)),
            # NULL for taken rows, which AVG ignores.
            func.avg(case((FocusStock.trade_taken.is_(False), FocusStock.potential_return_percentage), else_=None)),
        ).one()

        total, pending, taken, avg_return = row
        total = int(total or 0)
        taken = int(taken or 0)
        return {
            "total_focus_stocks": total,
            "pending_stocks": int(pending or 0),
            "taken_stocks": taken,
            "average_potential_return": float(avg_return or 0.0),
            "conversion_rate": (taken / total * 100) if total > 0 else 0.0,
        }
