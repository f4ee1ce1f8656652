"""
Journal entry model for database storage
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Boolean, Text, Index, event
from sqlalchemy.sql import func
from app.core.database import Base
from app.services.pnl_calculator import apply_entry_derivations

class JournalEntry(Base):
    """Journal entry (one logged trade)"""
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    symbol = Column(String(20), nullable=False)
    entry_price = Column(Float, nullable=False)
    entry_date = Column(Date, nullable=False)
    current_price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    status = Column(String(10), nullable=False, default="open")  # open or closed
    exit_price = Column(Float, nullable=True)
    exit_date = Column(Date, nullable=True)
    remarks = Column(Text, nullable=False, default="")
    is_team_trade = Column(Boolean, nullable=False, default=False)

    # Derived on every write, never set by clients
    pnl = Column(Float, nullable=False, default=0.0)
    pnl_percentage = Column(Float, nullable=False, default=0.0)
    report_month = Column(String(10), nullable=False)
    report_month_number = Column(Integer, nullable=False)
    report_year = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_journal_entries_owner_status", "owner_id", "status"),
        Index("ix_journal_entries_owner_symbol", "owner_id", "symbol"),
        Index("ix_journal_entries_owner_period", "owner_id", "report_year", "report_month_number"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "symbol": self.symbol,
            "entry_price": self.entry_price,
            "entry_date": self.entry_date.isoformat() if self.entry_date else None,
            "current_price": self.current_price,
            "quantity": self.quantity,
            "status": self.status,
            "exit_price": self.exit_price,
            "exit_date": self.exit_date.isoformat() if self.exit_date else None,
            "remarks": self.remarks,
            "is_team_trade": self.is_team_trade,
            "pnl": self.pnl,
            "pnl_percentage": self.pnl_percentage,
            "report_month": self.report_month,
            "report_year": self.report_year,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@event.listens_for(JournalEntry, "before_insert")
@event.listens_for(JournalEntry, "before_update")
def _derive_entry_fields(mapper, connection, target):
    apply_entry_derivations(target)
