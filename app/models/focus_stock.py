"""
Focus stock (watchlist) model
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, Index, event
from sqlalchemy.sql import func
from app.core.database import Base
from app.services.pnl_calculator import apply_focus_derivations

class FocusStock(Base):
    """Watchlist item with a target price"""
    __tablename__ = "focus_stocks"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    symbol = Column(String(10), nullable=False)
    target_price = Column(Float, nullable=False)
    current_price = Column(Float, nullable=False)
    reason = Column(String(200), nullable=False)
    date_added = Column(DateTime, nullable=False)
    trade_taken = Column(Boolean, nullable=False, default=False)
    trade_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    potential_return = Column(Float, nullable=False, default=0.0)
    potential_return_percentage = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_focus_stocks_owner_symbol", "owner_id", "symbol"),
        Index("ix_focus_stocks_owner_taken", "owner_id", "trade_taken"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "symbol": self.symbol,
            "target_price": self.target_price,
            "current_price": self.current_price,
            "reason": self.reason,
            "date_added": self.date_added.isoformat() if self.date_added else None,
            "trade_taken": self.trade_taken,
            "trade_date": self.trade_date.isoformat() if self.trade_date else None,
            "notes": self.notes,
            "potential_return": self.potential_return,
            "potential_return_percentage": self.potential_return_percentage,
            "is_positive": (self.potential_return or 0) >= 0,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@event.listens_for(FocusStock, "before_insert")
@event.listens_for(FocusStock, "before_update")
def _derive_focus_fields(mapper, connection, target):
    apply_focus_derivations(target)
