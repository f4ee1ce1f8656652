"""
Profit/loss derivation for journal entries and focus stocks
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

# Fixed English names; strftime("%B") would follow the process locale.
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

STATUS_OPEN = "open"
STATUS_CLOSED = "closed"


@dataclass(frozen=True)
class PnLResult:
    """Derived P&L values for one entry"""
    pnl: float
    pnl_percentage: float
    basis_price: float


@dataclass(frozen=True)
class ReportPeriod:
    """Month/year bucket an entry is reported under"""
    month: str
    month_number: int
    year: int


@dataclass(frozen=True)
class PotentialReturn:
    amount: float
    percentage: float

    @property
    def is_positive(self) -> bool:
        return self.amount >= 0


def month_name(month_number: int) -> str:
    if month_number < 1 or month_number > 12:
        raise ValueError(f"month_number must be between 1 and 12, got {month_number}")
    return MONTH_NAMES[month_number - 1]


def calculate_pnl(entry_price: float, basis_price: float, quantity: int = 1) -> PnLResult:
    """
    Calculate P&L of a position against a basis price

    Args:
        entry_price: Price the position was opened at (must be positive)
        basis_price: Exit price for closed trades, current price for open ones
        quantity: Number of shares

    Returns:
        PnLResult with the absolute and percentage return
    """
    if entry_price <= 0:
        raise ValueError("entry_price must be positive")
    delta = basis_price - entry_price
    return PnLResult(
        pnl=delta * (quantity or 1),
        pnl_percentage=delta * 100 / entry_price,
        basis_price=basis_price,
    )


def report_period(entry_date: Union[date, datetime]) -> ReportPeriod:
    """Reporting bucket derived from the entry date"""
    return ReportPeriod(
        month=month_name(entry_date.month),
        month_number=entry_date.month,
        year=entry_date.year,
    )


def entry_basis_price(status: str, current_price: float, exit_price: Optional[float]) -> float:
    """Closed trades are valued at their exit price, open ones at the current price."""
    if status == STATUS_CLOSED and exit_price is not None:
        return exit_price
    return current_price


def apply_entry_derivations(entry) -> None:
    """
    Write derived fields onto a journal entry in place.

    Works on any object exposing the journal entry attributes, so it runs
    the same for ORM instances and plain test doubles. Re-running it with
    unchanged inputs yields the same outputs.
    """
    basis = entry_basis_price(entry.status, entry.current_price, entry.exit_price)
    if entry.status == STATUS_CLOSED and entry.exit_price is not None:
        entry.current_price = entry.exit_price

    result = calculate_pnl(entry.entry_price, basis, entry.quantity or 1)
    entry.pnl = result.pnl
    entry.pnl_percentage = result.pnl_percentage

    period = report_period(entry.entry_date)
    entry.report_month = period.month
    entry.report_month_number = period.month_number
    entry.report_year = period.year


def calculate_potential_return(target_price: float, current_price: float) -> PotentialReturn:
    """Upside from the current price to the target price"""
    if current_price <= 0:
        raise ValueError("current_price must be positive")
    amount = target_price - current_price
    return PotentialReturn(amount=amount, percentage=amount / current_price * 100)


def apply_focus_derivations(focus_stock) -> None:
    """Write potential return fields onto a focus stock in place."""
    result = calculate_potential_return(focus_stock.target_price, focus_stock.current_price)
    focus_stock.potential_return = result.amount
    focus_stock.potential_return_percentage = result.percentage
