from datetime import date
from types import SimpleNamespace

import pytest

from app.services.pnl_calculator import (
    MONTH_NAMES,
    apply_entry_derivations,
    apply_focus_derivations,
    calculate_pnl,
    calculate_potential_return,
    month_name,
    report_period,
)


def _entry(**overrides):
    fields = dict(
        status="closed",
        entry_price=150.0,
        current_price=155.0,
        exit_price=160.0,
        quantity=10,
        entry_date=date(2024, 1, 15),
        pnl=None,
        pnl_percentage=None,
        report_month=None,
        report_month_number=None,
        report_year=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_closed_entry_uses_exit_price_and_mirrors_it_to_current_price():
    entry = _entry()
    apply_entry_derivations(entry)

    assert entry.pnl == pytest.approx(100.0)
    assert entry.pnl_percentage == pytest.approx(6.6666667)
    assert entry.current_price == 160.0
    assert entry.report_month == "January"
    assert entry.report_month_number == 1
    assert entry.report_year == 2024


def test_open_entry_uses_current_price():
    entry = _entry(status="open", exit_price=None, current_price=140.0, quantity=3)
    apply_entry_derivations(entry)

    assert entry.pnl == pytest.approx(-30.0)
    assert entry.pnl_percentage == pytest.approx(-6.6666667)
    assert entry.current_price == 140.0


def test_derivation_is_idempotent():
    entry = _entry()
    apply_entry_derivations(entry)
    first = (entry.pnl, entry.pnl_percentage, entry.current_price, entry.report_month, entry.report_year)
    apply_entry_derivations(entry)
    second = (entry.pnl, entry.pnl_percentage, entry.current_price, entry.report_month, entry.report_year)
    assert first == second


def test_percentage_is_relative_to_entry_price():
    result = calculate_pnl(entry_price=200.0, basis_price=250.0, quantity=4)
    assert result.pnl == 200.0
    assert result.pnl_percentage == 25.0


def test_calculate_pnl_rejects_non_positive_entry_price():
    with pytest.raises(ValueError):
        calculate_pnl(entry_price=0.0, basis_price=10.0)


@pytest.mark.parametrize("month", range(1, 13))
def test_report_period_matches_entry_date(month):
    period = report_period(date(2023, month, 28))
    assert period.year == 2023
    assert period.month_number == month
    assert period.month == MONTH_NAMES[month - 1]


def test_month_name_bounds():
    assert month_name(12) == "December"
    with pytest.raises(ValueError):
        month_name(13)


def test_focus_stock_potential_return():
    result = calculate_potential_return(target_price=250.0, current_price=200.0)
    assert result.amount == 50.0
    assert result.percentage == 25.0
    assert result.is_positive

    item = SimpleNamespace(target_price=180.0, current_price=200.0)
    apply_focus_derivations(item)
    assert item.potential_return == -20.0
    assert item.potential_return_percentage == -10.0
