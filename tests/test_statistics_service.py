from datetime import date, datetime

import pytest

from app.services.focus_stock_service import FocusStockService
from app.services.journal_service import JournalService
from app.services.statistics_service import StatisticsService

TODAY = date(2024, 6, 30)


def _journal(db_session, owner_id):
    return JournalService(db_session, owner_id, today=lambda: TODAY)


def _focus(db_session, owner_id):
    return FocusStockService(db_session, owner_id, now=lambda: datetime(2024, 6, 1, 9, 0))


def test_trade_stats_are_zero_filled_without_entries(db_session):
    assert StatisticsService(db_session, "user-a").get_trade_stats() == {
        "total_trades": 0,
        "open_trades": 0,
        "closed_trades": 0,
        "total_pnl": 0.0,
        "avg_pnl_percentage": 0.0,
        "team_trades": 0,
    }


def test_trade_stats_only_count_the_owner(db_session, closed_trade, open_trade):
    # user-a: +50 closed, user-b: -20 closed
    _journal(db_session, "user-a").create_entry(
        closed_trade(entry_price=100, exit_price=105, quantity=10, is_team_trade=True)
    )
    _journal(db_session, "user-b").create_entry(closed_trade(entry_price=100, exit_price=98, quantity=10))
    _journal(db_session, "user-a").create_entry(open_trade(entry_price=100, current_price=100, quantity=1))

    stats = StatisticsService(db_session, "user-a").get_trade_stats()

    assert stats["total_trades"] == 2
    assert stats["open_trades"] == 1
    assert stats["closed_trades"] == 1
    assert stats["team_trades"] == 1
    assert stats["total_pnl"] == pytest.approx(50.0)
    assert stats["avg_pnl_percentage"] == pytest.approx(2.5)

    other = StatisticsService(db_session, "user-b").get_trade_stats()
    assert other["total_pnl"] == pytest.approx(-20.0)


def test_monthly_performance_is_in_calendar_order(db_session, closed_trade):
    journal = _journal(db_session, "user-a")
    journal.create_entry(closed_trade(entry_date="2024-04-03", exit_date="2024-04-05"))
    journal.create_entry(closed_trade(entry_date="2024-01-10", exit_date="2024-01-12"))
    journal.create_entry(closed_trade(entry_date="2024-01-20", exit_date="2024-01-22", exit_price=140))
    journal.create_entry(closed_trade(entry_date="2023-12-01", exit_date="2023-12-02"))

    months = StatisticsService(db_session, "user-a").get_monthly_performance(2024)

    assert [m["month"] for m in months] == ["January", "April"]
    january = months[0]
    assert january["month_number"] == 1
    assert january["year"] == 2024
    assert january["total_trades"] == 2
    assert january["total_pnl"] == pytest.approx(100.0 - 100.0)


def test_monthly_performance_empty_year(db_session):
    assert StatisticsService(db_session, "user-a").get_monthly_performance(2020) == []


def test_focus_stats_without_stocks(db_session):
    stats = StatisticsService(db_session, "user-a").get_focus_stats()

    assert stats["total_focus_stocks"] == 0
    assert stats["conversion_rate"] == 0.0
    assert stats["average_potential_return"] == 0.0


def test_focus_stats_average_only_pending(db_session):
    focus = _focus(db_session, "user-a")
    focus.create_focus_stock({"symbol": "TCS", "target_price": 110, "current_price": 100, "reason": "Base"})
    focus.create_focus_stock({"symbol": "INFY", "target_price": 130, "current_price": 100, "reason": "Base"})
    taken = focus.create_focus_stock({"symbol": "ITC", "target_price": 200, "current_price": 100, "reason": "Base"})
    focus.create_focus_stock({"symbol": "LT", "target_price": 150, "current_price": 100, "reason": "Base"})
    focus.mark_taken(taken.id)
    _focus(db_session, "user-b").create_focus_stock(
        {"symbol": "SBIN", "target_price": 500, "current_price": 100, "reason": "Base"}
    )

    stats = StatisticsService(db_session, "user-a").get_focus_stats()

    assert stats["total_focus_stocks"] == 4
    assert stats["pending_stocks"] == 3
    assert stats["taken_stocks"] == 1
    assert stats["average_potential_return"] == pytest.approx(30.0)
    assert stats["conversion_rate"] == pytest.approx(25.0)
