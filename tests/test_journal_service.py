from datetime import date

import pytest

from app.core.exceptions import EntryValidationError, NotFoundError
from app.services.journal_service import JournalService

TODAY = date(2024, 6, 30)


def _service(db_session, owner_id="user-a"):
    return JournalService(db_session, owner_id, today=lambda: TODAY)


def test_create_closed_entry_derives_pnl_and_period(db_session, closed_trade):
    entry = _service(db_session).create_entry(closed_trade())

    assert entry.id is not None
    assert entry.owner_id == "user-a"
    assert entry.pnl == pytest.approx(100.0)
    assert entry.pnl_percentage == pytest.approx(6.6667, rel=1e-4)
    assert entry.current_price == 160
    assert entry.report_month == "January"
    assert entry.report_month_number == 1
    assert entry.report_year == 2024


def test_create_open_entry_values_against_current_price(db_session, open_trade):
    entry = _service(db_session).create_entry(open_trade())

    assert entry.symbol == "MSFT"
    assert entry.status == "open"
    assert entry.exit_price is None
    assert entry.pnl == pytest.approx(60.0)
    assert entry.pnl_percentage == pytest.approx(10.0)
    assert entry.report_month == "March"


def test_invalid_submission_is_not_stored(db_session, closed_trade):
    service = _service(db_session)
    with pytest.raises(EntryValidationError):
        service.create_entry(closed_trade(exit_price=None))
    assert service.list_entries().total == 0


def test_update_recomputes_derived_fields(db_session, open_trade):
    service = _service(db_session)
    entry = service.create_entry(open_trade())

    updated = service.update_entry(entry.id, open_trade(current_price=270, entry_date="2024-05-02"))

    assert updated.pnl == pytest.approx(-60.0)
    assert updated.pnl_percentage == pytest.approx(-10.0)
    assert updated.report_month == "May"
    assert updated.report_month_number == 5


def test_update_cannot_reopen_closed_entry(db_session, closed_trade, open_trade):
    service = _service(db_session)
    entry = service.create_entry(closed_trade())

    with pytest.raises(EntryValidationError) as exc_info:
        service.update_entry(entry.id, open_trade())
    assert exc_info.value.fields == ["status"]
    assert service.get_entry(entry.id).status == "closed"


def test_close_entry_sets_exit_fields_together(db_session, open_trade):
    service = _service(db_session)
    entry = service.create_entry(open_trade())

    closed = service.close_entry(entry.id, {"exitPrice": 315, "exitDate": "2024-03-20"})

    assert closed.status == "closed"
    assert closed.exit_price == 315
    assert closed.exit_date == date(2024, 3, 20)
    assert closed.current_price == 315
    assert closed.pnl == pytest.approx(30.0)


def test_close_entry_rejects_already_closed(db_session, closed_trade):
    service = _service(db_session)
    entry = service.create_entry(closed_trade())

    with pytest.raises(EntryValidationError) as exc_info:
        service.close_entry(entry.id, {"exit_price": 170, "exit_date": "2024-01-25"})
    assert exc_info.value.fields == ["status"]


def test_entries_are_invisible_to_other_owners(db_session, closed_trade):
    entry = _service(db_session, "user-a").create_entry(closed_trade())
    other = _service(db_session, "user-b")

    with pytest.raises(NotFoundError):
        other.get_entry(entry.id)
    with pytest.raises(NotFoundError):
        other.update_entry(entry.id, closed_trade(exit_price=200))
    with pytest.raises(NotFoundError):
        other.delete_entry(entry.id)
    assert other.list_entries().total == 0
    assert _service(db_session, "user-a").get_entry(entry.id).exit_price == 160


def test_unknown_or_malformed_id_is_not_found(db_session):
    service = _service(db_session)
    with pytest.raises(NotFoundError):
        service.get_entry(999)
    with pytest.raises(NotFoundError):
        service.get_entry("not-a-number")


def test_delete_entry(db_session, open_trade):
    service = _service(db_session)
    entry = service.create_entry(open_trade())

    service.delete_entry(entry.id)

    with pytest.raises(NotFoundError):
        service.get_entry(entry.id)


def test_list_filters_and_pagination(db_session, closed_trade, open_trade):
    service = _service(db_session)
    service.create_entry(closed_trade())
    service.create_entry(closed_trade(symbol="NVDA", entry_date="2024-04-02", exit_date="2024-04-10"))
    service.create_entry(open_trade())
    service.create_entry(open_trade(symbol="TSLA", entry_date="2023-11-20"))

    assert service.list_entries(status="closed").total == 2
    assert [e.symbol for e in service.list_entries(symbol="nvda").items] == ["NVDA"]
    assert [e.symbol for e in service.list_entries(month="april").items] == ["NVDA"]
    assert service.list_entries(year=2023).total == 1

    ordered = service.list_entries(sort_by="entry_date", sort_order="asc")
    assert [e.symbol for e in ordered.items] == ["TSLA", "AAPL", "MSFT", "NVDA"]

    page = service.list_entries(sort_by="entry_date", sort_order="asc", page=2, limit=3)
    assert [e.symbol for e in page.items] == ["NVDA"]
    assert page.pagination() == {"current": 2, "pages": 2, "total": 4, "limit": 3}


def test_list_rejects_bad_filters_together(db_session):
    with pytest.raises(EntryValidationError) as exc_info:
        _service(db_session).list_entries(status="pending", month="Smarch", sort_by="owner_id")
    assert set(exc_info.value.fields) == {"status", "month", "sort_by"}


def test_entry_with_overflowing_pnl_is_not_stored(db_session, open_trade):
    service = _service(db_session)

    with pytest.raises(EntryValidationError) as exc_info:
        service.create_entry(open_trade(entry_price=1, current_price=1.7e308, quantity=10))
    assert exc_info.value.fields == ["current_price"]

    with pytest.raises(EntryValidationError) as exc_info:
        service.create_entry(open_trade(entry_price=5e-324, current_price=1e12))
    assert exc_info.value.fields == ["entry_price"]
    assert service.list_entries().total == 0


def test_close_entry_rejects_exit_with_overflowing_pnl(db_session, open_trade):
    service = _service(db_session)
    entry = service.create_entry(open_trade(entry_price=1e-310, current_price=1e-310))

    with pytest.raises(EntryValidationError) as exc_info:
        service.close_entry(entry.id, {"exit_price": 1e12, "exit_date": "2024-03-20"})
    assert exc_info.value.fields == ["exit_price"]
    assert service.get_entry(entry.id).status == "open"


@pytest.mark.parametrize("entry_id", [2 ** 63, 10 ** 20, 0, -1])
def test_id_outside_key_range_is_not_found(db_session, entry_id):
    with pytest.raises(NotFoundError):
        _service(db_session).get_entry(entry_id)
