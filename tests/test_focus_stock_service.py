from datetime import datetime

import pytest

from app.core.exceptions import EntryValidationError, NotFoundError
from app.services.focus_stock_service import FocusStockService

NOW = datetime(2024, 5, 1, 10, 30)


def _service(db_session, owner_id="user-a", now=NOW):
    return FocusStockService(db_session, owner_id, now=lambda: now)


def _focus(**overrides):
    payload = {
        "symbol": "infy",
        "targetPrice": 150,
        "currentPrice": 100,
        "reason": "Breakout above resistance",
    }
    payload.update(overrides)
    return payload


def test_create_derives_potential_return(db_session):
    item = _service(db_session).create_focus_stock(_focus(targetPrice=125))

    assert item.symbol == "INFY"
    assert item.potential_return == pytest.approx(25.0)
    assert item.potential_return_percentage == pytest.approx(25.0)
    assert item.date_added == NOW
    assert item.trade_taken is False
    assert item.to_dict()["is_positive"] is True


def test_target_below_current_is_negative_return(db_session):
    item = _service(db_session).create_focus_stock(_focus(targetPrice=90))

    assert item.potential_return == pytest.approx(-10.0)
    assert item.to_dict()["is_positive"] is False


def test_update_recomputes_and_keeps_date_added(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    later = _service(db_session, now=datetime(2024, 5, 3, 9, 0))
    updated = later.update_focus_stock(item.id, _focus(currentPrice=120))

    assert updated.potential_return == pytest.approx(30.0)
    assert updated.potential_return_percentage == pytest.approx(25.0)
    assert updated.date_added == NOW


def test_mark_taken_defaults_trade_date_to_now(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    taken_at = datetime(2024, 5, 2, 14, 0)
    marked = _service(db_session, now=taken_at).mark_taken(item.id)

    assert marked.trade_taken is True
    assert marked.trade_date == taken_at


def test_mark_taken_rejects_trade_date_before_date_added(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    with pytest.raises(EntryValidationError) as exc_info:
        service.mark_taken(item.id, {"tradeDate": "2024-04-29"})
    assert exc_info.value.fields == ["trade_date"]
    assert service.get_focus_stock(item.id).trade_taken is False


def test_mark_taken_same_day_is_allowed(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    marked = service.mark_taken(item.id, {"trade_date": "2024-05-01T08:00:00"})
    assert marked.trade_date == datetime(2024, 5, 1, 8, 0)


def test_mark_taken_false_returns_to_pending(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())
    service.mark_taken(item.id)

    reverted = service.mark_taken(item.id, {"tradeTaken": False})

    assert reverted.trade_taken is False
    assert reverted.trade_date is None


def test_pending_and_taken_lists(db_session):
    service = _service(db_session)
    first = service.create_focus_stock(_focus(symbol="TCS"))
    service.create_focus_stock(_focus(symbol="WIPRO"))
    service.mark_taken(first.id)

    assert [item.symbol for item in service.pending()] == ["WIPRO"]
    assert [item.symbol for item in service.taken()] == ["TCS"]
    assert service.list_focus_stocks(trade_taken=True).total == 1
    assert service.list_focus_stocks(symbol="wipro").items[0].symbol == "WIPRO"


def test_list_rejects_unknown_sort_field(db_session):
    with pytest.raises(EntryValidationError) as exc_info:
        _service(db_session).list_focus_stocks(sort_by="reason")
    assert exc_info.value.fields == ["sort_by"]


def test_focus_stocks_are_owner_scoped(db_session):
    item = _service(db_session, "user-a").create_focus_stock(_focus())
    other = _service(db_session, "user-b")

    with pytest.raises(NotFoundError):
        other.get_focus_stock(item.id)
    with pytest.raises(NotFoundError):
        other.mark_taken(item.id)
    assert other.pending() == []


def test_delete_focus_stock(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    service.delete_focus_stock(item.id)

    with pytest.raises(NotFoundError):
        service.get_focus_stock(item.id)


@pytest.mark.parametrize("flag", ["yes", "1"])
def test_mark_taken_rejects_non_boolean_flag(db_session, flag):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    with pytest.raises(EntryValidationError) as exc_info:
        service.mark_taken(item.id, {"tradeTaken": flag})
    assert exc_info.value.fields == ["trade_taken"]

    stored = service.get_focus_stock(item.id)
    assert stored.trade_taken is False
    assert stored.trade_date is None


def test_mark_taken_accepts_boolean_strings(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    assert service.mark_taken(item.id, {"tradeTaken": "true"}).trade_taken is True
    assert service.mark_taken(item.id, {"tradeTaken": "False"}).trade_taken is False


def test_update_accepts_new_date_added(db_session):
    service = _service(db_session)
    item = service.create_focus_stock(_focus())

    updated = service.update_focus_stock(item.id, _focus(dateAdded="2024-04-20T09:00:00"))
    assert updated.date_added == datetime(2024, 4, 20, 9, 0)


def test_oversized_prices_are_rejected(db_session):
    service = _service(db_session)

    with pytest.raises(EntryValidationError) as exc_info:
        service.create_focus_stock(_focus(targetPrice=1.7e308))
    assert exc_info.value.fields == ["target_price"]
    assert service.list_focus_stocks().total == 0
