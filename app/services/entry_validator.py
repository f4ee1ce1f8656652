"""
Validation of journal entry and focus stock submissions.

Submissions are parsed into pydantic models. Field rules are declared on the
models, so one validation pass reports every violated rule and they are
raised together in one EntryValidationError. Trades parse into the tagged
union OpenEntry | ClosedEntry, discriminated on ``status``: a closed trade
cannot exist without its exit data. Both snake_case and the web client's
camelCase keys are accepted; errors are always reported under the
snake_case field name.
"""
import math
from datetime import date, datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    StringConstraints,
    Tag,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from app.core.config import settings
from app.core.exceptions import EntryValidationError, FieldError, field_errors_from
from app.services.pnl_calculator import (
    STATUS_CLOSED,
    STATUS_OPEN,
    calculate_pnl,
    calculate_potential_return,
    entry_basis_price,
)

VALID_STATUSES = (STATUS_OPEN, STATUS_CLOSED)
STATUS_ERROR_TYPE = "status_invalid"
STATUS_ERROR_MESSAGE = "Status must be either open or closed"

MAX_SYMBOL_LENGTH = 20
MAX_FOCUS_SYMBOL_LENGTH = 10
MAX_REASON_LENGTH = 200
MAX_NOTES_LENGTH = 500
# Keeps quantities inside a 64-bit column and P&L products finite.
MAX_PRICE = 1e12
MAX_QUANTITY = 10 ** 12


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


_DATETIME = TypeAdapter(datetime)


def _day_from_timestamp(value: Any) -> Any:
    # Trade dates often arrive as full ISO timestamps; keep the calendar day.
    if isinstance(value, str) and len(value.strip()) > 10:
        try:
            value = _DATETIME.validate_python(value.strip())
        except ValidationError:
            raise ValueError("Input should be a valid date") from None
    if isinstance(value, datetime):
        return _to_naive_utc(value).date()
    return value


def _parse_flag(value: Any) -> Any:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValueError("Input should be true or false")


Price = Annotated[float, Field(gt=0, le=MAX_PRICE, allow_inf_nan=False)]
TradeDay = Annotated[date, BeforeValidator(_day_from_timestamp)]
Timestamp = Annotated[datetime, AfterValidator(_to_naive_utc)]
Flag = Annotated[bool, BeforeValidator(_parse_flag)]
TradeSymbol = Annotated[
    str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=1, max_length=MAX_SYMBOL_LENGTH)
]
FocusSymbol = Annotated[
    str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=1, max_length=MAX_FOCUS_SYMBOL_LENGTH)
]


def _context_value(info: ValidationInfo, key: str) -> Any:
    return (info.context or {}).get(key)


def _today(info: ValidationInfo) -> date:
    return _context_value(info, "today") or date.today()


def _now(info: ValidationInfo) -> datetime:
    return _context_value(info, "now") or utc_now()


def _check_exit_date(value: date, info: ValidationInfo) -> date:
    if value > _today(info):
        raise ValueError("Exit date cannot be in the future")
    entry_date = info.data.get("entry_date") or _context_value(info, "entry_date")
    if entry_date is not None and value < entry_date:
        raise ValueError("Exit date must be on or after entry date")
    return value


class _TradeFields(BaseModel):
    model_config = ConfigDict(frozen=True, loc_by_alias=False)

    symbol: TradeSymbol = Field(validation_alias=AliasChoices("symbol", "stockName", "stock_name"))
    entry_price: Price = Field(validation_alias=AliasChoices("entry_price", "entryPrice"))
    entry_date: TradeDay = Field(validation_alias=AliasChoices("entry_date", "entryDate"))
    current_price: Price = Field(validation_alias=AliasChoices("current_price", "currentPrice"))
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)
    remarks: Annotated[str, StringConstraints(strip_whitespace=True, max_length=settings.MAX_REMARKS_LENGTH)] = ""
    is_team_trade: Flag = Field(default=False, validation_alias=AliasChoices("is_team_trade", "isTeamTrade"))
    status: str = STATUS_OPEN

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        if value is None:
            return STATUS_OPEN
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 1
        return value

    @field_validator("remarks", mode="before")
    @classmethod
    def default_remarks(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("entry_date")
    @classmethod
    def validate_entry_date(cls, value: date, info: ValidationInfo) -> date:
        if value > _today(info):
            raise ValueError("Entry date cannot be in the future")
        return value


class OpenEntry(_TradeFields):
    """A position still held; valued at its current price."""

    status: Literal["open"] = STATUS_OPEN

    @property
    def exit_price(self) -> None:
        return None

    @property
    def exit_date(self) -> None:
        return None


class ClosedEntry(_TradeFields):
    """A finished trade; exit price and date always travel together."""

    status: Literal["closed"]
    exit_price: Price = Field(validation_alias=AliasChoices("exit_price", "exitPrice"))
    exit_date: TradeDay = Field(validation_alias=AliasChoices("exit_date", "exitDate"))

    @field_validator("exit_date")
    @classmethod
    def validate_exit_date(cls, value: date, info: ValidationInfo) -> date:
        return _check_exit_date(value, info)


class TradeExit(BaseModel):
    """Exit data submitted when closing an open entry."""

    model_config = ConfigDict(loc_by_alias=False)

    exit_price: Price = Field(validation_alias=AliasChoices("exit_price", "exitPrice"))
    exit_date: TradeDay = Field(validation_alias=AliasChoices("exit_date", "exitDate"))

    @field_validator("exit_date")
    @classmethod
    def validate_exit_date(cls, value: date, info: ValidationInfo) -> date:
        return _check_exit_date(value, info)


def _trade_status(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        status = value.get("status")
        if status is None:
            return STATUS_OPEN
        return status.strip().lower() if isinstance(status, str) else str(status)
    return getattr(value, "status", None)


TradeInput = Annotated[
    Union[Annotated[OpenEntry, Tag(STATUS_OPEN)], Annotated[ClosedEntry, Tag(STATUS_CLOSED)]],
    Discriminator(
        _trade_status,
        custom_error_type=STATUS_ERROR_TYPE,
        custom_error_message=STATUS_ERROR_MESSAGE,
    ),
]

_TRADE = TypeAdapter(TradeInput)


class FocusStockInput(BaseModel):
    model_config = ConfigDict(frozen=True, loc_by_alias=False)

    symbol: FocusSymbol
    target_price: Price = Field(validation_alias=AliasChoices("target_price", "targetPrice"))
    current_price: Price = Field(validation_alias=AliasChoices("current_price", "currentPrice"))
    reason: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_REASON_LENGTH)]
    notes: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=MAX_NOTES_LENGTH)]] = None
    date_added: Optional[Timestamp] = Field(
        default=None, validate_default=True, validation_alias=AliasChoices("date_added", "dateAdded")
    )
    trade_taken: Flag = Field(default=False, validation_alias=AliasChoices("trade_taken", "tradeTaken"))
    trade_date: Optional[Timestamp] = Field(
        default=None, validate_default=True, validation_alias=AliasChoices("trade_date", "tradeDate")
    )

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date_added")
    @classmethod
    def default_date_added(cls, value: Optional[datetime], info: ValidationInfo) -> datetime:
        return value if value is not None else _now(info)

    @field_validator("trade_date")
    @classmethod
    def validate_trade_date(cls, value: Optional[datetime], info: ValidationInfo) -> Optional[datetime]:
        if not info.data.get("trade_taken"):
            return None
        if value is None:
            raise ValueError("Trade date is required when trade is taken")
        date_added = info.data.get("date_added")
        if date_added is not None and value.date() < date_added.date():
            raise ValueError("Trade date must be on or after date added")
        return value


class FocusTradeMark(BaseModel):
    """Toggle of a focus stock between taken and pending."""

    model_config = ConfigDict(loc_by_alias=False)

    trade_taken: Flag = Field(default=True, validation_alias=AliasChoices("trade_taken", "tradeTaken"))
    trade_date: Optional[Timestamp] = Field(
        default=None, validate_default=True, validation_alias=AliasChoices("trade_date", "tradeDate")
    )

    @field_validator("trade_date")
    @classmethod
    def validate_trade_date(cls, value: Optional[datetime], info: ValidationInfo) -> Optional[datetime]:
        if not info.data.get("trade_taken", True):
            return None
        value = value if value is not None else _now(info)
        date_added = _context_value(info, "date_added")
        if date_added is not None and value.date() < date_added.date():
            raise ValueError("Trade date must be on or after date added")
        return value


def ensure_finite_pnl(entry_price: float, basis_price: float, quantity: int, field: str = "entry_price"):
    """Reject price combinations whose P&L cannot be represented."""
    result = calculate_pnl(entry_price, basis_price, quantity)
    if not (math.isfinite(result.pnl) and math.isfinite(result.pnl_percentage)):
        value = entry_price if field == "entry_price" else basis_price
        raise EntryValidationError([FieldError(field, "Prices produce a P&L outside the supported range", value)])


def _trade_errors(error: ValidationError, payload: Dict[str, Any], context: Dict[str, Any]) -> List[FieldError]:
    if not any(item.get("type") == STATUS_ERROR_TYPE for item in error.errors()):
        # Union member errors are located under their tag, e.g. ("closed", "exit_price").
        return field_errors_from(error, loc_offset=1)

    errors = [FieldError("status", STATUS_ERROR_MESSAGE, payload.get("status"))]
    common = {key: value for key, value in payload.items() if key != "status"}
    try:
        OpenEntry.model_validate(common, context=context)
    except ValidationError as inner:
        errors.extend(field_errors_from(inner))
    return errors


def validate_entry(
    payload: Dict[str, Any],
    today: Optional[date] = None,
    current_status: Optional[str] = None,
) -> TradeInput:
    """
    Validate a journal entry submission

    Args:
        payload: Raw request body (snake_case or camelCase keys)
        today: Reference date for the "not in the future" rules
        current_status: Status of the stored entry when updating

    Returns:
        OpenEntry or ClosedEntry

    Raises:
        EntryValidationError with every violated rule
    """
    payload = dict(payload or {})
    context = {"today": today or date.today()}

    trade = None
    errors: List[FieldError] = []
    try:
        trade = _TRADE.validate_python(payload, context=context)
    except ValidationError as e:
        errors = _trade_errors(e, payload, context)

    status = trade.status if trade is not None else _trade_status(payload)
    if current_status == STATUS_CLOSED and status == STATUS_OPEN:
        errors.append(FieldError("status", "A closed entry cannot be reopened", payload.get("status")))

    if errors:
        raise EntryValidationError(errors)

    ensure_finite_pnl(
        trade.entry_price,
        entry_basis_price(trade.status, trade.current_price, trade.exit_price),
        trade.quantity,
    )
    return trade


def validate_close(payload: Dict[str, Any], entry_date: date, today: Optional[date] = None) -> Dict[str, Any]:
    """Validate the exit data needed to close an open entry."""
    context = {"today": today or date.today(), "entry_date": entry_date}
    try:
        exit_data = TradeExit.model_validate(dict(payload or {}), context=context)
    except ValidationError as e:
        raise EntryValidationError(field_errors_from(e))
    return exit_data.model_dump()


def validate_focus_stock(payload: Dict[str, Any], now: Optional[datetime] = None) -> FocusStockInput:
    """
    Validate a focus stock submission

    Raises:
        EntryValidationError with every violated rule
    """
    try:
        item = FocusStockInput.model_validate(dict(payload or {}), context={"now": now or utc_now()})
    except ValidationError as e:
        raise EntryValidationError(field_errors_from(e))

    result = calculate_potential_return(item.target_price, item.current_price)
    if not (math.isfinite(result.amount) and math.isfinite(result.percentage)):
        raise EntryValidationError([
            FieldError("current_price", "Prices produce a return outside the supported range", item.current_price)
        ])
    return item


def validate_mark_taken(
    payload: Optional[Dict[str, Any]],
    date_added: datetime,
    now: Optional[datetime] = None,
) -> FocusTradeMark:
    """Validate a taken/pending toggle; a taken stock defaults its trade date to now."""
    context = {"now": now or utc_now(), "date_added": date_added}
    try:
        return FocusTradeMark.model_validate(dict(payload or {}), context=context)
    except ValidationError as e:
        raise EntryValidationError(field_errors_from(e))
