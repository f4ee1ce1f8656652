"""
Domain exceptions raised by the journal services.

Every exception here is recoverable at the request boundary; ``main.py``
translates them into the JSON response envelope.
"""
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from pydantic import ValidationError


@dataclass(frozen=True)
class FieldError:
    """A single violated rule, tagged with the offending field."""
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        value = data["value"]
        if isinstance(value, float) and not math.isfinite(value):
            data["value"] = str(value)
        elif value is not None and not isinstance(value, (str, int, float, bool)):
            data["value"] = str(value)
        return data


def field_errors_from(error: ValidationError, loc_offset: int = 0) -> List[FieldError]:
    """Convert a pydantic ValidationError into the API's field error list."""
    errors = []
    for item in error.errors():
        loc = tuple(item.get("loc", ()))[loc_offset:]
        field = ".".join(str(part) for part in loc) or "body"
        message = str(item.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        # A missing field reports its parent object as the input.
        value = None if item.get("type") == "missing" else item.get("input")
        errors.append(FieldError(field=field, message=message, value=value))
    return errors


class StockNoteError(Exception):
    """Base class for all journal errors."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class EntryValidationError(StockNoteError):
    """Raised with every violated validation rule of a submission."""

    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: List[FieldError], message: str = None):
        super().__init__(message)
        self.errors = list(errors)

    @property
    def fields(self) -> List[str]:
        return [error.field for error in self.errors]


class NotFoundError(StockNoteError):
    """Record missing or owned by someone else; the two cases are indistinguishable."""

    status_code = 404
    message = "Record not found"


class PersistenceError(StockNoteError):
    """Storage rejected a write (integrity violation, malformed identifier)."""

    status_code = 400
    message = "Could not save record"


class DuplicateRecordError(PersistenceError):
    status_code = 409
    message = "Record already exists"
