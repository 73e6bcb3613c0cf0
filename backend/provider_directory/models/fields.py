"""
Value objects for the JSON sub-documents stored in text columns.

Two entry points per type:
- decode(): tolerant, used on every read of stored data. Malformed JSON or a
  wrong container type yields the empty default and a logged warning.
- parse(): strict, used on caller input. Anything malformed raises InvalidInput.
"""
import json
import logging
from typing import Any, Optional

from provider_directory.core.errors import InvalidInput

logger = logging.getLogger(__name__)


def decode_or_default(raw: Any, expected: type, label: str, record_id: Optional[str] = None) -> Any:
    """
    Decode stored JSON text into an instance of `expected` (list or dict).

    Never raises: on any decode failure or shape mismatch an empty `expected()`
    is returned. Stored values already decoded by the driver are accepted as-is.
    """
    if raw is None or raw == "":
        return expected()
    value = raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Invalid {label} JSON for record {record_id}, using empty default: {e}")
            return expected()
    if not isinstance(value, expected):
        logger.warning(f"Invalid {label} format for record {record_id}, using empty default")
        return expected()
    return value


def _load_input(raw: Any, label: str) -> Any:
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            return json.loads(raw)
        except ValueError:
            raise InvalidInput(f"Invalid {label} format")
    return raw


class ImageList:
    """Ordered sequence of image paths/URLs."""

    def __init__(self, paths: Optional[list[str]] = None):
        self.paths = list(paths or [])

    @classmethod
    def decode(cls, raw: Any, record_id: Optional[str] = None) -> "ImageList":
        items = decode_or_default(raw, list, "images", record_id)
        paths = [item for item in items if isinstance(item, str)]
        if len(paths) != len(items):
            logger.warning(f"Dropped non-string image entries for record {record_id}")
        return cls(paths)

    @classmethod
    def parse(cls, raw: Any) -> "ImageList":
        value = _load_input(raw, "existingImages")
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise InvalidInput("Invalid existingImages format")
        return cls(value)

    def extend(self, paths: list[str]) -> "ImageList":
        return ImageList(self.paths + list(paths))

    def encode(self) -> str:
        return json.dumps(self.paths)

    def __iter__(self):
        return iter(self.paths)

    def __eq__(self, other):
        if isinstance(other, ImageList):
            return self.paths == other.paths
        return self.paths == other


class OpeningHours:
    """Weekday name -> {"open": "HH:MM" | None, "close": "HH:MM" | None}."""

    def __init__(self, days: Optional[dict[str, Any]] = None):
        self.days = dict(days or {})

    @classmethod
    def decode(cls, raw: Any, record_id: Optional[str] = None) -> "OpeningHours":
        return cls(decode_or_default(raw, dict, "opening_hours", record_id))

    @classmethod
    def parse(cls, raw: Any) -> "OpeningHours":
        value = _load_input(raw, "openingHours")
        if not isinstance(value, dict):
            raise InvalidInput("Invalid openingHours format")
        days = {}
        for day, hours in value.items():
            if not isinstance(hours, dict):
                raise InvalidInput(f"Invalid openingHours format for {day}")
            slot = {}
            for key in ("open", "close"):
                time_of_day = hours.get(key)
                if time_of_day is not None and not isinstance(time_of_day, str):
                    raise InvalidInput(f"Invalid openingHours format for {day}")
                # Empty string from a cleared form input means closed
                slot[key] = time_of_day or None
            days[day] = slot
        return cls(days)

    def encode(self) -> str:
        return json.dumps(self.days)

    def __eq__(self, other):
        if isinstance(other, OpeningHours):
            return self.days == other.days
        return self.days == other
