"""Decoding of mmCIF cell values.

Every mmCIF cell is text. The single characters ``?`` (unknown) and ``.``
(inapplicable), as well as the empty string, mark an absent value. The
``as_optional_*`` helpers return None for those and raise
:class:`ParseError` when a present value cannot be decoded, leaving the
recovery policy to the caller.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

SENTINELS = frozenset(["?", ".", ""])

DEFAULT_DATE_FORMAT = "%Y-%m-%d"


class ParseError(ValueError):
    """A present mmCIF value could not be decoded to the requested type."""

    def __init__(self, value: str, target: str):
        super().__init__(f"Cannot parse {value!r} as {target}")
        self.value = value
        self.target = target


def is_sentinel(value: Optional[str]) -> bool:
    """Check whether a raw cell marks an absent value."""
    return value is None or value.strip() in SENTINELS


def as_optional_string(value: Optional[str]) -> Optional[str]:
    if is_sentinel(value):
        return None
    return value


def as_optional_int(value: Optional[str]) -> Optional[int]:
    if is_sentinel(value):
        return None
    try:
        return int(value.strip())
    except ValueError as e:
        raise ParseError(value, "int") from e


def as_optional_float(value: Optional[str]) -> Optional[float]:
    """Decode a single-precision field (occupancy, B-factor)."""
    if is_sentinel(value):
        return None
    try:
        return float(value.strip())
    except ValueError as e:
        raise ParseError(value, "float") from e


def as_optional_double(value: Optional[str]) -> Optional[float]:
    """Decode a double-precision field (coordinates, cell, matrices)."""
    if is_sentinel(value):
        return None
    try:
        return float(value.strip())
    except ValueError as e:
        raise ParseError(value, "double") from e


def as_optional_char(value: Optional[str]) -> Optional[str]:
    """Return the first character of a present cell."""
    if is_sentinel(value):
        return None
    return value[0]


def as_optional_date(
    value: Optional[str],
    fmt: str = DEFAULT_DATE_FORMAT,
) -> Optional[date]:
    """Decode a calendar date, by default in ``yyyy-MM-dd`` form."""
    if is_sentinel(value):
        return None
    try:
        return datetime.strptime(value.strip(), fmt).date()
    except ValueError as e:
        raise ParseError(value, f"date ({fmt})") from e
