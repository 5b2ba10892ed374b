"""
Field Decoder

Turns a record's keyword/value lines into typed values. Source data is
inconsistent about separators and number formats, so the helpers here are
deliberately forgiving where the data is, and strict everywhere else.
"""

import math
import re
from typing import List, Optional, Sequence, TypeVar

from rtwroster.parser.errors import DecodeError
from rtwroster.parser.records import Record


# Delimiter patterns for list-valued fields
COMMA = re.compile(r",")
OPT_COMMA = re.compile(r"[,\s]")       # comma or whitespace
TAB_OR_COMMA = re.compile(r"[,\t]")

T = TypeVar("T")


def split_list(text: Optional[str], pattern=COMMA) -> List[str]:
    """Split on ``pattern``, trim every item and drop empties."""
    if not text:
        return []
    return [item.strip() for item in pattern.split(text) if item.strip()]


def maybe_float_as_int(token: str) -> int:
    """
    Parse a non-negative integer that may be written as a float.

    The fractional part is discarded, not rounded: ``"3"`` and ``"3.7"`` both
    give 3.
    """
    token = token.strip()
    try:
        value = int(token)
    except ValueError:
        try:
            number = float(token)
        except ValueError:
            raise DecodeError(f"invalid number {token!r}") from None
        if not math.isfinite(number):
            raise DecodeError(f"invalid number {token!r}")
        value = int(number)
    if value < 0:
        raise DecodeError(f"expected a non-negative number, got {token!r}")
    return value


def parse_int(token: str, what: str = "integer") -> int:
    try:
        return int(token.strip())
    except ValueError:
        raise DecodeError(f"invalid {what} {token!r}") from None


def parse_float(token: str, what: str = "number") -> float:
    try:
        return float(token.strip())
    except ValueError:
        raise DecodeError(f"invalid {what} {token!r}") from None


def positional(values: Sequence[str], index: int, default: int = 0) -> int:
    """Integer at ``index``; missing or non-numeric entries read as ``default``."""
    if index >= len(values):
        return default
    try:
        return int(values[index])
    except ValueError:
        return default


def require_index(values: Sequence[T], index: int, what: str) -> T:
    """Item at ``index`` or a DecodeError naming the missing field."""
    if index >= len(values):
        raise DecodeError(f"missing {what} in {list(values)!r}")
    return values[index]


class FieldReader:
    """
    Typed access to the fields of one record.

    Usage:
        reader = FieldReader(record)
        unit_id = reader.require("type")
        cost = reader.require_split("stat_cost", COMMA)
    """

    def __init__(self, record: Record):
        self.record = record
        self.pairs = record.pairs
        self.entries = dict(self.pairs)

    def has(self, key: str) -> bool:
        return key in self.entries

    def get(self, key: str) -> Optional[str]:
        return self.entries.get(key)

    def require(self, key: str) -> str:
        value = self.entries.get(key)
        if value is None:
            raise DecodeError(f"{key} not found", self.record.header)
        return value

    def split(self, key: str, pattern=COMMA) -> List[str]:
        return split_list(self.get(key), pattern)

    def require_split(self, key: str, pattern=COMMA) -> List[str]:
        return split_list(self.require(key), pattern)

    def count(self, key: str) -> int:
        return sum(1 for k, _ in self.pairs if k == key)

    def values(self, key: str) -> List[Optional[str]]:
        return [v for k, v in self.pairs if k == key]

    def error(self, message: str) -> DecodeError:
        return DecodeError(message, self.record.header)
