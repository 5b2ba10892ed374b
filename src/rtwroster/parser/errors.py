"""
Error taxonomy for the parsing layer.

Every error carries the offending line/record/field in its message and is
chained (``raise ... from ...``) as it travels field -> record -> file.
"""

from typing import Optional


class RosterError(Exception):
    """Base class for every error raised while building a roster model."""


class ExtractionError(RosterError):
    """Malformed record boundaries or unbalanced braces."""
    def __init__(self, message: str, line: Optional[int] = None, text: Optional[str] = None):
        self.line = line
        self.text = text
        self.message = message
        if line is not None:
            super().__init__(f"Extraction error at line {line}: {message}" + (f" ({text!r})" if text else ""))
        else:
            super().__init__(f"Extraction error: {message}")


class DecodeError(RosterError):
    """A record's field is missing or fails its typed parse."""
    def __init__(self, message: str, record: Optional[str] = None):
        self.record = record
        self.message = message
        if record:
            super().__init__(f"{message} (in record {record!r})")
        else:
            super().__init__(message)


class RequiresSyntaxError(RosterError):
    """Requirement expression text does not match the predicate grammar."""
    def __init__(self, message: str, source: str = "", column: int = 0):
        self.source = source
        self.column = column
        self.message = message
        super().__init__(f"Requires syntax error at column {column}: {message} in {source!r}")
