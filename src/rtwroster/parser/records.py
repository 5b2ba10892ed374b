"""
Record Extractor

Splits raw data file text into logical records:

    type             roman_hastati        <- start keyword opens a record
    dictionary       roman_hastati
    category         infantry
    ...

Comments run from any comment marker to the end of the line. Lines are
trimmed and empty lines dropped before records are formed. Nested
``{ ... }`` blocks are tracked with a brace-depth counter.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from rtwroster.parser.errors import ExtractionError


OPEN_BRACE = "{"
CLOSE_BRACE = "}"


@dataclass(frozen=True)
class Line:
    """A surviving source line with its 1-based physical line number."""
    number: int
    text: str

    def __repr__(self):
        return f"Line(L{self.number}, {self.text!r})"


def strip_comment(text: str, comment_chars: str = ";") -> str:
    """Cut ``text`` at the first comment marker."""
    for i, ch in enumerate(text):
        if ch in comment_chars:
            return text[:i]
    return text


def filter_lines(text: str, comment_chars: str = ";", trim: bool = True) -> List[Line]:
    """
    Strip comments and drop empty lines.

    Args:
        text: Whole file contents
        comment_chars: Every character that starts an end-of-line comment
        trim: Trim surrounding whitespace (regions need the indentation)
    """
    result = []
    for number, raw in enumerate(text.splitlines(), 1):
        stripped = strip_comment(raw, comment_chars)
        if not stripped.strip():
            continue
        result.append(Line(number, stripped.strip() if trim else stripped.rstrip()))
    return result


def split_pair(text: str) -> Tuple[str, Optional[str]]:
    """Split a line on its first whitespace run into (keyword, value)."""
    parts = text.split(None, 1)
    if not parts:
        raise ExtractionError("line didn't start with keyword", text=text)
    if len(parts) == 1:
        return parts[0], None
    value = parts[1].strip()
    return parts[0], value or None


def brace_delta(text: str) -> int:
    """Net change in brace depth caused by one line."""
    return text.count(OPEN_BRACE) - text.count(CLOSE_BRACE)


@dataclass
class Record:
    """One logical block of source lines."""
    lines: List[Line] = field(default_factory=list)

    @property
    def header(self) -> str:
        return self.lines[0].text if self.lines else ""

    @property
    def start_line(self) -> int:
        return self.lines[0].number if self.lines else 0

    @property
    def keyword(self) -> str:
        return split_pair(self.header)[0] if self.lines else ""

    @property
    def pairs(self) -> List[Tuple[str, Optional[str]]]:
        """Every (keyword, value) pair in source order, duplicates kept."""
        return [split_pair(line.text) for line in self.lines]

    @property
    def fields(self) -> dict:
        """Keyword -> value mapping; the last occurrence of a keyword wins."""
        return dict(self.pairs)

    def count(self, keyword: str) -> int:
        return sum(1 for k, _ in self.pairs if k == keyword)

    def values(self, keyword: str) -> List[Optional[str]]:
        return [v for k, v in self.pairs if k == keyword]

    def __repr__(self):
        return f"Record(L{self.start_line}, {self.header!r}, {len(self.lines)} lines)"


StartRule = Union[Sequence[str], Callable[[Line], bool]]


def _start_predicate(starts_record: StartRule) -> Callable[[Line], bool]:
    if callable(starts_record):
        return starts_record
    keywords = tuple(starts_record)
    return lambda line: line.text.startswith(keywords)


class RecordSplitter:
    """
    State machine folding filtered lines into records.

    Usage:
        splitter = RecordSplitter(("type",))
        for line in lines:
            splitter.feed(line)
        records = splitter.finish()
    """

    def __init__(self, starts_record: StartRule):
        self._starts = _start_predicate(starts_record)
        self._records: List[Record] = []
        self._current: Optional[Record] = None
        self._depth = 0
        self._opened_at: Optional[Line] = None

    def feed(self, line: Line) -> None:
        if self._depth == 0 and self._starts(line):
            if self._current is not None:
                self._records.append(self._current)
            self._current = Record([line])
        elif self._current is None:
            raise ExtractionError("unexpected line before first record", line.number, line.text)
        else:
            self._current.lines.append(line)

        if self._depth == 0 and OPEN_BRACE in line.text:
            self._opened_at = line
        self._depth += brace_delta(line.text)
        if self._depth < 0:
            raise ExtractionError("unexpected closing brace", line.number, line.text)

    def finish(self) -> List[Record]:
        if self._depth != 0:
            opened = self._opened_at
            raise ExtractionError(
                "missing closing brace",
                opened.number if opened else None,
                opened.text if opened else None,
            )
        if self._current is not None:
            self._records.append(self._current)
            self._current = None
        return self._records


def split_records(lines: Iterable[Line], starts_record: StartRule) -> List[Record]:
    """Group lines into records, a record starting at each start line."""
    splitter = RecordSplitter(starts_record)
    for line in lines:
        splitter.feed(line)
    return splitter.finish()


def extract_records(text: str, starts_record: StartRule, comment_chars: str = ";") -> List[Record]:
    """Filter and split a whole file in one go."""
    return split_records(filter_lines(text, comment_chars), starts_record)


def _read_block(lines: Iterator[Line], context: Optional[Line], keep: bool) -> List[Line]:
    opener = next(lines, None)
    if opener is None:
        where = context.number if context else None
        raise ExtractionError("expected '{' but reached end of input", where, context.text if context else None)
    if not opener.text.startswith(OPEN_BRACE):
        raise ExtractionError("expected '{'", opener.number, opener.text)

    block: List[Line] = []
    depth = brace_delta(opener.text)
    rest = opener.text[1:].strip()
    if depth == 0:
        # "{ ... }" on a single line
        inner = rest[:-1].strip() if rest.endswith(CLOSE_BRACE) else rest
        if keep and inner:
            block.append(Line(opener.number, inner))
        return block
    if keep and rest:
        block.append(Line(opener.number, rest))

    for line in lines:
        depth += brace_delta(line.text)
        if depth < 0:
            raise ExtractionError("unexpected closing brace", line.number, line.text)
        if depth == 0:
            inner = line.text[:-1].strip() if line.text.endswith(CLOSE_BRACE) else line.text
            if keep and inner:
                block.append(Line(line.number, inner))
            return block
        if keep:
            block.append(line)

    raise ExtractionError("missing closing brace", opener.number, (context or opener).text)


def take_block(lines: Iterator[Line], context: Optional[Line] = None) -> List[Line]:
    """
    Consume one ``{ ... }`` block from ``lines``.

    The next line must open the block. Returns the inner lines; the outer
    braces are not included.
    """
    return _read_block(lines, context, keep=True)


def skip_block(lines: Iterator[Line], context: Optional[Line] = None) -> None:
    """Consume and discard one ``{ ... }`` block."""
    _read_block(lines, context, keep=False)
