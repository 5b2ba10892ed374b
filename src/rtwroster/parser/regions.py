"""
Region list decoder (descr_regions.txt).

Records are positional: an unindented line starts a region and the
indented lines after it are, in order, settlement, creator faction, rebel
faction, map colour, hidden resources and so on. An optional
``legion: name`` line may appear anywhere in the record.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from rtwroster.parser.errors import DecodeError
from rtwroster.parser.fields import OPT_COMMA, parse_int, require_index, split_list
from rtwroster.parser.records import Line, Record, filter_lines, split_records


@dataclass
class Region:
    id: str
    city: str
    color: Tuple[int, int, int]
    hidden_resources: List[str] = field(default_factory=list)
    legion: Optional[str] = None


def _starts_region(line: Line) -> bool:
    return not line.text[:1].isspace()


def decode_region(record: Record) -> Region:
    legion = None
    rows = []
    for line in record.lines:
        text = line.text.strip()
        if text.startswith("legion:"):
            legion = text[len("legion:"):].strip() or None
        else:
            rows.append(text)

    try:
        color = [parse_int(c, "color") for c in require_index(rows, 4, "color line").split()]
        if len(color) < 3:
            raise DecodeError(f"incomplete color {rows[4]!r}")
        return Region(
            id=require_index(rows, 0, "id line"),
            city=require_index(rows, 1, "city line"),
            color=(color[0], color[1], color[2]),
            hidden_resources=[
                r for r in split_list(require_index(rows, 5, "hidden resources line"), OPT_COMMA)
                if r != "none"
            ],
            legion=legion,
        )
    except DecodeError as e:
        raise DecodeError(e.message, record.header) from e


def parse_regions(text: str, mode=None) -> List[Region]:
    lines = filter_lines(text, trim=False)
    return [decode_region(record) for record in split_records(lines, _starts_region)]
