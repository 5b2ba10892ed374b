"""
Building list decoder (export_descr_buildings.txt).

Reads requirement aliases and every building level together with the units
its ``capability`` block can recruit:

    alias marian_reforms
    {
        requires major_event "marian_reforms"
    }

    building barracks
    {
        levels militia_barracks city_barracks
        {
            militia_barracks requires factions { barbarian, }
            {
                capability
                {
                    recruit "barb infantry briton" 0 requires factions { britons, }
                }
                settlement_min town
            }
        }
    }

Everything else in the file (tags, plugins, construction costs, upgrade
lists) is skipped.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Tuple

from rtwroster.parser.errors import DecodeError, ExtractionError, RequiresSyntaxError
from rtwroster.parser.fields import maybe_float_as_int
from rtwroster.parser.records import (
    OPEN_BRACE, Line, brace_delta, filter_lines, skip_block, split_pair, take_block,
)
from rtwroster.parser.requires import MajorEvent, Requires, RequiresNone, parse_requires


class ParserMode(Enum):
    """Which game's dialect the source files are written in."""
    ORIGINAL = "original"
    REMASTERED = "remastered"
    MEDIEVAL2 = "medieval2"


@dataclass
class RecruitOption:
    unit: str
    exp: int
    requires: Requires = field(default_factory=RequiresNone)


@dataclass
class Building:
    """One building level."""
    name: str
    requires: Requires = field(default_factory=RequiresNone)
    recruits: List[RecruitOption] = field(default_factory=list)
    settlement_min: str = "village"


def _requires(text, line: Line) -> Requires:
    try:
        return parse_requires(text)
    except RequiresSyntaxError as e:
        raise DecodeError(f"parsing requirement at line {line.number}: {e}") from e


def parse_alias(lines: Iterator[Line], header: Line) -> Tuple[str, Requires]:
    parts = header.text.split()
    if len(parts) < 2:
        raise ExtractionError("missing alias name", header.number, header.text)
    name = parts[1]
    for line in take_block(lines, context=header):
        if split_pair(line.text)[0] == "requires":
            return name, _requires(line.text, line)
    raise DecodeError("missing requires line", header.text)


def parse_recruit(line: Line, mode: ParserMode):
    """Decode one ``recruit`` (or Medieval II ``recruit_pool``) line, or None."""
    keyword, rest = split_pair(line.text)
    if keyword != "recruit" and (mode is not ParserMode.MEDIEVAL2 or keyword != "recruit_pool"):
        return None
    if not rest or not rest.startswith('"'):
        raise DecodeError("missing quotes around unit", line.text)
    end = rest.find('"', 1)
    if end < 0:
        raise DecodeError("missing quotes around unit", line.text)
    unit = rest[1:end].strip()
    words = rest[end + 1:].split()

    if keyword == "recruit_pool":
        # initial pool, replenish rate, max pool
        if len(words) < 3:
            raise DecodeError("missing recruit pool data", line.text)
        words = words[3:]
    if not words:
        raise DecodeError("missing exp", line.text)
    try:
        exp = maybe_float_as_int(words[0])
    except DecodeError as e:
        raise DecodeError(f"parsing exp: {e.message}", line.text) from e
    return RecruitOption(unit, exp, _requires(" ".join(words[1:]), line))


def parse_capabilities(lines: Iterator[Line], header: Line, mode: ParserMode) -> List[RecruitOption]:
    options = []
    for line in take_block(lines, context=header):
        if not line.text.startswith("recruit"):
            continue
        option = parse_recruit(line, mode)
        if option is not None:
            options.append(option)
    return options


def parse_level(lines: Iterator[Line], header: Line, mode: ParserMode) -> Building:
    words = header.text.split(None, 1)
    name = words[0]
    rest = words[1] if len(words) > 1 else ""
    if mode is ParserMode.MEDIEVAL2:
        head, _, tail = rest.partition(" ")
        if head in ("city", "castle"):
            rest = tail
    building = Building(name, _requires(rest, header))

    block = iter(take_block(lines, context=header))
    for line in block:
        keyword, value = split_pair(line.text)
        if keyword == "capability":
            building.recruits = parse_capabilities(block, line, mode)
        elif keyword == "settlement_min":
            if not value:
                raise DecodeError("missing settlement_min", header.text)
            building.settlement_min = value.split()[0]
    return building


def parse_levels(lines: Iterator[Line], header: Line, mode: ParserMode) -> List[Building]:
    names = header.text.split()[1:]
    levels = []
    block = iter(take_block(lines, context=header))
    for line in block:
        if line.text.split()[0] not in names:
            raise ExtractionError("unexpected line in levels", line.number, line.text)
        try:
            levels.append(parse_level(block, line, mode))
        except DecodeError as e:
            raise DecodeError(f"parsing level {line.text!r}: {e}") from e
    return levels


def parse_buildings(text: str, mode: ParserMode = ParserMode.ORIGINAL) -> Tuple[Dict[str, Requires], List[Building]]:
    """
    Decode aliases and building levels.

    Returns:
        (aliases, buildings). For the original and remastered games the
        alias table is seeded with ``marian_reforms``; file definitions
        replace the seed.
    """
    aliases: Dict[str, Requires] = {}
    if mode in (ParserMode.ORIGINAL, ParserMode.REMASTERED):
        aliases["marian_reforms"] = MajorEvent("marian_reforms")

    buildings: List[Building] = []
    # Depth of the enclosing "building" blocks; nested blocks are consumed whole
    depth = 0
    opened_at = None
    lines = iter(filter_lines(text))
    for line in lines:
        keyword = split_pair(line.text)[0]
        if keyword == "alias":
            name, requires = parse_alias(lines, line)
            aliases[name] = requires
        elif keyword == "levels":
            buildings.extend(parse_levels(lines, line, mode))
        elif keyword == "tags" and "{" not in line.text:
            skip_block(lines, context=line)
        else:
            if depth == 0 and OPEN_BRACE in line.text:
                opened_at = line
            depth += brace_delta(line.text)
            if depth < 0:
                raise ExtractionError("unexpected closing brace", line.number, line.text)
    if depth != 0:
        raise ExtractionError(
            "missing closing brace",
            opened_at.number if opened_at else None,
            opened_at.text if opened_at else None,
        )
    return aliases, buildings
