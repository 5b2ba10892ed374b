"""
Mercenary pool decoder (descr_mercenaries.txt).

    pool italy
        regions Etruria Latium Campania
        unit merc samnite infantry,    exp 1 cost 580 replenish 0.1 - 0.14 max 3 initial 1
        unit roman infantry auxillia,  exp 0 cost 720 replenish 0.08 - 0.12 max 2 initial 1 restrict romans_julii
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from rtwroster.parser.errors import DecodeError
from rtwroster.parser.fields import (
    OPT_COMMA,
    TAB_OR_COMMA,
    FieldReader,
    maybe_float_as_int,
    parse_float,
    require_index,
    split_list,
)
from rtwroster.parser.records import Record, extract_records


@dataclass
class PoolUnit:
    id: str
    exp: int
    cost: int
    replenish: Tuple[float, float]
    max: int
    initial: int
    restrict: List[str] = field(default_factory=list)


@dataclass
class Pool:
    id: str
    regions: List[str]
    units: List[PoolUnit]


def parse_pool_unit(text: str) -> PoolUnit:
    parts = TAB_OR_COMMA.split(text, 1)
    if len(parts) < 2 or not parts[1].strip():
        raise DecodeError(f"missing unit entry data in {text!r}")
    unit_id = parts[0].strip()
    data = parts[1].split()

    def number(index: int, what: str) -> int:
        return maybe_float_as_int(require_index(data, index, what))

    initial = require_index(data, 11, "pool initial")
    restrict = []
    if len(data) > 13 and data[12] == "restrict":
        restrict = split_list(" ".join(data[13:]), OPT_COMMA)

    return PoolUnit(
        id=unit_id,
        exp=number(1, "unit exp"),
        cost=number(3, "unit cost"),
        replenish=(
            parse_float(require_index(data, 5, "replenish lower bound"), "replenish lower bound"),
            parse_float(require_index(data, 7, "replenish upper bound"), "replenish upper bound"),
        ),
        max=number(9, "pool max"),
        initial=0 if initial == "end_year" else maybe_float_as_int(initial),
        restrict=restrict,
    )


def decode_pool(record: Record) -> Pool:
    reader = FieldReader(record)
    units = []
    for value in reader.values("unit"):
        if not value:
            raise reader.error("missing pool entry data")
        try:
            units.append(parse_pool_unit(value))
        except DecodeError as e:
            raise reader.error(f"parsing pool entry {value!r}: {e.message}") from e
    return Pool(
        id=reader.require("pool"),
        regions=reader.require_split("regions", OPT_COMMA),
        units=units,
    )


def parse_mercenaries(text: str, mode=None) -> List[Pool]:
    return [decode_pool(record) for record in extract_records(text, ("pool",))]
