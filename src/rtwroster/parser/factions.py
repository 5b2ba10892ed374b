"""
Faction list decoder (descr_sm_factions.txt).

The classic games use keyword records:

    faction          romans_julii
    culture          roman
    loading_logo     loading_screen/symbols/Symbol128_Julii.tga

Remastered ships a JSON-like file instead:

    factions:
    [
        romans_julii:
        {
            string: "romans_julii",
            culture: "roman",
            logos: { "loading screen icon": "loading_screen/symbols/Symbol128_Julii.tga", },
        },
    ]

which becomes JSON5 once its outer brackets are swapped for braces.
"""

from dataclasses import dataclass
from typing import List

import json5

from rtwroster.parser.buildings import ParserMode
from rtwroster.parser.errors import DecodeError
from rtwroster.parser.fields import FieldReader, split_list
from rtwroster.parser.records import Record, extract_records, filter_lines


@dataclass
class Faction:
    id: str
    name: str
    culture: str = ""
    logo: str = ""


def decode_faction(record: Record) -> Faction:
    reader = FieldReader(record)
    ids = split_list(reader.require("faction"))
    if not ids:
        raise reader.error("no faction name found")
    return Faction(
        id=ids[0],
        name=ids[0],
        culture=reader.get("culture") or "",
        logo=reader.get("loading_logo") or "",
    )


def _text_field(props: dict, key: str, faction_id: str) -> str:
    value = props.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"no {key!r} found", faction_id)
    return value


def parse_remastered_factions(text: str) -> List[Faction]:
    """Decode the Remastered factions file through JSON5."""
    body = "\n".join(line.text for line in filter_lines(text))
    start = body.find("[")
    end = body.rfind("]")
    if start < 0 or end < start:
        raise DecodeError("missing '[ ... ]' around the faction list")
    body = body[:start] + "{" + body[start + 1:end] + "}" + body[end + 1:]

    try:
        parsed = json5.loads("{" + body + "}")
    except ValueError as e:
        raise DecodeError(f"parsing factions as JSON5: {e}") from e

    factions = parsed.get("factions") if isinstance(parsed, dict) else None
    if not isinstance(factions, dict):
        raise DecodeError("missing 'factions' table")

    result = []
    for faction_id, props in factions.items():
        if not isinstance(props, dict):
            raise DecodeError("faction entry is not a table", faction_id)
        logos = props.get("logos")
        if not isinstance(logos, dict):
            raise DecodeError("no 'logos' found", faction_id)
        result.append(Faction(
            id=faction_id,
            name=_text_field(props, "string", faction_id),
            culture=_text_field(props, "culture", faction_id),
            logo=_text_field(logos, "loading screen icon", faction_id),
        ))
    return result


def parse_factions(text: str, mode: ParserMode = ParserMode.ORIGINAL) -> List[Faction]:
    if mode is ParserMode.REMASTERED:
        return parse_remastered_factions(text)
    return [decode_faction(record) for record in extract_records(text, ("faction",))]
