"""
rtwroster.parser - Mod Data Parsers

Record extraction, field decoding and the requirement expression parser,
plus one decoder per source file format.
"""

from rtwroster.parser.errors import RosterError, ExtractionError, DecodeError, RequiresSyntaxError
from rtwroster.parser.records import (
    Line,
    Record,
    RecordSplitter,
    filter_lines,
    split_pair,
    split_records,
    extract_records,
    take_block,
    skip_block,
)
from rtwroster.parser.fields import (
    COMMA,
    OPT_COMMA,
    FieldReader,
    split_list,
    maybe_float_as_int,
    positional,
)
from rtwroster.parser.lexer import RequiresLexer, Token, TokenType
from rtwroster.parser.requires import RequiresParser, parse_requires

# Per-file decoders
from rtwroster.parser.units import parse_units
from rtwroster.parser.buildings import ParserMode, parse_buildings
from rtwroster.parser.factions import parse_factions
from rtwroster.parser.mercenaries import parse_mercenaries
from rtwroster.parser.regions import parse_regions
from rtwroster.parser.mounts import parse_mounts
from rtwroster.parser.battle_models import parse_battle_models
from rtwroster.parser.strat import parse_strat
from rtwroster.parser.text import parse_text, parse_strings_bin
from rtwroster.parser.sprites import parse_sprites

__all__ = [
    # Errors
    "RosterError",
    "ExtractionError",
    "DecodeError",
    "RequiresSyntaxError",
    # Records
    "Line",
    "Record",
    "RecordSplitter",
    "filter_lines",
    "split_pair",
    "split_records",
    "extract_records",
    "take_block",
    "skip_block",
    # Fields
    "COMMA",
    "OPT_COMMA",
    "FieldReader",
    "split_list",
    "maybe_float_as_int",
    "positional",
    # Requires
    "RequiresLexer",
    "Token",
    "TokenType",
    "RequiresParser",
    "parse_requires",
    # Decoders
    "ParserMode",
    "parse_units",
    "parse_buildings",
    "parse_factions",
    "parse_mercenaries",
    "parse_regions",
    "parse_mounts",
    "parse_battle_models",
    "parse_strat",
    "parse_text",
    "parse_strings_bin",
    "parse_sprites",
]
