"""
Requires Expression Parser

Parses the boolean predicate language that gates buildings and recruitment:

    requires factions { roman, } and building_present_min_level market forum
        and not major_event "marian_reforms"

into an Abstract Syntax Tree. The parser only builds the tree; aliases are
looked up and predicates judged by ``rtwroster.resolver.evaluator``.

Grammar:
    Expr    := Or
    Or      := And ("or" And)*
    And     := Not ("and" Not)*
    Not     := "not" Primary | Primary
    Primary := predicate | "(" Expr ")" | AliasName
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from rtwroster.parser.errors import DecodeError, RequiresSyntaxError
from rtwroster.parser.fields import maybe_float_as_int
from rtwroster.parser.lexer import COMPARISONS, RequiresLexer, Token, TokenType


class Cmp(Enum):
    """Comparison operators used by religion predicates."""
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


class DipStatus(Enum):
    """Diplomatic stance between the recruiting faction and another."""
    ALLIED = "allied"
    PROTECTOR = "protector"
    PROTECTORATE = "protectorate"
    SAME_SUPERFACTION = "same_superfaction"
    AT_WAR = "at_war"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, token: str) -> "DipStatus":
        for status in cls:
            if status.value == token:
                return status
        return cls.UNKNOWN


# =============================================================================
# AST NODES
# =============================================================================

@dataclass(frozen=True)
class RequiresNone:
    """No requirement at all; always satisfied."""


@dataclass(frozen=True)
class RequiresFalse:
    """Never satisfied."""


@dataclass(frozen=True)
class Unknown:
    """A clause we recognise but cannot judge."""
    text: str = ""


@dataclass(frozen=True)
class Resource:
    id: str
    factionwide: bool = False


@dataclass(frozen=True)
class HiddenResource:
    id: str
    factionwide: bool = False


@dataclass(frozen=True)
class BuildingPresent:
    id: str
    level: Optional[str] = None
    queued: bool = False
    factionwide: bool = False


@dataclass(frozen=True)
class MajorEvent:
    id: str


@dataclass(frozen=True)
class EventCount:
    event: str
    count: int


@dataclass(frozen=True)
class Factions:
    ids: Tuple[str, ...]


@dataclass(frozen=True)
class BuildingFactions:
    ids: Tuple[str, ...]


@dataclass(frozen=True)
class Diplomacy:
    status: DipStatus
    faction: str


@dataclass(frozen=True)
class Religion:
    id: str
    cmp: Cmp
    amount: int


@dataclass(frozen=True)
class MajorityReligion:
    id: str


@dataclass(frozen=True)
class OfficialReligion:
    pass


@dataclass(frozen=True)
class Capability:
    name: str
    amount: int


@dataclass(frozen=True)
class Port:
    pass


@dataclass(frozen=True)
class IsPlayer:
    pass


@dataclass(frozen=True)
class IsToggled:
    id: str


@dataclass(frozen=True)
class NoBuildingTagged:
    tag: str
    queued: bool = False
    factionwide: bool = False


@dataclass(frozen=True)
class Alias:
    name: str


@dataclass(frozen=True)
class Not:
    item: "Requires"


@dataclass(frozen=True)
class And:
    items: Tuple["Requires", ...] = ()

    def __init__(self, items=()):
        object.__setattr__(self, "items", tuple(items))


@dataclass(frozen=True)
class Or:
    items: Tuple["Requires", ...] = ()

    def __init__(self, items=()):
        object.__setattr__(self, "items", tuple(items))


Requires = Union[
    RequiresNone, RequiresFalse, Unknown, Resource, HiddenResource,
    BuildingPresent, MajorEvent, EventCount, Factions, BuildingFactions,
    Diplomacy, Religion, MajorityReligion, OfficialReligion, Capability,
    Port, IsPlayer, IsToggled, NoBuildingTagged, Alias, Not, And, Or,
]


# =============================================================================
# PARSER
# =============================================================================

# Conditions that exist in the game but carry nothing we can judge.
# Their arguments are swallowed up to the next boolean operator.
UNKNOWN_CONDITIONS = frozenset({
    "num_settlements",
    "is_capital",
    "settlement_population",
    "governor_trait",
    "faction_leader_trait",
    "agent_present",
    "has_guild",
})

BOOLEAN_WORDS = frozenset({"and", "or", "not"})


class RequiresParser:
    """
    Recursive descent parser for requirement expressions.

    Usage:
        parser = RequiresParser(tokens, source)
        node = parser.parse()
    """

    def __init__(self, tokens: List[Token], source: str = ""):
        self.tokens = tokens
        self.source = source
        self.pos = 0

    def _current(self) -> Token:
        return self.tokens[min(self.pos, len(self.tokens) - 1)]

    def _advance(self) -> Token:
        token = self._current()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _error(self, message: str, token: Optional[Token] = None) -> RequiresSyntaxError:
        token = token or self._current()
        return RequiresSyntaxError(message, self.source, token.column)

    def _expect(self, token_type: TokenType, what: str) -> Token:
        token = self._current()
        if token.type != token_type:
            got = token.value or token.type.name
            raise self._error(f"Expected {what}, got {got!r}", token)
        return self._advance()

    def _is_word(self, word: str) -> bool:
        token = self._current()
        return token.type == TokenType.IDENTIFIER and token.value == word

    def _identifier(self, what: str) -> str:
        return self._expect(TokenType.IDENTIFIER, what).value

    def _name(self, what: str) -> str:
        """An identifier or quoted string."""
        token = self._current()
        if token.type in (TokenType.IDENTIFIER, TokenType.STRING):
            return self._advance().value
        raise self._error(f"Expected {what}, got {token.value or token.type.name!r}", token)

    def _amount(self, what: str) -> int:
        token = self._expect(TokenType.NUMBER, what)
        try:
            return maybe_float_as_int(token.value)
        except DecodeError as e:
            raise self._error(str(e), token) from e

    def _flags(self, *names: str) -> dict:
        found = {name: False for name in names}
        while self._current().type == TokenType.IDENTIFIER and self._current().value in found:
            found[self._advance().value] = True
        return found

    def parse(self) -> Requires:
        """Parse the whole token stream into a single tree."""
        if self._is_word("requires"):
            self._advance()
        if self._current().type == TokenType.EOF:
            return RequiresNone()
        node = self._parse_or()
        if self._current().type != TokenType.EOF:
            raise self._error(f"Unexpected {self._current().value!r}")
        return node

    def _parse_or(self) -> Requires:
        items = [self._parse_and()]
        while self._is_word("or"):
            self._advance()
            items.append(self._parse_and())
        return items[0] if len(items) == 1 else Or(items)

    def _parse_and(self) -> Requires:
        items = [self._parse_not()]
        while self._is_word("and"):
            self._advance()
            items.append(self._parse_not())
        return items[0] if len(items) == 1 else And(items)

    def _parse_not(self) -> Requires:
        if self._is_word("not"):
            self._advance()
            return Not(self._parse_primary())
        return self._parse_primary()

    def _parse_list(self) -> Tuple[str, ...]:
        self._expect(TokenType.LBRACE, "'{'")
        ids = []
        while True:
            token = self._current()
            if token.type == TokenType.RBRACE:
                self._advance()
                return tuple(ids)
            if token.type == TokenType.COMMA:
                self._advance()
            elif token.type == TokenType.IDENTIFIER:
                ids.append(self._advance().value)
            else:
                raise self._error(f"Expected faction id or '}}', got {token.value or token.type.name!r}", token)

    def _parse_primary(self) -> Requires:
        token = self._current()
        if token.type == TokenType.LPAREN:
            self._advance()
            node = self._parse_or()
            self._expect(TokenType.RPAREN, "')'")
            return node
        if token.type != TokenType.IDENTIFIER:
            raise self._error(f"Expected condition, got {token.value or token.type.name!r}", token)
        if token.value in BOOLEAN_WORDS:
            raise self._error(f"Expected condition, got {token.value!r}", token)

        keyword = self._advance().value
        handler = PREDICATES.get(keyword)
        # A keyword that needs arguments but has none is an alias of that name
        if handler is not None and (keyword in NULLARY_PREDICATES or not self._at_clause_end()):
            return handler(self)
        if keyword in UNKNOWN_CONDITIONS:
            return self._swallow_unknown(keyword)
        return Alias(keyword)

    def _at_clause_end(self) -> bool:
        token = self._current()
        if token.type in (TokenType.EOF, TokenType.RPAREN):
            return True
        return token.type == TokenType.IDENTIFIER and token.value in BOOLEAN_WORDS

    # --- predicate forms ----------------------------------------------------

    def _cond_factions(self) -> Requires:
        return Factions(self._parse_list())

    def _cond_building_factions(self) -> Requires:
        return BuildingFactions(self._parse_list())

    def _cond_resource(self) -> Requires:
        name = self._identifier("resource id")
        return Resource(name, **self._flags("factionwide"))

    def _cond_hidden_resource(self) -> Requires:
        name = self._identifier("hidden resource id")
        return HiddenResource(name, **self._flags("factionwide"))

    def _cond_building_present(self) -> Requires:
        name = self._identifier("building id")
        return BuildingPresent(name, None, **self._flags("queued", "factionwide"))

    def _cond_building_present_min_level(self) -> Requires:
        name = self._identifier("building id")
        level = self._identifier("building level")
        return BuildingPresent(name, level, **self._flags("queued", "factionwide"))

    def _cond_no_building_tagged(self) -> Requires:
        tag = self._identifier("building tag")
        return NoBuildingTagged(tag, **self._flags("queued", "factionwide"))

    def _cond_major_event(self) -> Requires:
        return MajorEvent(self._name("event name"))

    def _cond_event_counter(self) -> Requires:
        event = self._name("event name")
        return EventCount(event, self._amount("event count"))

    def _cond_is_toggled(self) -> Requires:
        return IsToggled(self._name("toggle name"))

    def _cond_port(self) -> Requires:
        return Port()

    def _cond_is_player(self) -> Requires:
        return IsPlayer()

    def _cond_official_religion(self) -> Requires:
        return OfficialReligion()

    def _cond_majority_religion(self) -> Requires:
        return MajorityReligion(self._identifier("religion id"))

    def _cond_religion(self) -> Requires:
        name = self._identifier("religion id")
        token = self._current()
        if token.type not in COMPARISONS:
            raise self._error(f"Expected comparison, got {token.value or token.type.name!r}", token)
        cmp = Cmp(self._advance().value)
        return Religion(name, cmp, self._amount("religion amount"))

    def _cond_region_religion(self) -> Requires:
        name = self._identifier("religion id")
        return Religion(name, Cmp.GE, self._amount("religion amount"))

    def _cond_diplomatic_stance(self) -> Requires:
        first = self._identifier("diplomatic status")
        second = self._identifier("faction id")
        # Both "stance faction" and "faction stance" orders appear in mods
        if DipStatus.parse(first) is DipStatus.UNKNOWN and DipStatus.parse(second) is not DipStatus.UNKNOWN:
            first, second = second, first
        return Diplomacy(DipStatus.parse(first), second)

    def _cond_capability(self) -> Requires:
        name = self._identifier("capability name")
        return Capability(name, self._amount("capability amount"))

    def _swallow_unknown(self, keyword: str) -> Requires:
        words = [keyword]
        while True:
            token = self._current()
            if token.type in (TokenType.EOF, TokenType.RPAREN):
                break
            if token.type == TokenType.IDENTIFIER and token.value in ("and", "or"):
                break
            words.append(self._advance().value)
        return Unknown(" ".join(words))


PREDICATES = {
    "factions": RequiresParser._cond_factions,
    "building_factions": RequiresParser._cond_building_factions,
    "resource": RequiresParser._cond_resource,
    "hidden_resource": RequiresParser._cond_hidden_resource,
    "building_present": RequiresParser._cond_building_present,
    "building_present_min_level": RequiresParser._cond_building_present_min_level,
    "no_building_tagged": RequiresParser._cond_no_building_tagged,
    "major_event": RequiresParser._cond_major_event,
    "event_counter": RequiresParser._cond_event_counter,
    "is_toggled": RequiresParser._cond_is_toggled,
    "port": RequiresParser._cond_port,
    "is_player": RequiresParser._cond_is_player,
    "official_religion": RequiresParser._cond_official_religion,
    "majority_religion": RequiresParser._cond_majority_religion,
    "religion": RequiresParser._cond_religion,
    "region_religion": RequiresParser._cond_region_religion,
    "diplomatic_stance": RequiresParser._cond_diplomatic_stance,
    "diplomacy": RequiresParser._cond_diplomatic_stance,
    "capability": RequiresParser._cond_capability,
}

NULLARY_PREDICATES = frozenset({"port", "is_player", "official_religion"})


def parse_requires(text: Optional[str]) -> Requires:
    """
    Parse requirement text, with or without the leading ``requires`` keyword.

    Empty text yields ``RequiresNone``.
    """
    if text is None or not text.strip():
        return RequiresNone()
    tokens = RequiresLexer(text).tokenize_all()
    return RequiresParser(tokens, text).parse()
