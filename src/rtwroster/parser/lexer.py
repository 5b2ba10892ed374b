"""
Requires Expression Lexer (Tokenizer)

Converts the text of a ``requires`` clause into a stream of tokens.
Handles: identifiers, quoted strings, numbers, braces, parentheses,
commas and comparison operators.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional

from rtwroster.parser.errors import RequiresSyntaxError


class TokenType(Enum):
    """Types of tokens in a requirement expression."""
    IDENTIFIER = auto()      # factions, roman, marian_reforms
    STRING = auto()          # "marian_reforms"
    NUMBER = auto()          # 2, 0.5
    LBRACE = auto()          # {
    RBRACE = auto()          # }
    LPAREN = auto()          # (
    RPAREN = auto()          # )
    COMMA = auto()           # ,
    LESS_THAN = auto()       # <
    LESS_EQUAL = auto()      # <=
    GREATER_THAN = auto()    # >
    GREATER_EQUAL = auto()   # >=
    EOF = auto()             # End of input


COMPARISONS = (
    TokenType.LESS_THAN,
    TokenType.LESS_EQUAL,
    TokenType.GREATER_THAN,
    TokenType.GREATER_EQUAL,
)


@dataclass
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: str
    column: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, C{self.column})"


class RequiresLexer:
    """
    Tokenizer for requirement expressions.

    Usage:
        lexer = RequiresLexer('factions { roman, } and not port')
        tokens = lexer.tokenize_all()
    """

    # Faction and unit ids carry apostrophes, plus and minus signs
    IDENT_SPECIAL = set("_'+-")

    @staticmethod
    def _is_ident_start(ch: str) -> bool:
        return ch == '_' or ch.isalpha()

    @staticmethod
    def _is_ident_cont(ch: str) -> bool:
        return ch.isalnum() or ch in RequiresLexer.IDENT_SPECIAL

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.length = len(source)

    def _current(self) -> Optional[str]:
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _error(self, message: str, column: int) -> RequiresSyntaxError:
        return RequiresSyntaxError(message, self.source, column)

    def _read_while(self, predicate) -> str:
        start = self.pos
        while self.pos < self.length and predicate(self.source[self.pos]):
            self.pos += 1
        return self.source[start:self.pos]

    def _read_string(self) -> str:
        start = self.pos
        self.pos += 1  # opening quote
        end = self.source.find('"', self.pos)
        if end < 0:
            raise self._error("Unterminated string", start + 1)
        value = self.source[self.pos:end]
        self.pos = end + 1
        return value

    def _read_number(self) -> str:
        has_dot = False
        start = self.pos
        while self.pos < self.length:
            ch = self.source[self.pos]
            if ch.isdigit():
                self.pos += 1
            elif ch == '.' and not has_dot:
                has_dot = True
                self.pos += 1
            else:
                break
        return self.source[start:self.pos]

    SINGLE = {
        '{': TokenType.LBRACE,
        '}': TokenType.RBRACE,
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
        ',': TokenType.COMMA,
    }

    def tokenize(self) -> Iterator[Token]:
        """Generate tokens from the source, ending with EOF."""
        while True:
            self._read_while(str.isspace)
            ch = self._current()
            column = self.pos + 1

            if ch is None:
                yield Token(TokenType.EOF, '', column)
                break

            if ch in self.SINGLE:
                self.pos += 1
                yield Token(self.SINGLE[ch], ch, column)
                continue

            if ch in '<>':
                self.pos += 1
                if self._current() == '=':
                    self.pos += 1
                    kind = TokenType.LESS_EQUAL if ch == '<' else TokenType.GREATER_EQUAL
                    yield Token(kind, ch + '=', column)
                else:
                    kind = TokenType.LESS_THAN if ch == '<' else TokenType.GREATER_THAN
                    yield Token(kind, ch, column)
                continue

            if ch == '"':
                yield Token(TokenType.STRING, self._read_string(), column)
                continue

            if ch.isdigit():
                yield Token(TokenType.NUMBER, self._read_number(), column)
                continue

            if self._is_ident_start(ch):
                yield Token(TokenType.IDENTIFIER, self._read_while(self._is_ident_cont), column)
                continue

            raise self._error(f"Unexpected character {ch!r}", column)

    def tokenize_all(self) -> List[Token]:
        return list(self.tokenize())
