"""
Requirement alias table.

Aliases name a requirement once so building files can reuse it:

    alias marian_reforms
    {
        requires major_event "marian_reforms"
    }

The table is built once per source set and never changes afterwards.
"""

from collections.abc import Mapping
from typing import Dict, Iterator, Optional

from rtwroster.parser.errors import RosterError
from rtwroster.parser.requires import Requires


class AliasLookupError(RosterError):
    """A requirement names an alias that was never defined."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"invalid alias: {name}")


class CyclicAliasError(RosterError):
    """An alias refers back to itself, directly or through other aliases."""
    def __init__(self, chain):
        self.chain = tuple(chain)
        super().__init__("cyclic alias: " + " -> ".join(self.chain))


class AliasTable(Mapping):
    """Immutable alias name -> requirement mapping."""

    def __init__(self, entries: Optional[Dict[str, Requires]] = None):
        self._entries = dict(entries or {})

    def __getitem__(self, name: str) -> Requires:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, name: str) -> Requires:
        try:
            return self._entries[name]
        except KeyError:
            raise AliasLookupError(name) from None

    def __repr__(self):
        return f"AliasTable({len(self._entries)} aliases)"
