"""
Evaluation contexts and the tri-state answer type.

A Context says what is known about the situation a requirement is judged
in: which factions/cultures apply, which resources and hidden resources
are present, which major events have fired. Anything it has no opinion on
comes back UNKNOWN.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

from rtwroster.parser.errors import RosterError


class Tri(Enum):
    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    UNKNOWN = "unknown"

    @classmethod
    def of(cls, value: Optional[bool]) -> "Tri":
        if value is None:
            return cls.UNKNOWN
        return cls.SATISFIED if value else cls.UNSATISFIED

    def invert(self) -> "Tri":
        if self is Tri.SATISFIED:
            return Tri.UNSATISFIED
        if self is Tri.UNSATISFIED:
            return Tri.SATISFIED
        return Tri.UNKNOWN


@dataclass(frozen=True)
class Choices:
    """Known answers for one kind of predicate, with an optional fallback."""
    map: Mapping[str, bool] = field(default_factory=dict)
    default: Optional[bool] = None

    @classmethod
    def all_true(cls, keys: Iterable[str], default: Optional[bool] = False) -> "Choices":
        return cls({key: True for key in keys}, default)

    def get(self, key: str) -> Optional[bool]:
        if key in self.map:
            return self.map[key]
        return self.default


CHOICE_SETS = ("faction", "resource", "hidden_resource", "major_event")


@dataclass(frozen=True)
class Context:
    faction: Optional[Choices] = None
    resource: Optional[Choices] = None
    hidden_resource: Optional[Choices] = None
    major_event: Optional[Choices] = None
    default: Optional[bool] = None

    @classmethod
    def for_faction(cls, faction) -> "Context":
        """Judge requirements as seen by one faction anywhere on the map."""
        return cls(faction=Choices.all_true((faction.id, faction.culture, "all")))

    @classmethod
    def for_region(cls, region, faction=None) -> "Context":
        """Judge requirements inside one region, optionally for one faction."""
        return cls(
            faction=Choices.all_true((faction.id, faction.culture, "all")) if faction else None,
            hidden_resource=Choices.all_true(region.hidden_resources),
        )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Context":
        """
        Build a context from configuration, e.g. one era:

            major_event:
              marian_reforms: true
              default: false
            default: true

        Keys other than the choice sets and ``default`` are ignored.
        """
        data = data or {}
        kwargs = {}
        for name in CHOICE_SETS:
            if data.get(name) is not None:
                kwargs[name] = _choices(name, data[name])
        default = data.get("default")
        if default is not None and not isinstance(default, bool):
            raise RosterError(f"context default must be true or false, got {default!r}")
        return cls(default=default, **kwargs)


def _choices(name: str, data: Any) -> Choices:
    if not isinstance(data, Mapping):
        raise RosterError(f"{name} choices must be a mapping, got {data!r}")
    answers: Dict[str, bool] = {}
    for key, value in data.items():
        if key == "default":
            continue
        if not isinstance(value, bool):
            raise RosterError(f"{name}.{key} must be true or false, got {value!r}")
        answers[str(key)] = value
    default = data.get("default")
    if default is not None and not isinstance(default, bool):
        raise RosterError(f"{name}.default must be true or false, got {default!r}")
    return Choices(answers, default)
