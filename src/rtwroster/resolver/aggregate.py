"""
Requirement aggregation.

A unit can usually be unlocked several ways: different buildings, different
levels of the same building, or by being a general or horde unit. Each
path becomes one clause and the unit's final requirement is their ``Or``.
"""

from typing import Dict, Iterable, List, Mapping

from rtwroster.parser.buildings import Building
from rtwroster.parser.errors import RosterError
from rtwroster.parser.requires import And, Factions, MajorEvent, Not, Or, Requires
from rtwroster.parser.units import Attr, Unit


class UnitLookupError(RosterError):
    """A building recruits a unit that the unit list does not define."""
    def __init__(self, unit: str, building: str = ""):
        self.unit = unit
        self.building = building
        where = f" (recruited by {building})" if building else ""
        super().__init__(f"unknown unit {unit!r}{where}")


TECH_LEVELS = {
    "village": 0,
    "town": 1,
    "large_town": 2,
    "city": 3,
    "large_city": 4,
    "huge_city": 5,
}

NO_TECH_LEVEL = 99


def tech_level(settlement: str) -> int:
    return TECH_LEVELS.get(settlement, NO_TECH_LEVEL)


def require_ownership(unit: Unit) -> Requires:
    return Factions(tuple(unit.ownership))


def is_general(unit: Unit) -> bool:
    return unit.has(Attr.GENERAL_UNIT)


def can_horde(unit: Unit) -> bool:
    return unit.has(Attr.CAN_HORDE)


def upgrade_events(units: Iterable[Unit]) -> List[str]:
    """Every distinct general upgrade event, in first-seen order."""
    events = []
    for unit in units:
        event = unit.stats.upgrade_event
        if event is not None and event not in events:
            events.append(event)
    return events


def build_requirements(buildings: Iterable[Building], units: Mapping[str, Unit]) -> Dict[str, Or]:
    """
    Combine every unlock path of every unit into one requirement per unit.

    Units that no path unlocks are absent from the result.

    Raises:
        UnitLookupError: a recruit option names an undefined unit
    """
    paths: Dict[str, List[Requires]] = {}

    for building in buildings:
        for option in building.recruits:
            unit = units.get(option.unit)
            if unit is None:
                raise UnitLookupError(option.unit, building.name)
            paths.setdefault(unit.id, []).append(
                And([option.requires, building.requires, require_ownership(unit)])
            )

    unupgraded = And([Not(MajorEvent(event)) for event in upgrade_events(units.values())])
    for unit in units.values():
        if is_general(unit):
            event = unit.stats.upgrade_event
            gate = MajorEvent(event) if event is not None else unupgraded
            paths.setdefault(unit.id, []).append(And([require_ownership(unit), gate]))

    for unit in units.values():
        if can_horde(unit):
            paths.setdefault(unit.id, []).append(require_ownership(unit))

    return {unit_id: Or(items) for unit_id, items in paths.items()}


def build_tech_levels(buildings: Iterable[Building]) -> Dict[str, int]:
    """Lowest settlement tier at which each unit can be recruited."""
    levels: Dict[str, int] = {}
    for building in buildings:
        level = tech_level(building.settlement_min)
        for option in building.recruits:
            if level < levels.get(option.unit, NO_TECH_LEVEL + 1):
                levels[option.unit] = level
    return levels
