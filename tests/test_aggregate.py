"""
Tests for requirement aggregation and tech levels.
"""

import pytest

from rtwroster.parser.buildings import Building, RecruitOption
from rtwroster.parser.factions import Faction
from rtwroster.parser.requires import And, Factions, MajorEvent, Not, Or, RequiresNone, parse_requires
from rtwroster.parser.units import Attr, Defense, Discipline, GroundBonus, StatBlock, Unit, Weapon
from rtwroster.resolver.aggregate import (
    NO_TECH_LEVEL,
    UnitLookupError,
    build_requirements,
    build_tech_levels,
    tech_level,
    upgrade_events,
)
from rtwroster.resolver.aliases import AliasTable
from rtwroster.resolver.context import Context
from rtwroster.resolver.evaluator import evaluate


def make_unit(unit_id, ownership=("f1",), attributes=(), upgrade_event=None):
    stats = StatBlock(
        soldier_model=unit_id,
        soldiers=40,
        officers=1,
        mount=None,
        attributes=list(attributes),
        upgrade_event=upgrade_event,
        formations=[],
        hp=1,
        hp_mount=0,
        primary_weapon=Weapon(),
        secondary_weapon=Weapon(),
        defense=Defense(),
        defense_mount=Defense(),
        heat=0,
        ground_bonus=GroundBonus(),
        morale=5,
        discipline=Discipline.NORMAL,
        turns=1,
        cost=100,
        upkeep=50,
    )
    return Unit(unit_id, unit_id, "infantry", "light", list(ownership), stats)


def units_by_id(*units):
    return {unit.id: unit for unit in units}


F1 = Faction("f1", "f1", culture="c1")
F2 = Faction("f2", "f2", culture="c2")


class TestTechLevels:
    """Lowest settlement tier over every building."""

    def test_tiers(self):
        assert tech_level("village") == 0
        assert tech_level("huge_city") == 5
        assert tech_level("castle") == NO_TECH_LEVEL

    def test_minimum_over_buildings(self):
        buildings = [
            Building("b1", recruits=[RecruitOption("u1", 0)], settlement_min="city"),
            Building("b2", recruits=[RecruitOption("u1", 0)], settlement_min="village"),
        ]
        assert build_tech_levels(buildings) == {"u1": 0}

    def test_unknown_tier(self):
        buildings = [Building("b1", recruits=[RecruitOption("u1", 0)], settlement_min="fortress")]
        assert build_tech_levels(buildings) == {"u1": NO_TECH_LEVEL}


class TestBuildRequirements:
    """One Or per unit over every unlock path."""

    def test_path_shape(self):
        unit = make_unit("u1")
        building = Building("b1", requires=Factions(("c1",)), recruits=[RecruitOption("u1", 0)])
        requires = build_requirements([building], units_by_id(unit))
        assert requires == {
            "u1": Or([And([RequiresNone(), Factions(("c1",)), Factions(("f1",))])]),
        }

    def test_either_building_suffices(self):
        """Available if either building's chain is satisfiable."""
        unit = make_unit("u1", ownership=("f1", "f2"))
        b1 = Building("b1", requires=Factions(("f1",)), recruits=[RecruitOption("u1", 0)], settlement_min="city")
        b2 = Building("b2", requires=Factions(("f2",)), recruits=[RecruitOption("u1", 0)], settlement_min="village")
        requires = build_requirements([b1, b2], units_by_id(unit))
        assert len(requires["u1"].items) == 2
        assert evaluate(requires["u1"], AliasTable(), Context.for_faction(F1)) is True
        assert evaluate(requires["u1"], AliasTable(), Context.for_faction(F2)) is True
        assert build_tech_levels([b1, b2])["u1"] == 0

    def test_ownership_still_applies(self):
        unit = make_unit("u1", ownership=("f1",))
        building = Building("b1", recruits=[RecruitOption("u1", 0, parse_requires("factions { f2, }"))])
        requires = build_requirements([building], units_by_id(unit))
        assert evaluate(requires["u1"], AliasTable(), Context.for_faction(F1)) is False
        assert evaluate(requires["u1"], AliasTable(), Context.for_faction(F2)) is False

    def test_unrecruitable_units_absent(self):
        requires = build_requirements([], units_by_id(make_unit("u1")))
        assert requires == {}

    def test_undefined_unit(self):
        building = Building("barracks", recruits=[RecruitOption("ghost", 0)])
        with pytest.raises(UnitLookupError) as exc:
            build_requirements([building], {})
        assert exc.value.unit == "ghost"
        assert "barracks" in str(exc.value)

    def test_general_units(self):
        """Generals wait for their upgrade event; the rest stop when any upgrade fires."""
        early = make_unit("early_general", attributes=[Attr.GENERAL_UNIT])
        late = make_unit(
            "late_general",
            attributes=[Attr.GENERAL_UNIT, Attr.GENERAL_UNIT_UPGRADE],
            upgrade_event="marian_reforms",
        )
        requires = build_requirements([], units_by_id(early, late))
        assert requires["early_general"] == Or([
            And([Factions(("f1",)), And([Not(MajorEvent("marian_reforms"))])]),
        ])
        assert requires["late_general"] == Or([
            And([Factions(("f1",)), MajorEvent("marian_reforms")]),
        ])

    def test_horde_units(self):
        unit = make_unit("u1", attributes=[Attr.CAN_HORDE])
        requires = build_requirements([], units_by_id(unit))
        assert requires["u1"] == Or([Factions(("f1",))])

    def test_upgrade_events_in_order(self):
        units = [
            make_unit("a", upgrade_event="e2"),
            make_unit("b"),
            make_unit("c", upgrade_event="e1"),
            make_unit("d", upgrade_event="e2"),
        ]
        assert upgrade_events(units) == ["e2", "e1"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
