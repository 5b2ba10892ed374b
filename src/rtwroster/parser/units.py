"""
Unit list decoder (export_descr_unit.txt).

Each record starts at a ``type`` line and runs until the next one. The
decoded ``Unit`` keeps the raw stat block; classification, abilities and
speeds are worked out later by the resolver.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from rtwroster.parser.errors import DecodeError
from rtwroster.parser.fields import (
    COMMA,
    OPT_COMMA,
    FieldReader,
    parse_float,
    parse_int,
    positional,
    require_index,
)
from rtwroster.parser.records import Record, extract_records


class Attr(Enum):
    """Unit attributes from the ``attributes`` line."""
    SEA_FARING = "sea_faring"
    HIDE_FOREST = "hide_forest"
    HIDE_IMPROVED_FOREST = "hide_improved_forest"
    HIDE_LONG_GRASS = "hide_long_grass"
    HIDE_ANYWHERE = "hide_anywhere"
    CAN_SAP = "can_sap"
    FRIGHTEN_FOOT = "frighten_foot"
    FRIGHTEN_MOUNTED = "frighten_mounted"
    CAN_RUN_AMOK = "can_run_amok"
    GENERAL_UNIT = "general_unit"
    GENERAL_UNIT_UPGRADE = "general_unit_upgrade"
    CANTABRIAN_CIRCLE = "cantabrian_circle"
    NO_CUSTOM = "no_custom"
    COMMAND = "command"
    SCREECHING_WOMEN = "screeching_women"
    MERCENARY_UNIT = "mercenary_unit"
    HARDY = "hardy"
    VERY_HARDY = "very_hardy"
    EXTREMELY_HARDY = "extremely_hardy"
    INEXHAUSTIBLE = "inexhaustible"
    WARCRY = "warcry"
    DRUID = "druid"
    POWER_CHARGE = "power_charge"
    CAN_SWIM = "can_swim"
    IS_PEASANT = "is_peasant"
    CAN_HORDE = "can_horde"
    LEGIONARY_NAME = "legionary_name"
    INFINITE_AMMO = "infinite_ammo"
    NON_SCALING = "non_scaling"
    FREE_UPKEEP = "free_upkeep_unit"
    CAN_WITHDRAW = "can_withdraw"
    FORMED_CHARGE = "can_formed_charge"
    KNIGHT = "knight"
    GUNPOWDER = "gunpowder_unit"
    STAKES = "stakes"
    FIRE_BY_RANK = "fire_by_rank"
    NO_SKIRMISH = "cannot_skirmish"
    UNIQUE = "unique_unit"
    HINT = "hint"
    UNKNOWN = "unknown"


# UI and AI hints; they change nothing about what a unit can do
HINT_ATTRIBUTES = frozenset({
    "start_not_skirmishing", "guncavalry", "crossbow", "gunmen", "peasant",
    "pike", "incendiary", "artillery", "cannon", "rocket", "mortar",
    "explode", "standard", "wagon_fort",
})

_ATTR_BY_TOKEN = {
    attr.value: attr for attr in Attr
    if attr not in (Attr.HINT, Attr.UNKNOWN, Attr.GENERAL_UNIT_UPGRADE)
}

DEFAULT_UPGRADE_EVENT = "marian_reforms"


class WeaponAttr(Enum):
    ARMOR_PIERCING = "ap"
    BODY_PIERCING = "bp"
    SPEAR = "spear"
    LONG_PIKE = "long_pike"
    SHORT_PIKE = "short_pike"
    LIGHT_SPEAR = "light_spear"
    PRECHARGE = "prec"
    THROWN = "thrown"
    LAUNCHING = "launching"
    AREA = "area"
    FIRE = "fire"
    SPEAR_BONUS = "spear_bonus"
    UNKNOWN = "unknown"


SPEAR_ATTRIBUTES = frozenset({
    WeaponAttr.SPEAR,
    WeaponAttr.LONG_PIKE,
    WeaponAttr.SHORT_PIKE,
    WeaponAttr.LIGHT_SPEAR,
    WeaponAttr.SPEAR_BONUS,
})


class Formation(Enum):
    SQUARE = "square"
    HORDE = "horde"
    PHALANX = "phalanx"
    TESTUDO = "testudo"
    WEDGE = "wedge"
    SCHILTROM = "schiltrom"
    SHIELD_WALL = "shield_wall"
    UNKNOWN = "unknown"


class Discipline(Enum):
    LOW = "low"
    NORMAL = "normal"
    DISCIPLINED = "disciplined"
    IMPETUOUS = "impetuous"
    BERSERKER = "berserker"
    UNKNOWN = "unknown"


def _lookup(enum_cls, token: str):
    try:
        return enum_cls(token)
    except ValueError:
        return enum_cls.UNKNOWN


@dataclass
class Weapon:
    """A raw ``stat_pri``/``stat_sec`` line with its attribute line."""
    factor: int = 0
    charge: int = 0
    missile: str = "no"
    range: int = 0
    ammo: int = 0
    lethality: float = 1.0
    weapon_type: str = "no"
    tech_type: str = "no"
    attributes: List[WeaponAttr] = field(default_factory=list)
    spear_bonus: int = 0


@dataclass
class Defense:
    armor: int = 0
    skill: int = 0
    shield: int = 0

    def to_dict(self) -> dict:
        return {"armor": self.armor, "skill": self.skill, "shield": self.shield}


@dataclass
class GroundBonus:
    scrub: int = 0
    sand: int = 0
    forest: int = 0
    snow: int = 0

    def to_dict(self) -> dict:
        return {"scrub": self.scrub, "sand": self.sand, "forest": self.forest, "snow": self.snow}


@dataclass
class StatBlock:
    soldier_model: str
    soldiers: int
    officers: int
    mount: Optional[str]
    attributes: List[Attr]
    upgrade_event: Optional[str]
    formations: List[Formation]
    hp: int
    hp_mount: int
    primary_weapon: Weapon
    secondary_weapon: Weapon
    defense: Defense
    defense_mount: Defense
    heat: int
    ground_bonus: GroundBonus
    morale: int
    discipline: Discipline
    turns: int
    cost: int
    upkeep: int
    speed_mod: float = 1.0


@dataclass
class Unit:
    id: str
    key: str
    category: str
    unit_class: str
    ownership: List[str]
    stats: StatBlock

    def has(self, attr: Attr) -> bool:
        return attr in self.stats.attributes


# =============================================================================
# DECODING
# =============================================================================

def parse_attribute(token: str):
    """
    Decode one item of the ``attributes`` line.

    Returns ``(attr, event)``; ``event`` is only set for
    ``general_unit_upgrade`` and names the event the upgrade waits on.
    """
    token = token.strip()
    if token in _ATTR_BY_TOKEN:
        return _ATTR_BY_TOKEN[token], None
    if token in HINT_ATTRIBUTES:
        return Attr.HINT, None
    if token.startswith("general_unit_upgrade"):
        rest = token[len("general_unit_upgrade"):].strip().strip('"')
        return Attr.GENERAL_UNIT_UPGRADE, rest or DEFAULT_UPGRADE_EVENT
    return Attr.UNKNOWN, None


def parse_weapon_attribute(token: str):
    """Returns ``(attr, spear_bonus)``."""
    if token.startswith("spear_bonus_"):
        return WeaponAttr.SPEAR_BONUS, parse_int(token[len("spear_bonus_"):], "spear bonus")
    return _lookup(WeaponAttr, token), 0


def parse_weapon(stats: Sequence[str], attrs: Sequence[str]) -> Weapon:
    if stats and stats[0] == "no":
        return Weapon()
    weapon = Weapon(
        factor=parse_int(require_index(stats, 0, "weapon strength"), "weapon strength"),
        charge=parse_int(require_index(stats, 1, "charge bonus"), "charge bonus"),
        missile=require_index(stats, 2, "missile"),
        range=parse_int(require_index(stats, 3, "range"), "range"),
        ammo=parse_int(require_index(stats, 4, "ammo"), "ammo"),
        weapon_type=require_index(stats, 5, "weapon type"),
        tech_type=require_index(stats, 6, "tech type"),
    )
    if len(stats) > 10:
        try:
            weapon.lethality = float(stats[10])
        except ValueError:
            pass
    for token in attrs:
        if token == "no":
            continue
        attr, bonus = parse_weapon_attribute(token)
        weapon.attributes.append(attr)
        if attr is WeaponAttr.SPEAR_BONUS:
            weapon.spear_bonus = bonus
    return weapon


def parse_defense(values: Sequence[str]) -> Defense:
    return Defense(positional(values, 0), positional(values, 1), positional(values, 2))


def parse_ground(values: Sequence[str]) -> GroundBonus:
    return GroundBonus(*(positional(values, i) for i in range(4)))


def _soldiers(reader: FieldReader):
    if reader.has("soldier"):
        line = reader.split("soldier", OPT_COMMA)
        model = require_index(line, 0, "soldier model")
        return model, parse_int(require_index(line, 1, "# of soldiers"), "# of soldiers")
    if reader.has("soldiers"):
        line = reader.split("soldiers", OPT_COMMA)
        return "", parse_int(require_index(line, 0, "# of soldiers"), "# of soldiers")
    raise reader.error("missing soldier/soldiers info")


def parse_statblock(reader: FieldReader) -> StatBlock:
    model, soldiers = _soldiers(reader)

    attributes = []
    upgrade_event = None
    for token in reader.split("attributes", COMMA):
        attr, event = parse_attribute(token)
        attributes.append(attr)
        if event is not None:
            upgrade_event = event

    formation = reader.require_split("formation", OPT_COMMA)
    health = reader.require_split("stat_health", OPT_COMMA)
    heat = reader.require_split("stat_heat", OPT_COMMA)
    mental = reader.require_split("stat_mental", OPT_COMMA)
    cost = reader.require_split("stat_cost", OPT_COMMA)

    return StatBlock(
        soldier_model=model,
        soldiers=soldiers,
        officers=reader.count("officer"),
        mount=reader.get("mount"),
        attributes=attributes,
        upgrade_event=upgrade_event,
        formations=[_lookup(Formation, token) for token in formation[5:]],
        hp=parse_int(require_index(health, 0, "hit points"), "hit points"),
        hp_mount=parse_int(require_index(health, 1, "mount hit points"), "mount hit points"),
        primary_weapon=parse_weapon(
            reader.require_split("stat_pri", OPT_COMMA),
            reader.require_split("stat_pri_attr", OPT_COMMA),
        ),
        secondary_weapon=parse_weapon(
            reader.require_split("stat_sec", OPT_COMMA),
            reader.require_split("stat_sec_attr", OPT_COMMA),
        ),
        defense=parse_defense(reader.require_split("stat_pri_armour", OPT_COMMA)),
        defense_mount=parse_defense(reader.require_split("stat_sec_armour", OPT_COMMA)),
        heat=parse_int(require_index(heat, 0, "heat bonus"), "heat bonus"),
        ground_bonus=parse_ground(reader.require_split("stat_ground", OPT_COMMA)),
        morale=parse_int(require_index(mental, 0, "morale"), "morale"),
        discipline=_lookup(Discipline, require_index(mental, 1, "discipline")),
        turns=parse_int(require_index(cost, 0, "build turns"), "build turns"),
        cost=parse_int(require_index(cost, 1, "cost"), "cost"),
        upkeep=parse_int(require_index(cost, 2, "upkeep"), "upkeep"),
        speed_mod=parse_float(reader.get("move_speed_mod") or "1.0", "move speed modifier"),
    )


def decode_unit(record: Record) -> Unit:
    reader = FieldReader(record)
    try:
        return Unit(
            id=reader.require("type"),
            key=reader.require("dictionary"),
            category=reader.require("category"),
            unit_class=reader.require("class"),
            ownership=reader.require_split("ownership", OPT_COMMA),
            stats=parse_statblock(reader),
        )
    except DecodeError as e:
        if e.record:
            raise
        raise reader.error(e.message) from e


def parse_units(text: str, mode=None) -> List[Unit]:
    """Decode every unit in an export_descr_unit.txt file."""
    return [decode_unit(record) for record in extract_records(text, ("type",))]
