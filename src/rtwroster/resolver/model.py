"""
Resolved roster model.

This is what the whole pipeline produces: factions with their rosters,
eras, regions, mercenary pools and areas of recruitment. Every node can
be dumped with ``to_dict()`` for JSON export.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from rtwroster.parser.units import Defense, Discipline, Formation, GroundBonus


class UnitClass(Enum):
    GENERAL = "general"
    SHIP = "ship"
    ARTILLERY = "artillery"
    CAVALRY = "cavalry"
    ANIMAL = "animal"
    MISSILE = "missile"
    SPEAR = "spear"
    SWORD = "sword"


class MountType(Enum):
    FOOT = "foot"
    HORSE = "horse"
    CAMEL = "camel"
    ELEPHANT = "elephant"
    CHARIOT = "chariot"
    OTHER = "other"


class WeaponClass(Enum):
    MELEE = "melee"
    SPEAR = "spear"
    MISSILE = "missile"
    THROWN = "thrown"
    GUNPOWDER = "gunpowder"


class Ability(Enum):
    CANT_HIDE = "cant_hide"
    HIDE_IMPROVED_FOREST = "hide_improved_forest"
    HIDE_LONG_GRASS = "hide_long_grass"
    HIDE_ANYWHERE = "hide_anywhere"
    FRIGHTEN_FOOT = "frighten_foot"
    FRIGHTEN_MOUNTED = "frighten_mounted"
    FRIGHTEN_ALL = "frighten_all"
    CAN_RUN_AMOK = "can_run_amok"
    CANTABRIAN_CIRCLE = "cantabrian_circle"
    COMMAND = "command"
    WARCRY = "warcry"
    CHANT = "chant"
    POWER_CHARGE = "power_charge"
    KNIGHT = "knight"
    FORMED_CHARGE = "formed_charge"
    STAKES = "stakes"


def _plain(items: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """dict_factory for asdict() that flattens enums to their values."""
    result = {}
    for key, value in items:
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, list):
            value = [v.value if isinstance(v, Enum) else v for v in value]
        result[key] = value
    return result


class _Exportable:
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_plain)


@dataclass
class Era(_Exportable):
    id: str
    name: str
    icon: str = ""


@dataclass
class Weapon(_Exportable):
    weapon_class: WeaponClass
    factor: int
    is_missile: bool
    charge: int
    range: int
    ammo: int
    lethality: float
    armor_piercing: bool = False
    body_piercing: bool = False
    pre_charge: bool = False
    launching: bool = False
    area: bool = False
    fire: bool = False
    spear_bonus: int = 0


@dataclass
class Unit(_Exportable):
    id: str
    key: str
    name: str
    unit_class: UnitClass
    image: str
    soldiers: int
    officers: int
    mount: MountType
    formations: List[Formation]
    hp: int
    hp_mount: int
    primary_weapon: Optional[Weapon]
    secondary_weapon: Optional[Weapon]
    defense: Defense
    defense_mount: Defense
    heat: int
    ground_bonus: GroundBonus
    morale: int
    discipline: Discipline
    turns: int
    cost: int
    upkeep: int
    tech_level: int
    move_speed: Optional[int] = None
    eras: List[str] = field(default_factory=list)
    abilities: List[Ability] = field(default_factory=list)
    stamina: int = 0
    inexhaustible: bool = False
    infinite_ammo: bool = False
    scaling: bool = True
    horde: bool = False
    general: bool = False
    mercenary: bool = False
    legionary_name: bool = False
    is_militia: bool = False
    is_unique: bool = False
    is_regional: bool = False


@dataclass
class Faction(_Exportable):
    id: str
    name: str
    image: str
    roster: List[Unit] = field(default_factory=list)
    alias: Optional[str] = None
    eras: List[str] = field(default_factory=list)
    is_horde: bool = False
    has_aors: bool = False

    @property
    def id_or_alias(self) -> str:
        return self.alias or self.id


@dataclass
class Region(_Exportable):
    id: str
    color: Tuple[int, int, int]
    hidden_resources: List[str] = field(default_factory=list)
    legion: Optional[str] = None


@dataclass
class PoolEntry(_Exportable):
    unit: Unit
    exp: int
    replenish: Tuple[float, float]
    max: int
    initial: int
    restrict: List[str] = field(default_factory=list)


@dataclass
class Pool(_Exportable):
    id: str
    name: str
    map: str
    regions: List[str] = field(default_factory=list)
    units: List[PoolEntry] = field(default_factory=list)


@dataclass
class Aor(_Exportable):
    """Area of recruitment: regions where a faction gets regional units."""
    name: str
    map: str
    faction: str
    units: List[str] = field(default_factory=list)
    regions: List[str] = field(default_factory=list)


@dataclass
class Module(_Exportable):
    id: str
    name: str
    banner: str = ""
    factions: Dict[str, Faction] = field(default_factory=dict)
    eras: Dict[str, Era] = field(default_factory=dict)
    aliases: Dict[str, str] = field(default_factory=dict)
    regions: Dict[str, Region] = field(default_factory=dict)
    pools: List[Pool] = field(default_factory=list)
    aors: List[Aor] = field(default_factory=list)
