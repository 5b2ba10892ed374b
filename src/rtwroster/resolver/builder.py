"""
Model resolver.

Turns a RawModel into the resolved Module: which factions exist, what each
can recruit, in which eras, plus regions, mercenary pools and areas of
recruitment (AORs).
"""

import logging
import math
from collections import OrderedDict
from typing import Dict, FrozenSet, List, Optional

from rtwroster.parser.mounts import Mount, MountClass
from rtwroster.parser.requires import Or, Requires, RequiresFalse
from rtwroster.parser.units import SPEAR_ATTRIBUTES, Attr, WeaponAttr
from rtwroster.parser import units as raw_units
from rtwroster.resolver import model
from rtwroster.resolver.aggregate import (
    NO_TECH_LEVEL,
    UnitLookupError,
    build_requirements,
    build_tech_levels,
    is_general,
)
from rtwroster.resolver.context import Context
from rtwroster.resolver.evaluator import evaluate

logger = logging.getLogger(__name__)

MERCS = "mercs"

SKELETON_SPEED = {
    "fs_slow_spearman": 26,
    "fs_spearman": 30,
    "fs_semi_fast_spearman": 32,
    "fs_dagger": 30,
    "fs_semi_fast_dagger": 32,
    "fs_slow_swordsman": 26,
    "fs_swordsman": 30,
    "fs_semi_fast_swordsman": 32,
    "fs_archer": 30,
    "fs_semi_fast_archer": 32,
    "fs_javelinman": 30,
    "fs_semi_fast_javelinman": 32,
    "fs_2handed": 30,
    "fs_2handed_berserker": 32,
    "fs_slinger_new": 35,
    "fs_standard_bearer": 30,
    "fs_indian_elephant": 39,
    "fs_african_elephant": 39,
    "fs_forest_elephant": 39,
    "fs_indian_giant_elephant": 39,
    "fs_camel": 40,
    "fs_cataphract_horse": 41,
    "fs_medium_horse": 50,
    "fs_horse": 54,
    "fs_fast_horse": 62,
}

# Attribute -> ability, for attributes that map one to one
SIMPLE_ABILITIES = {
    Attr.CAN_RUN_AMOK: model.Ability.CAN_RUN_AMOK,
    Attr.CANTABRIAN_CIRCLE: model.Ability.CANTABRIAN_CIRCLE,
    Attr.COMMAND: model.Ability.COMMAND,
    Attr.DRUID: model.Ability.CHANT,
    Attr.SCREECHING_WOMEN: model.Ability.CHANT,
    Attr.WARCRY: model.Ability.WARCRY,
    Attr.POWER_CHARGE: model.Ability.POWER_CHARGE,
    Attr.KNIGHT: model.Ability.KNIGHT,
    Attr.FORMED_CHARGE: model.Ability.FORMED_CHARGE,
    Attr.STAKES: model.Ability.STAKES,
}

STAMINA = {
    Attr.HARDY: 2,
    Attr.VERY_HARDY: 4,
    Attr.EXTREMELY_HARDY: 8,
}

HIDE_ATTRIBUTES = frozenset({
    Attr.HIDE_FOREST,
    Attr.HIDE_IMPROVED_FOREST,
    Attr.HIDE_LONG_GRASS,
    Attr.HIDE_ANYWHERE,
})

MOUNT_TYPES = {
    MountClass.HORSE: model.MountType.HORSE,
    MountClass.CAMEL: model.MountType.CAMEL,
    MountClass.ELEPHANT: model.MountType.ELEPHANT,
    MountClass.CHARIOT: model.MountType.CHARIOT,
}


def round_half_away(value: float) -> int:
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


class ModelBuilder:
    """
    Resolves one RawModel under one configuration.

    Usage:
        builder = ModelBuilder(config, raw)
        module = builder.build()
    """

    def __init__(self, config, raw):
        self.config = config
        self.raw = raw
        self.units: "OrderedDict[str, raw_units.Unit]" = OrderedDict((u.id, u) for u in raw.units)
        self.requires: Dict[str, Or] = build_requirements(raw.buildings, self.units)
        self.tech_levels: Dict[str, int] = build_tech_levels(raw.buildings)
        self.aliases = raw.aliases

    def requirement(self, unit_id: str) -> Requires:
        return self.requires.get(unit_id, RequiresFalse())

    # --- top level ----------------------------------------------------------

    def build(self) -> model.Module:
        regions = OrderedDict((r.id, self.build_region(r)) for r in self.raw.regions)
        pools = [self.build_pool(pool, i) for i, pool in enumerate(self.raw.pools)]
        aors = self.build_aors()

        factions = OrderedDict()
        for faction in self.campaign_factions():
            factions[faction.id] = self.build_faction(faction, aors)

        module = model.Module(
            id=self.config.id,
            name=self.config.name,
            banner=self.config.banner,
            factions=factions,
            eras=OrderedDict(
                (era.id, model.Era(era.id, era.name, era.icon)) for era in self.config.eras.values()
            ),
            aliases=self.config.aliases,
            regions=regions,
            pools=pools,
            aors=aors,
        )
        logger.info(
            f"Built {module.id}: {len(factions)} factions, {len(pools)} pools, "
            f"{len(aors)} areas of recruitment"
        )
        return module

    def campaign_factions(self):
        """Factions in the campaign script, in campaign order, minus exclusions."""
        strat = self.raw.strat
        present = [f for f in self.raw.factions if f.id in strat]
        for f in self.raw.factions:
            if f.id not in strat:
                logger.debug(f"Dropping {f.id}: not in campaign script")
        present.sort(key=lambda f: strat[f.id])
        excluded = set(self.config.exclude)
        return [f for f in present if f.id not in excluded]

    # --- factions -----------------------------------------------------------

    def build_faction(self, faction, aors: List[model.Aor]) -> model.Faction:
        context = Context.for_faction(faction)
        roster = []
        for unit in self.units.values():
            if unit.has(Attr.MERCENARY_UNIT):
                continue
            if evaluate(self.requirement(unit.id), self.aliases, context):
                roster.append(self.build_unit(unit, faction.id, aors))
        logger.debug(f"{faction.id}: {len(roster)} units")

        name = self.raw.text.get(faction.name.lower(), faction.name).strip()
        alias = next((k for k, v in self.config.aliases.items() if v == faction.id), None)
        return model.Faction(
            id=faction.id,
            name=name,
            image=faction.logo.lower(),
            roster=roster,
            alias=alias,
            eras=self.faction_eras(roster),
            is_horde=any(u.horde for u in roster),
            has_aors=any(u.is_regional for u in roster),
        )

    def faction_eras(self, roster: List[model.Unit]) -> List[str]:
        """Configured eras, minus those every roster unit shares."""
        era_ids = list(self.config.eras)
        shared = set(era_ids)
        for unit in roster:
            shared &= set(unit.eras)
        return [era for era in era_ids if era not in shared]

    # --- units --------------------------------------------------------------

    def mount(self, unit: raw_units.Unit) -> Optional[Mount]:
        if unit.stats.mount is None:
            return None
        return self.raw.mounts.get(unit.stats.mount)

    def mount_type(self, unit: raw_units.Unit) -> model.MountType:
        mount = self.mount(unit)
        if mount is None:
            return model.MountType.FOOT
        return MOUNT_TYPES.get(mount.mount_class, model.MountType.OTHER)

    def classify(self, unit: raw_units.Unit) -> model.UnitClass:
        mount = self.mount(unit)
        if is_general(unit):
            return model.UnitClass.GENERAL
        if "ship" in unit.category:
            return model.UnitClass.SHIP
        if "siege" in unit.category:
            return model.UnitClass.ARTILLERY
        if "cavalry" in unit.category:
            return model.UnitClass.CAVALRY
        if "handler" in unit.category or (mount is not None and mount.mount_class is MountClass.ELEPHANT):
            return model.UnitClass.ANIMAL
        if "missile" in unit.unit_class:
            return model.UnitClass.MISSILE
        if "spearmen" in unit.unit_class or has_spears(unit):
            return model.UnitClass.SPEAR
        return model.UnitClass.SWORD

    def skeleton(self, unit: raw_units.Unit) -> Optional[str]:
        """Skeleton of the model that sets the unit's pace; ships have none."""
        if "ship" in unit.category:
            return None
        mount = self.mount(unit)
        if mount is not None:
            if mount.mount_class is MountClass.CHARIOT and mount.horse:
                mount = self.raw.mounts.get(mount.horse, mount)
            model_id = mount.model
        else:
            model_id = unit.stats.soldier_model
        battle_model = self.raw.models.get(model_id) if model_id else None
        return battle_model.skeleton if battle_model else None

    def move_speed(self, unit: raw_units.Unit) -> Optional[int]:
        skeleton = self.skeleton(unit)
        if skeleton is None:
            return None
        # Configured speeds are final; only the built-in table is scaled
        if skeleton in self.config.speeds:
            return self.config.speeds[skeleton]
        base = SKELETON_SPEED.get(skeleton)
        if base is None:
            return None
        return round_half_away(base * unit.stats.speed_mod)

    def image(self, unit: raw_units.Unit, faction_id: str) -> str:
        key = unit.key.lower()
        if self.config.unit_info_images:
            folder = "merc" if faction_id == MERCS else faction_id.lower()
            return f"data/ui/unit_info/{folder}/{key}_info.tga"
        return f"data/ui/units/{faction_id.lower()}/#{key}.tga"

    def unit_eras(self, unit: raw_units.Unit) -> List[str]:
        requirement = self.requirement(unit.id)
        return [
            era.id for era in self.config.eras.values()
            if evaluate(requirement, self.aliases, era.context)
        ]

    def build_unit(self, unit: raw_units.Unit, faction_id: str, aors: List[model.Aor]) -> model.Unit:
        stats = unit.stats
        attrs = set(stats.attributes)
        unit_class = self.classify(unit)

        abilities = abilities_for(attrs) if unit_class is not model.UnitClass.SHIP else []

        return model.Unit(
            id=unit.id,
            key=unit.key,
            name=self.raw.text.get(unit.key.lower(), unit.key).strip(),
            unit_class=unit_class,
            image=self.image(unit, faction_id),
            soldiers=stats.soldiers,
            officers=stats.officers,
            mount=self.mount_type(unit),
            formations=list(stats.formations),
            hp=max(stats.hp, 0),
            hp_mount=max(stats.hp_mount, 0),
            primary_weapon=build_weapon(stats.primary_weapon),
            secondary_weapon=build_weapon(stats.secondary_weapon),
            defense=stats.defense,
            defense_mount=stats.defense_mount,
            heat=stats.heat,
            ground_bonus=stats.ground_bonus,
            morale=stats.morale,
            discipline=stats.discipline,
            turns=stats.turns,
            cost=stats.cost,
            upkeep=stats.upkeep,
            tech_level=self.tech_levels.get(unit.id, NO_TECH_LEVEL),
            move_speed=self.move_speed(unit),
            eras=self.unit_eras(unit),
            abilities=abilities,
            stamina=sum(STAMINA.get(a, 0) for a in stats.attributes),
            inexhaustible=Attr.INEXHAUSTIBLE in attrs,
            infinite_ammo=Attr.INFINITE_AMMO in attrs,
            scaling=Attr.NON_SCALING not in attrs,
            horde=Attr.CAN_HORDE in attrs,
            general=Attr.GENERAL_UNIT in attrs,
            mercenary=Attr.MERCENARY_UNIT in attrs,
            legionary_name=Attr.LEGIONARY_NAME in attrs,
            is_militia=Attr.FREE_UPKEEP in attrs,
            is_unique=Attr.UNIQUE in attrs,
            is_regional=any(aor.faction == faction_id and unit.id in aor.units for aor in aors),
        )

    # --- regions, pools, AORs -----------------------------------------------

    def build_region(self, region) -> model.Region:
        return model.Region(
            id=region.id,
            color=region.color,
            hidden_resources=list(region.hidden_resources),
            legion=region.legion,
        )

    def build_pool(self, pool, index: int) -> model.Pool:
        entries = []
        for entry in pool.units:
            unit = self.units.get(entry.id)
            if unit is None:
                raise UnitLookupError(entry.id, f"mercenary pool {pool.id}")
            built = self.build_unit(unit, MERCS, [])
            built.cost = entry.cost
            entries.append(model.PoolEntry(
                unit=built,
                exp=entry.exp,
                replenish=entry.replenish,
                max=entry.max,
                initial=entry.initial,
                restrict=list(entry.restrict),
            ))
        names = self.config.pools
        return model.Pool(
            id=pool.id,
            name=names[index] if index < len(names) else pool.id,
            map=f"pool-{index + 1}",
            regions=list(pool.regions),
            units=entries,
        )

    def build_aors(self) -> List[model.Aor]:
        """
        Find areas of recruitment.

        A unit is regional when it is available in some but not all regions.
        Each region's AOR is the intersection of the regional sets that
        contain it; every distinct AOR is then listed once per faction that
        can recruit regional units in all of its regions.
        """
        regions = self.raw.regions
        all_regions = frozenset(r.id for r in regions)
        region_map = {r.id: r for r in regions}

        unit_regions: Dict[str, FrozenSet[str]] = {}
        for unit_id, requirement in self.requires.items():
            unit_regions[unit_id] = frozenset(
                r.id for r in regions
                if evaluate(requirement, self.aliases, Context.for_region(r))
            )
        regional = {
            unit_id: found for unit_id, found in unit_regions.items()
            if 0 < len(found) < len(all_regions)
        }
        regional_sets = set(regional.values())

        areas = set()
        for region in regions:
            containing = [s for s in regional_sets if region.id in s]
            if containing:
                areas.add(frozenset.intersection(*containing))
        ordered = sorted(sorted(area) for area in areas)

        aors = []
        names = self.config.aors
        for i, area in enumerate(ordered):
            for faction in self.raw.factions:
                units = [
                    unit_id for unit_id in sorted(regional)
                    if all(
                        evaluate(self.requires[unit_id], self.aliases, Context.for_region(region_map[r], faction))
                        for r in area
                    )
                ]
                if not units:
                    continue
                aors.append(model.Aor(
                    name=names[i] if i < len(names) else "",
                    map=f"aor-{i + 1}",
                    faction=faction.id,
                    units=units,
                    regions=list(area),
                ))
        return aors


def has_spears(unit: raw_units.Unit) -> bool:
    return any(a in SPEAR_ATTRIBUTES for a in unit.stats.primary_weapon.attributes)


def abilities_for(attrs) -> List[model.Ability]:
    abilities = []
    for attr, ability in SIMPLE_ABILITIES.items():
        if attr in attrs and ability not in abilities:
            abilities.append(ability)

    if not attrs & HIDE_ATTRIBUTES:
        abilities.append(model.Ability.CANT_HIDE)
    elif Attr.HIDE_ANYWHERE in attrs:
        abilities.append(model.Ability.HIDE_ANYWHERE)
    elif Attr.HIDE_IMPROVED_FOREST in attrs:
        abilities.append(model.Ability.HIDE_IMPROVED_FOREST)
    elif Attr.HIDE_LONG_GRASS in attrs:
        abilities.append(model.Ability.HIDE_LONG_GRASS)

    foot = Attr.FRIGHTEN_FOOT in attrs
    mounted = Attr.FRIGHTEN_MOUNTED in attrs
    if foot and mounted:
        abilities.append(model.Ability.FRIGHTEN_ALL)
    elif foot:
        abilities.append(model.Ability.FRIGHTEN_FOOT)
    elif mounted:
        abilities.append(model.Ability.FRIGHTEN_MOUNTED)
    return abilities


def build_weapon(weapon: raw_units.Weapon) -> Optional[model.Weapon]:
    if weapon.weapon_type == "no":
        return None

    if weapon.missile == "no":
        weapon_class = model.WeaponClass.MELEE
    elif "gunpowder" in weapon.tech_type:
        weapon_class = model.WeaponClass.GUNPOWDER
    else:
        weapon_class = model.WeaponClass.MISSILE

    attrs = set(weapon.attributes)
    if attrs & (SPEAR_ATTRIBUTES - {WeaponAttr.SPEAR_BONUS}):
        weapon_class = model.WeaponClass.SPEAR
    if WeaponAttr.THROWN in attrs:
        weapon_class = model.WeaponClass.THROWN

    return model.Weapon(
        weapon_class=weapon_class,
        factor=weapon.factor,
        is_missile=weapon.missile != "no",
        charge=weapon.charge,
        range=weapon.range,
        ammo=weapon.ammo,
        lethality=min(weapon.lethality, 1.0),
        armor_piercing=WeaponAttr.ARMOR_PIERCING in attrs,
        body_piercing=WeaponAttr.BODY_PIERCING in attrs,
        pre_charge=WeaponAttr.PRECHARGE in attrs,
        launching=WeaponAttr.LAUNCHING in attrs,
        area=WeaponAttr.AREA in attrs,
        fire=WeaponAttr.FIRE in attrs,
        spear_bonus=weapon.spear_bonus,
    )


def build_model(config, raw) -> model.Module:
    """Resolve a RawModel into the final Module."""
    return ModelBuilder(config, raw).build()
