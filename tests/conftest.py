"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rtwroster.config import RosterConfig


# =============================================================================
# SOURCE TEXT BUILDERS
# =============================================================================

def make_unit(
    unit_id,
    ownership="romans_julii",
    category="infantry",
    unit_class="heavy",
    attributes="sea_faring, hide_forest, can_withdraw",
    soldier_model=None,
    mount=None,
    pri="7, 2, pilum, 35, 2, thrown, blade, piercing, spear, 25 ,1",
    pri_attr="prec, thrown, ap",
    sec="5, 3, no, 0, 0, melee, blade, piercing, sword, 25 ,1",
    sec_attr="no",
    extra="",
):
    """Text of one export_descr_unit.txt record."""
    lines = [
        f"type             {unit_id}",
        f"dictionary       {unit_id.replace(' ', '_')}      ; {unit_id}",
        f"category         {category}",
        f"class            {unit_class}",
        "voice_type       Light_1",
        f"soldier          {soldier_model or unit_id.replace(' ', '_')}, 40, 0, 1",
        "officer          roman_centurion",
        "officer          roman_standard",
    ]
    if mount:
        lines.append(f"mount            {mount}")
    lines += [
        f"attributes       {attributes}",
        "formation        1, 2, 2, 3, 4, square",
        "stat_health      1, 0",
        f"stat_pri         {pri}",
        f"stat_pri_attr    {pri_attr}",
        f"stat_sec         {sec}",
        f"stat_sec_attr    {sec_attr}",
        "stat_pri_armour  5, 5, 4, metal",
        "stat_sec_armour  0, 1, flesh",
        "stat_heat        3",
        "stat_ground      0, 0, -1, 0",
        "stat_mental      9, disciplined, trained",
        "stat_charge_dist 40",
        "stat_fire_delay  0",
        "stat_food        60, 300",
        "stat_cost        1, 460, 160, 60, 70, 460",
    ]
    if extra:
        lines.append(extra)
    lines.append(f"ownership        {ownership}")
    return "\n".join(lines) + "\n\n"


UNITS = (
    "; units for tests\n\n"
    + make_unit("roman_hastati")
    + make_unit(
        "barb_warband",
        ownership="gauls, britons",
        unit_class="light",
        attributes="hide_improved_forest, warcry, very_hardy",
        pri="9, 4, no, 0, 0, melee, simple, slashing, sword, 25 ,1",
        pri_attr="no",
    )
    + make_unit(
        "roman_generals_guard",
        category="cavalry",
        attributes="general_unit, command, hardy",
        mount="medium horse",
    )
    + make_unit(
        "roman_generals_guard_late",
        category="cavalry",
        attributes='general_unit, general_unit_upgrade "marian_reforms", command',
        mount="medium horse",
        extra="move_speed_mod   1.25",
    )
    + make_unit(
        "merc_hoplite",
        ownership="slave",
        unit_class="spearmen",
        attributes="mercenary_unit, hide_long_grass",
        pri="7, 4, no, 0, 0, melee, simple, piercing, spear, 25 ,1",
        pri_attr="spear, light_spear",
    )
)

BUILDINGS = """\
;
; buildings for tests
;
alias roman_faction
{
    requires factions { romans_julii, }
}

building barracks
{
    levels militia_barracks army_barracks
    {
        militia_barracks requires factions { barbarian, roman, }
        {
            capability
            {
                recruit "roman_hastati" 0 requires factions { romans_julii, }
                recruit "barb_warband" 0 requires factions { gauls, britons, } and hidden_resource gaul_lands
            }
            construction 1
            cost 400
            settlement_min town
            upgrades
            {
                army_barracks
            }
        }
        army_barracks requires factions { barbarian, roman, }
        {
            capability
            {
                recruit "roman_hastati" 1 requires roman_faction
            }
            construction 2
            cost 800
            settlement_min large_town
            upgrades
            {
            }
        }
    }
    plugins
    {
    }
}
"""

FACTIONS = """\
faction            romans_julii, spawnable
culture            roman
symbol             models_strat/symbol_julii.CAS
loading_logo       loading_screen/symbols/Symbol128_Julii.tga

faction            gauls
culture            barbarian
loading_logo       loading_screen/symbols/symbol128_gauls.tga

faction            egypt
culture            eastern
loading_logo       loading_screen/symbols/symbol128_egypt.tga

faction            slave
culture            barbarian
loading_logo       loading_screen/symbols/symbol128_slaves.tga
"""

REMASTERED_FACTIONS = """\
; remastered faction list
factions:
[
    romans_julii:
    {
        string: "romans_julii",
        culture: "roman",
        logos:
        {
            "loading screen icon": "loading_screen/symbols/Symbol128_Julii.tga",
            "standard index": 0,
        },
        "can sap": false,
    },
    gauls:
    {
        string: "gauls",
        culture: "barbarian",
        logos: { "loading screen icon": "loading_screen/symbols/symbol128_gauls.tga", },
    },
]
"""

STRAT = """\
campaign           imperial_campaign
playable
    gauls
    romans_julii
end
nonplayable
    slave
end
start_date -270 summer
"""

REGIONS = """\
; regions for tests
Latium
\tRoma
\tromans_julii
\tLatins
\t255 0 0
\titaly, rome
\t5
\t3
Gallia
\tMassilia
\tgauls
\tGallic_Rebels
\t0 255 0
\tgaul_lands
\t5
\t3
Belgica
\tlegion: Legio_V
\tSamarobriva
\tgauls
\tBelgae
\t0 0 255
\tgaul_lands, none
\t5
\t3
"""

MERCENARIES = """\
pool italy
\tregions Latium Gallia
\tunit merc_hoplite,\texp 1 cost 580 replenish 0.1 - 0.14 max 3 initial 1
\tunit roman_hastati,\texp 0 cost 720 replenish 0.08 - 0.12 max 2 initial 1 restrict romans_julii, gauls
"""

MOUNTS = """\
type               medium horse
class              horse
model              medium_horse_model

type               elephant_african
class              elephant
model              african_elephant_model
"""

MODELS = """\
type               roman_hastati
skeleton           fs_javelinman, fs_swordsman

type               barb_warband
skeleton           fs_swordsman

type               merc_hoplite
skeleton           fs_spearman

type               medium_horse_model
skeleton           fs_medium_horse
"""

UNIT_NAMES = "¬ unit names\n{roman_hastati}Hastati\n{barb_warband}Warband\n{merc_hoplite}Hoplites\n"
FACTION_NAMES = "{romans_julii}House of Julii\n{gauls}Gauls\n"


def utf16(text):
    return ("\ufeff" + text).encode("utf-16-le")


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def mod_dir(tmp_path):
    """A minimal mod folder on disk."""
    root = tmp_path / "mod"
    data = root / "data"
    campaign = data / "world" / "maps" / "campaign" / "imperial_campaign"
    base = data / "world" / "maps" / "base"
    for folder in (campaign, base, data / "text"):
        folder.mkdir(parents=True)

    (data / "export_descr_unit.txt").write_text(UNITS, encoding="utf-8")
    (data / "export_descr_buildings.txt").write_text(BUILDINGS, encoding="utf-8")
    (data / "descr_sm_factions.txt").write_text(FACTIONS, encoding="utf-8")
    (data / "descr_mount.txt").write_text(MOUNTS, encoding="utf-8")
    (data / "descr_model_battle.txt").write_text(MODELS, encoding="utf-8")
    (campaign / "descr_strat.txt").write_text(STRAT, encoding="utf-8")
    (campaign / "descr_mercenaries.txt").write_text(MERCENARIES, encoding="utf-8")
    (base / "descr_regions.txt").write_text(REGIONS, encoding="utf-8")
    (data / "text" / "export_units.txt").write_bytes(utf16(UNIT_NAMES))
    (data / "text" / "expanded_bi.txt").write_bytes(utf16(FACTION_NAMES))
    return root


@pytest.fixture
def config_values(mod_dir):
    return {
        "id": "testmod",
        "name": "Test Mod",
        "mode": "original",
        "src_dir": str(mod_dir),
        "exclude": ["slave"],
        "aliases": {"rome": "romans_julii"},
        "pools": ["Italian mercenaries"],
        "aors": ["Gaul"],
        "eras": {
            "early": {"name": "Early", "major_event": {"marian_reforms": False}},
            "late": {"name": "Late", "major_event": {"marian_reforms": True}},
        },
    }


@pytest.fixture
def config(config_values, monkeypatch):
    for var in ("RTWROSTER_SRC_DIR", "RTWROSTER_FALLBACK_DIR", "RTWROSTER_MODE"):
        monkeypatch.delenv(var, raising=False)
    return RosterConfig(values=config_values)
