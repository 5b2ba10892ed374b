"""
Tests for the per-file decoders: factions, regions, pools, mounts, battle
models, campaign order, text tables and sprite catalogs.
"""

import struct

import pytest

from conftest import FACTIONS, MERCENARIES, MODELS, MOUNTS, REGIONS, REMASTERED_FACTIONS, STRAT, UNIT_NAMES, utf16
from rtwroster.parser.battle_models import parse_battle_models
from rtwroster.parser.buildings import ParserMode
from rtwroster.parser.errors import DecodeError
from rtwroster.parser.factions import parse_factions
from rtwroster.parser.mercenaries import parse_mercenaries, parse_pool_unit
from rtwroster.parser.mounts import MountClass, parse_mounts
from rtwroster.parser.regions import parse_regions
from rtwroster.parser.sprites import parse_sprites
from rtwroster.parser.strat import parse_strat
from rtwroster.parser.text import parse_strings_bin, parse_text


def strings_bin(entries, magic=0x0800):
    data = struct.pack("<HHI", 2, magic, len(entries))
    for key, value in entries:
        for text in (key, value):
            data += struct.pack("<H", len(text)) + text.encode("utf-16-le")
    return data


def sprite_catalog(pages, sprites, magic=6):
    data = struct.pack("<III", magic, len(pages), len(sprites))
    for name in pages:
        raw = name.encode("utf-8")
        data += struct.pack("<I", len(raw)) + raw + b"\x00"
        data += struct.pack("<III", 256, 256, 4) + b"\xff" * 4
    for key, page, rect in sprites:
        raw = key.encode("utf-8")
        data += struct.pack("<I", len(raw)) + raw
        data += struct.pack("<HHHHH", page, *rect)
        data += struct.pack("<BBHH", 255, 0, 0, 0)
    return data


class TestFactions:
    """Tests for descr_sm_factions.txt."""

    def test_factions(self):
        factions = parse_factions(FACTIONS)
        assert [f.id for f in factions] == ["romans_julii", "gauls", "egypt", "slave"]
        julii = factions[0]
        assert julii.culture == "roman"
        assert julii.logo == "loading_screen/symbols/Symbol128_Julii.tga"

    def test_missing_culture_is_empty(self):
        assert parse_factions("faction seleucid\n")[0].culture == ""


class TestRemasteredFactions:
    """Tests for the Remastered JSON5-style faction list."""

    def test_factions(self):
        factions = parse_factions(REMASTERED_FACTIONS, ParserMode.REMASTERED)
        assert [f.id for f in factions] == ["romans_julii", "gauls"]
        julii = factions[0]
        assert julii.name == "romans_julii"
        assert julii.culture == "roman"
        assert julii.logo == "loading_screen/symbols/Symbol128_Julii.tga"

    def test_classic_modes_ignore_json(self):
        assert [f.id for f in parse_factions(FACTIONS, ParserMode.MEDIEVAL2)][:2] == ["romans_julii", "gauls"]

    def test_missing_logo(self):
        text = "factions:\n[\n    gauls: { string: \"gauls\", culture: \"barbarian\", logos: { }, },\n]\n"
        with pytest.raises(DecodeError) as exc:
            parse_factions(text, ParserMode.REMASTERED)
        assert exc.value.record == "gauls"
        assert "loading screen icon" in str(exc.value)

    def test_missing_culture(self):
        text = "factions:\n[\n    gauls: { string: \"gauls\", logos: { \"loading screen icon\": \"x.tga\" } },\n]\n"
        with pytest.raises(DecodeError) as exc:
            parse_factions(text, ParserMode.REMASTERED)
        assert "culture" in str(exc.value)

    def test_no_list(self):
        with pytest.raises(DecodeError):
            parse_factions(FACTIONS, ParserMode.REMASTERED)

    def test_malformed_json(self):
        with pytest.raises(DecodeError) as exc:
            parse_factions("factions:\n[\n    gauls: { string: }\n]\n", ParserMode.REMASTERED)
        assert "JSON5" in str(exc.value)


class TestRegions:
    """Tests for descr_regions.txt."""

    def test_regions(self):
        regions = parse_regions(REGIONS)
        assert [r.id for r in regions] == ["Latium", "Gallia", "Belgica"]
        latium = regions[0]
        assert latium.city == "Roma"
        assert latium.color == (255, 0, 0)
        assert latium.hidden_resources == ["italy", "rome"]
        assert latium.legion is None

    def test_legion_line_anywhere(self):
        belgica = parse_regions(REGIONS)[2]
        assert belgica.legion == "Legio_V"
        assert belgica.city == "Samarobriva"
        assert belgica.hidden_resources == ["gaul_lands"]

    def test_short_record(self):
        with pytest.raises(DecodeError) as exc:
            parse_regions("Latium\n\tRoma\n\tromans_julii\n")
        assert exc.value.record == "Latium"
        assert "color line" in str(exc.value)

    def test_bad_color(self):
        text = "Latium\n\tRoma\n\tromans_julii\n\tLatins\n\t255 red 0\n\tnone\n"
        with pytest.raises(DecodeError):
            parse_regions(text)


class TestMercenaries:
    """Tests for descr_mercenaries.txt."""

    def test_pools(self):
        pools = parse_mercenaries(MERCENARIES)
        assert len(pools) == 1
        pool = pools[0]
        assert pool.id == "italy"
        assert pool.regions == ["Latium", "Gallia"]
        assert [u.id for u in pool.units] == ["merc_hoplite", "roman_hastati"]

    def test_pool_entry(self):
        entry = parse_mercenaries(MERCENARIES)[0].units[1]
        assert entry.exp == 0
        assert entry.cost == 720
        assert entry.replenish == (0.08, 0.12)
        assert entry.max == 2
        assert entry.initial == 1
        assert entry.restrict == ["romans_julii", "gauls"]

    def test_unit_names_with_spaces(self):
        entry = parse_pool_unit("merc samnite infantry,\texp 1 cost 580 replenish 0.1 - 0.14 max 3 initial 1")
        assert entry.id == "merc samnite infantry"
        assert entry.restrict == []

    def test_end_year_initial(self):
        entry = parse_pool_unit("merc x, exp 1 cost 580 replenish 0.1 - 0.14 max 3 initial end_year")
        assert entry.initial == 0

    def test_bad_entry_names_pool(self):
        text = "pool italy\n\tregions Latium\n\tunit merc x, exp 1 cost lots\n"
        with pytest.raises(DecodeError) as exc:
            parse_mercenaries(text)
        assert exc.value.record == "pool italy"


class TestMountsAndModels:
    """Tests for descr_mount.txt and descr_model_battle.txt."""

    def test_mounts(self):
        mounts = parse_mounts(MOUNTS)
        assert set(mounts) == {"medium horse", "elephant_african"}
        assert mounts["medium horse"].mount_class is MountClass.HORSE
        assert mounts["medium horse"].model == "medium_horse_model"
        assert mounts["elephant_african"].mount_class is MountClass.ELEPHANT

    def test_chariot_horse(self):
        text = "type scythed chariot\nclass chariot\nmodel chariot_model\nhorse_type heavy horse\n"
        mount = parse_mounts(text)["scythed chariot"]
        assert mount.mount_class is MountClass.CHARIOT
        assert mount.horse == "heavy horse"

    def test_unknown_mount_class(self):
        assert parse_mounts("type pig\nclass pig\n")["pig"].mount_class is MountClass.UNKNOWN

    def test_battle_models_keep_first_skeleton(self):
        models = parse_battle_models(MODELS)
        assert models["roman_hastati"].skeleton == "fs_javelinman"
        assert models["medium_horse_model"].skeleton == "fs_medium_horse"

    def test_missing_skeleton(self):
        with pytest.raises(DecodeError):
            parse_battle_models("type broken\nscale 1.0\n")


class TestStrat:
    """Tests for campaign faction order."""

    def test_order(self):
        assert parse_strat(STRAT) == {"gauls": 0, "romans_julii": 1, "slave": 2}

    def test_lines_outside_sections_ignored(self):
        text = "playable\n  a\nend\nfaction a, balanced\ncharacter x\nunlockable\n  b\n  a\nend\n"
        assert parse_strat(text) == {"a": 0, "b": 1}


class TestTextTables:
    """Tests for UTF-16 text tables and strings.bin."""

    def test_text_table(self):
        table = parse_text(utf16(UNIT_NAMES))
        assert table == {"roman_hastati": "Hastati", "barb_warband": "Warband", "merc_hoplite": "Hoplites"}

    def test_keys_lower_cased_and_continuations_joined(self):
        table = parse_text("{Roman_Hastati_descr}Early legion\nspearmen, second line\n{x}y\n")
        assert table["roman_hastati_descr"] == "Early legion\nspearmen, second line"

    def test_text_before_first_tag(self):
        with pytest.raises(DecodeError):
            parse_text("orphan line\n{a}b\n")

    def test_unclosed_tag(self):
        with pytest.raises(DecodeError):
            parse_text("{broken\n")

    def test_strings_bin(self):
        data = strings_bin([("Roman_Hastati", "Hastati"), ("gauls", "Gauls")])
        assert parse_strings_bin(data) == {"roman_hastati": "Hastati", "gauls": "Gauls"}

    def test_strings_bin_magic(self):
        with pytest.raises(DecodeError) as exc:
            parse_strings_bin(strings_bin([], magic=0x0700))
        assert "invalid strings.bin" in str(exc.value)

    def test_strings_bin_truncated(self):
        data = strings_bin([("key", "value")])[:-2]
        with pytest.raises(DecodeError) as exc:
            parse_strings_bin(data)
        assert "unexpected end" in str(exc.value)


class TestSprites:
    """Tests for .sd sprite catalogs."""

    def test_sprites(self):
        data = sprite_catalog(
            ["data/ui/roman/interface/strategy.tga"],
            [("roman_hastati", 0, (10, 58, 20, 84))],
        )
        sprites = parse_sprites(data)
        sprite = sprites["roman_hastati"]
        assert sprite.file == "data/ui/roman/interface/strategy.tga"
        assert (sprite.left, sprite.right, sprite.top, sprite.bottom) == (10, 58, 20, 84)

    def test_bad_magic(self):
        with pytest.raises(DecodeError):
            parse_sprites(sprite_catalog([], [], magic=5))

    def test_missing_page(self):
        data = sprite_catalog(["page.tga"], [("x", 3, (0, 1, 0, 1))])
        with pytest.raises(DecodeError) as exc:
            parse_sprites(data)
        assert "missing page 3" in str(exc.value)

    def test_missing_terminator(self):
        data = sprite_catalog(["page.tga"], [])
        broken = data.replace(b"page.tga\x00", b"page.tgaX")
        with pytest.raises(DecodeError):
            parse_sprites(broken)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
