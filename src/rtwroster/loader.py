"""
Mod folder loading.

Finds every source file of a mod (falling back to the base game for files
the mod does not override), decodes them concurrently and gathers the
results into a RawModel for the resolver.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rtwroster.config import RosterConfig
from rtwroster.parser.battle_models import BattleModel, parse_battle_models
from rtwroster.parser.buildings import Building, ParserMode, parse_buildings
from rtwroster.parser.errors import RosterError
from rtwroster.parser.factions import Faction, parse_factions
from rtwroster.parser.mercenaries import Pool, parse_mercenaries
from rtwroster.parser.mounts import Mount, parse_mounts
from rtwroster.parser.regions import Region, parse_regions
from rtwroster.parser.sprites import Sprite, parse_sprites
from rtwroster.parser.strat import parse_strat
from rtwroster.parser.text import parse_strings_bin, parse_text
from rtwroster.parser.units import Unit, parse_units
from rtwroster.resolver.aliases import AliasTable

logger = logging.getLogger(__name__)


class LoadError(RosterError):
    """A source file is missing or failed to decode."""
    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


@dataclass
class RawModel:
    """Everything decoded from one mod, before resolution."""
    units: List[Unit] = field(default_factory=list)
    factions: List[Faction] = field(default_factory=list)
    regions: List[Region] = field(default_factory=list)
    pools: List[Pool] = field(default_factory=list)
    buildings: List[Building] = field(default_factory=list)
    aliases: AliasTable = field(default_factory=AliasTable)
    text: Dict[str, str] = field(default_factory=dict)
    strat: Dict[str, int] = field(default_factory=dict)
    mounts: Dict[str, Mount] = field(default_factory=dict)
    models: Dict[str, BattleModel] = field(default_factory=dict)
    sprites: Dict[str, Sprite] = field(default_factory=dict)


STRINGS_BIN_SUFFIX = ".strings.bin"


class ModFolder:
    """
    Path lookup for one mod.

    Root files are looked up under ``src_dir`` then ``fallback_dir``.
    Campaign files are looked up in the campaign folder, then the shared
    ``maps/base`` folder, first in the mod and then in the fallback.
    """

    def __init__(self, config: RosterConfig):
        self.config = config

    def _roots(self) -> List[Path]:
        roots = [self.config.src_dir]
        if self.config.fallback_dir is not None:
            roots.append(self.config.fallback_dir)
        return roots

    def _first_existing(self, candidates: List[Path]) -> Path:
        for path in candidates:
            if path.exists():
                return path
        return candidates[-1]

    def root_file(self, relpath: str) -> Path:
        return self._first_existing([root / relpath for root in self._roots()])

    def campaign_file(self, name: str) -> Path:
        candidates = []
        for root in self._roots():
            candidates.append(root / "data" / "world" / "maps" / "campaign" / self.config.campaign / name)
            candidates.append(root / "data" / "world" / "maps" / "base" / name)
        return self._first_existing(candidates)

    def text_file(self, relpath: str) -> Optional[Path]:
        """A text table, either plain or as a ``.strings.bin``; None if absent."""
        for root in self._roots():
            plain = root / relpath
            if plain.exists():
                return plain
            binary = root / (relpath + STRINGS_BIN_SUFFIX)
            if binary.exists():
                return binary
        return None

    @property
    def export_descr_unit(self) -> Path:
        return self.root_file("data/export_descr_unit.txt")

    @property
    def export_descr_buildings(self) -> Path:
        return self.root_file("data/export_descr_buildings.txt")

    @property
    def descr_sm_factions(self) -> Path:
        return self.root_file("data/descr_sm_factions.txt")

    @property
    def descr_mount(self) -> Path:
        return self.root_file("data/descr_mount.txt")

    @property
    def descr_model_battle(self) -> Path:
        return self.root_file("data/descr_model_battle.txt")

    @property
    def descr_mercenaries(self) -> Path:
        return self.campaign_file("descr_mercenaries.txt")

    @property
    def descr_regions(self) -> Path:
        return self.campaign_file("descr_regions.txt")

    @property
    def descr_strat(self) -> Path:
        return self.campaign_file("descr_strat.txt")

    @property
    def text_files(self) -> List[Path]:
        expanded = "data/text/expanded.txt" if self.config.mode is ParserMode.MEDIEVAL2 else "data/text/expanded_bi.txt"
        found = [self.text_file("data/text/export_units.txt"), self.text_file(expanded)]
        return [path for path in found if path is not None]

    @property
    def strategy_sd(self) -> Optional[Path]:
        path = self.root_file("data/ui/strategy.sd")
        return path if path.exists() else None


# =============================================================================
# DECODING TASKS
# =============================================================================

def read_text(path: Path) -> str:
    # Mod files are mostly Windows-1252; latin-1 maps every byte
    data = path.read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _run(path: Path, decode: Callable, binary: bool, mode: ParserMode):
    """Read and decode one file; every failure becomes a LoadError."""
    if not path.exists():
        raise LoadError(path, "file not found")
    try:
        data = path.read_bytes() if binary else read_text(path)
        result = decode(data, mode)
    except RosterError as e:
        raise LoadError(path, str(e)) from e
    except (OSError, UnicodeError) as e:
        raise LoadError(path, f"failed to read: {e}") from e
    logger.info(f"Decoded {path.name}: {_describe(result)}")
    return result


def _describe(result) -> str:
    if isinstance(result, tuple):
        return ", ".join(_describe(part) for part in result)
    return f"{len(result)} entries"


def load_raw_model(config: RosterConfig) -> RawModel:
    """
    Decode every source file of a mod.

    One task per file runs on a thread pool; the model is only assembled
    once every task has finished.

    Raises:
        LoadError: any file is missing or fails to decode
    """
    folder = ModFolder(config)
    mode = config.mode
    logger.info(f"Loading {config.id} from {config.src_dir} ({mode.value})")

    jobs = {
        "units": (folder.export_descr_unit, parse_units, False),
        "buildings": (folder.export_descr_buildings, parse_buildings, False),
        "factions": (folder.descr_sm_factions, parse_factions, False),
        "mounts": (folder.descr_mount, parse_mounts, False),
        "models": (folder.descr_model_battle, parse_battle_models, False),
        "pools": (folder.descr_mercenaries, parse_mercenaries, False),
        "regions": (folder.descr_regions, parse_regions, False),
        "strat": (folder.descr_strat, parse_strat, False),
    }
    text_jobs = [
        (path, parse_strings_bin if path.name.endswith(STRINGS_BIN_SUFFIX) else parse_text)
        for path in folder.text_files
    ]
    sprite_path = folder.strategy_sd

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures: Dict[str, Future] = {
            name: executor.submit(_run, path, decode, binary, mode)
            for name, (path, decode, binary) in jobs.items()
        }
        text_futures = [executor.submit(_run, path, decode, True, mode) for path, decode in text_jobs]
        sprite_future = executor.submit(_run, sprite_path, parse_sprites, True, mode) if sprite_path else None

        results = {name: future.result() for name, future in futures.items()}
        tables = [future.result() for future in text_futures]
        sprites = sprite_future.result() if sprite_future is not None else {}

    if not text_jobs:
        logger.warning("No text tables found; names fall back to dictionary keys")

    aliases, buildings = results["buildings"]
    text: Dict[str, str] = {}
    for table in tables:
        text.update(table)

    raw = RawModel(
        units=results["units"],
        factions=results["factions"],
        regions=results["regions"],
        pools=results["pools"],
        buildings=buildings,
        aliases=AliasTable(aliases),
        text=text,
        strat=results["strat"],
        mounts=results["mounts"],
        models=results["models"],
        sprites=sprites,
    )
    logger.info(
        f"Loaded {len(raw.units)} units, {len(raw.factions)} factions, "
        f"{len(raw.buildings)} building levels, {len(raw.regions)} regions"
    )
    return raw
