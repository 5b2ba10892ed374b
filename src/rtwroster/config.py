"""
Roster Configuration

Loads the module manifest from a YAML file or environment variables. The
manifest names the mod, says where its data lives and carries the
presentation tweaks the source files cannot express (display names for
pools and AORs, era definitions, faction aliases, speed overrides).
"""

import os
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from rtwroster.parser.buildings import ParserMode
from rtwroster.parser.errors import RosterError
from rtwroster.resolver.context import Context


class ConfigError(RosterError):
    """The manifest is missing, unreadable or holds invalid values."""


# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "rtwroster.yaml",
    Path.home() / ".rtwroster" / "config.yaml",
]


DEFAULT_CONFIG: Dict[str, Any] = {
    "id": None,
    "name": None,
    "mode": ParserMode.REMASTERED.value,
    "src_dir": ".",
    "fallback_dir": None,
    "campaign": "imperial_campaign",
    "banner": "",

    # Presentation
    "aliases": {},            # alias -> faction id
    "eras": {},               # era id -> name, icon, context choice sets
    "exclude": [],            # faction ids to leave out
    "pools": [],              # mercenary pool display names, by index
    "aors": [],               # area of recruitment display names, by index
    "speeds": {},             # skeleton -> final speed, not scaled by the unit
    "unit_info_images": False,

    # Loading
    "max_workers": 8,
}

ENV_MAPPINGS = {
    "RTWROSTER_SRC_DIR": "src_dir",
    "RTWROSTER_FALLBACK_DIR": "fallback_dir",
    "RTWROSTER_MODE": "mode",
}


@dataclass
class EraSpec:
    """One era: how it is shown and which context judges its units."""
    id: str
    name: str
    icon: str
    context: Context


class RosterConfig:
    """Configuration for one module (one mod build)."""

    def __init__(self, config_path: Optional[Path] = None, values: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None
        self._base_dir = Path.cwd()

        if values is not None:
            self._config.update(values)
        else:
            self._load_config(Path(config_path) if config_path else None)

        self._apply_env_overrides()
        self._eras = self._parse_eras()
        self._validate()

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file."""
        if explicit_path is not None and not explicit_path.exists():
            raise ConfigError(f"config file not found: {explicit_path}")
        search_paths = [explicit_path] if explicit_path else CONFIG_SEARCH_PATHS

        for config_path in search_paths:
            if config_path and config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        user_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    raise ConfigError(f"failed to load config from {config_path}: {e}") from e
                if not isinstance(user_config, dict):
                    raise ConfigError(f"config file {config_path} must hold a mapping")
                self._config.update(user_config)
                self._config_path = config_path
                self._base_dir = config_path.parent
                return

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for env_var, config_key in ENV_MAPPINGS.items():
            if env_var in os.environ:
                self._config[config_key] = os.environ[env_var]

    def _parse_eras(self) -> "OrderedDict[str, EraSpec]":
        raw = self._config.get("eras") or {}
        if not isinstance(raw, dict):
            raise ConfigError("eras must be a mapping of era id to definition")
        eras = OrderedDict()
        for era_id, spec in raw.items():
            spec = spec or {}
            if not isinstance(spec, dict):
                raise ConfigError(f"era {era_id!r} must be a mapping")
            try:
                context = Context.from_dict(spec)
            except RosterError as e:
                raise ConfigError(f"invalid era {era_id!r}: {e}") from e
            eras[str(era_id)] = EraSpec(
                id=str(era_id),
                name=str(spec.get("name") or era_id),
                icon=str(spec.get("icon") or ""),
                context=context,
            )
        return eras

    def _validate(self) -> None:
        if not self._config.get("id"):
            raise ConfigError("config needs a module id")
        try:
            ParserMode(self._config["mode"])
        except ValueError:
            choices = ", ".join(m.value for m in ParserMode)
            raise ConfigError(f"invalid mode {self._config['mode']!r} (expected one of {choices})") from None
        for key in ("aliases", "speeds"):
            if not isinstance(self._config.get(key) or {}, dict):
                raise ConfigError(f"{key} must be a mapping")
        for key in ("exclude", "pools", "aors"):
            if not isinstance(self._config.get(key) or [], list):
                raise ConfigError(f"{key} must be a list")
        for skeleton, speed in (self._config.get("speeds") or {}).items():
            if not isinstance(speed, int) or isinstance(speed, bool) or speed < 0:
                raise ConfigError(f"speed for {skeleton!r} must be a non-negative integer")
        workers = self._config.get("max_workers")
        if not isinstance(workers, int) or workers < 1:
            raise ConfigError("max_workers must be a positive integer")

    def _path(self, value) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else self._base_dir / path

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if built from values."""
        return self._config_path

    @property
    def id(self) -> str:
        return str(self._config["id"])

    @property
    def name(self) -> str:
        return str(self._config.get("name") or self.id)

    @property
    def mode(self) -> ParserMode:
        return ParserMode(self._config["mode"])

    @property
    def src_dir(self) -> Path:
        """Folder holding the mod's ``data`` directory."""
        return self._path(self._config["src_dir"])

    @property
    def fallback_dir(self) -> Optional[Path]:
        """Folder searched when a file is missing from ``src_dir`` (usually the base game)."""
        value = self._config.get("fallback_dir")
        return self._path(value) if value else None

    @property
    def campaign(self) -> str:
        return str(self._config["campaign"])

    @property
    def banner(self) -> str:
        return str(self._config.get("banner") or "")

    @property
    def aliases(self) -> Dict[str, str]:
        return {str(k): str(v) for k, v in (self._config.get("aliases") or {}).items()}

    @property
    def eras(self) -> "OrderedDict[str, EraSpec]":
        return self._eras

    @property
    def exclude(self) -> List[str]:
        return [str(f) for f in self._config.get("exclude") or []]

    @property
    def pools(self) -> List[str]:
        return [str(p) for p in self._config.get("pools") or []]

    @property
    def aors(self) -> List[str]:
        return [str(a) for a in self._config.get("aors") or []]

    @property
    def speeds(self) -> Dict[str, int]:
        return dict(self._config.get("speeds") or {})

    @property
    def unit_info_images(self) -> bool:
        return bool(self._config.get("unit_info_images"))

    @property
    def max_workers(self) -> int:
        return self._config["max_workers"]

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "id": self.id,
            "name": self.name,
            "mode": self.mode.value,
            "src_dir": str(self.src_dir),
            "fallback_dir": str(self.fallback_dir) if self.fallback_dir else None,
            "campaign": self.campaign,
            "banner": self.banner,
            "eras": list(self.eras),
            "exclude": self.exclude,
            "max_workers": self.max_workers,
            "config_file": str(self._config_path) if self._config_path else None,
        }


def load_config(config_path: Optional[Path] = None) -> RosterConfig:
    """Load a manifest from ``config_path`` or the default search paths."""
    return RosterConfig(config_path)
