from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises the declarative settings of the toolkit (logging
setup, manifest output formatting). It loads YAML files packaged with
*pom_toolkit* and optionally merges them with user overrides.

On Windows: ``%LOCALAPPDATA%\\PomToolkit\\config\\*.yml``
On Unix: ``~/.pom_toolkit/*.yml``
Either location can be replaced by setting ``POM_TOOLKIT_CONFIG_DIR``.

A manager is a plain object: create one where configuration is needed and pass
it along, there is no process-wide instance.
"""

import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]

_SERIALIZATION_DEFAULTS: Dict[str, Any] = {
    "indent": "  ",
    "xml_declaration": True,
    "normalize_leaves": True,
}


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("POM_TOOLKIT_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "PomToolkit" / "config"
        return Path.home() / "AppData" / "Local" / "PomToolkit" / "config"
    return Path.home() / ".pom_toolkit"


def _read_packaged(filename: str) -> str:
    return resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")


def _ensure_user_configs_exist(user_config_dir: Path, default_filenames: Dict[str, str]) -> None:
    """Copy default config files to user directory if they don't exist."""
    try:
        user_config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Could not create user config directory %s: %s", user_config_dir, e)
        return

    for filename in default_filenames.values():
        user_config_path = user_config_dir / filename
        if user_config_path.exists():
            continue
        try:
            user_config_path.write_text(_read_packaged(filename), encoding='utf-8')
            logger.info("Created user config: %s", user_config_path)
        except (FileNotFoundError, OSError) as e:
            logger.warning("Could not copy default config %s: %s", filename, e)


class ConfigManager:
    """Loads and exposes configuration sections as dictionaries.

    Parameters
    ----------
    user_config_dir
        Directory holding user overrides. Defaults to the platform location
        (see module docstring).
    seed_user_configs
        When *True*, packaged defaults are copied into *user_config_dir* on
        first use so users have a file to edit.
    """

    _DEFAULT_FILENAMES = {
        "logging": "logging.yml",
        "serialization": "serialization.yml",
    }

    def __init__(self, user_config_dir: Optional[Path] = None,
                 seed_user_configs: bool = False) -> None:
        self._user_config_dir = Path(user_config_dir) if user_config_dir else _get_user_config_dir()
        self._seed_user_configs = seed_user_configs
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    @property
    def user_config_dir(self) -> Path:
        return self._user_config_dir

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    def get_serialization_config(self) -> Dict[str, Any]:
        merged = dict(_SERIALIZATION_DEFAULTS)
        merged.update(self._data.get("serialization", {}))
        return merged

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []

        if self._seed_user_configs:
            _ensure_user_configs_exist(self._user_config_dir, self._DEFAULT_FILENAMES)

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                packaged_data = yaml.safe_load(_read_packaged(filename)) or {}
                merged_cfg.update(packaged_data)
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_path = self._user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    merged_cfg.update(user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))
