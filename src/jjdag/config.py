# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Configuration and data root resolution for jjdag.

Handles:
- Data root resolution (JJDAG_DATA_HOME, ~/.local/share)
- User config location (JJDAG_CONFIG_HOME, ~/.config/jjdag)
- Packaged YAML defaults loading (jjdag.defaults/config.yaml)
- Deep-merging user overrides over the defaults
- ANSI colour constants shared by the help and notice renderers
"""

from __future__ import annotations

import copy
import os
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml


# -----------------------
# UI constants
# -----------------------

ANSI_COLORS: dict[str, str] = {
    "blue": "\033[34m",
    "green": "\033[32m",
    "red": "\033[31m",
    "yellow": "\033[33m",
    "light_red": "\033[91m",
    "dim": "\033[2m",
    "reset": "\033[0m",
}

CONFIG_FILENAME = "config.yaml"


def colorize(text: str, color: str) -> str:
    return f"{ANSI_COLORS[color]}{text}{ANSI_COLORS['reset']}"


# -----------------------
# Config model wrapper
# -----------------------


class YAMLConfig:
    """Simple config wrapper that implements ConfigModel protocol."""

    def __init__(self, config_dict: dict[str, Any]):
        self._config = config_dict

    @property
    def jj(self) -> dict[str, Any]:
        jj_cfg = self._config.get("jj", {})
        return jj_cfg if isinstance(jj_cfg, dict) else {}

    @property
    def ui(self) -> dict[str, Any]:
        ui_cfg = self._config.get("ui", {})
        return ui_cfg if isinstance(ui_cfg, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Nested lookup using dot-separated path.
        Example: get_path("ui.theme.style", {}) -> dict style mapping
        """
        if not path:
            return default

        cur: Any = self._config
        for part in path.split("."):
            if not isinstance(cur, dict):
                return default
            if part not in cur:
                return default
            cur = cur[part]
        return cur

    def get_int(self, path: str, default: int) -> int:
        val = self.get_path(path, default)
        try:
            return int(val)
        except (TypeError, ValueError):
            return default

    def get_float(self, path: str, default: float) -> float:
        val = self.get_path(path, default)
        try:
            return float(val)
        except (TypeError, ValueError):
            return default

    def get_str_list(self, path: str, default: list[str]) -> list[str]:
        val = self.get_path(path, default)
        if not isinstance(val, list):
            return list(default)
        return [str(v) for v in val]


# -----------------------
# Data root + config home
# -----------------------


def get_data_root() -> Path:
    """Get the data root directory for jjdag.

    Resolution order:
    1. JJDAG_DATA_HOME environment variable (if set)
    2. ~/.local/share (default, XDG_DATA_HOME is ignored)
    """
    data_home = os.getenv("JJDAG_DATA_HOME")
    if data_home:
        root = Path(data_home)
    else:
        root = Path.home() / ".local" / "share"

    root.mkdir(parents=True, exist_ok=True)
    return root


def logs_dir(data_root: Path) -> Path:
    """<data_root>/jjdag/logs"""
    return data_root / "jjdag" / "logs"


def get_config_home() -> Path:
    """Directory holding the user's config.yaml.

    JJDAG_CONFIG_HOME wins; otherwise ~/.config/jjdag.
    """
    config_home = os.getenv("JJDAG_CONFIG_HOME")
    if config_home:
        return Path(config_home)
    return Path.home() / ".config" / "jjdag"


# -----------------------
# Packaged defaults loading
# -----------------------


def _defaults_dir() -> Path:
    """Return the installed path to packaged defaults directory."""
    return Path(
        importlib_resources.files("jjdag.defaults")
    )  # type: ignore[arg-type]


def _load_yaml_mapping(path: Path, label: str) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{label} {path} must load to a mapping/dict.")
    return data


def load_defaults_yaml(filename: str = CONFIG_FILENAME) -> dict[str, Any]:
    """
    Load a YAML file from jjdag/defaults/.
    """
    defaults_dir = _defaults_dir()
    path = defaults_dir / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Missing defaults YAML: {filename} "
            f"(looked in {defaults_dir})"
        )
    return _load_yaml_mapping(path, "Defaults YAML")


def load_user_config(config_home: Path | None = None) -> dict[str, Any]:
    """Load the user's override file, or {} when there is none."""
    home = config_home if config_home is not None else get_config_home()
    path = home / CONFIG_FILENAME
    if not path.exists():
        return {}
    return _load_yaml_mapping(path, "User config")


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested mappings merge, all else replaces."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_system_config(config_home: Path | None = None) -> YAMLConfig:
    """
    Load packaged defaults, apply user overrides, return a YAMLConfig wrapper.
    """
    return YAMLConfig(
        deep_merge(load_defaults_yaml(), load_user_config(config_home))
    )
