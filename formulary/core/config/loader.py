"""
Configuration loader — reads formulary.yml into Settings.

Reads YAML, validates against the Pydantic schema, then applies
environment overrides. A missing config file is not an error: the
defaults install into ~/.local and cache into ~/.cache/formulary.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from formulary.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "formulary.yml"

# Environment overrides (take precedence over the file)
ENV_PREFIX = "FORMULARY_PREFIX"
ENV_CACHE = "FORMULARY_CACHE"


class ConfigError(Exception):
    """Raised when configuration or a formula file is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for formulary.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to formulary.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_settings(path: Path | None = None, *, search: bool = True) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to formulary.yml. If None and ``search`` is
            set, searches upward from the cwd.
        search: Whether to search for a config file when ``path`` is None.

    Returns:
        Validated Settings model with env overrides applied.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None and search:
        path = find_config_file()

    data: dict = {}
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")

        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(loaded).__name__}")

        # Relative formula dirs are anchored at the config file
        dirs = loaded.get("formula_dirs") or []
        if isinstance(dirs, list):
            loaded["formula_dirs"] = [
                str((path.parent / d).resolve()) if not Path(d).expanduser().is_absolute() else d
                for d in dirs
            ]
        data = loaded

    if os.environ.get(ENV_PREFIX):
        data["prefix"] = os.environ[ENV_PREFIX]
    if os.environ.get(ENV_CACHE):
        data["cache_dir"] = os.environ[ENV_CACHE]

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid formulary configuration: {e}") from e

    logger.info("Settings: prefix=%s cache=%s", settings.prefix, settings.cache_dir)
    return settings
