"""
Formula loader — loads formula definitions from YAML files.

Formulas live as <name>.yml files. The bundled directory ships with the
package; directories listed in formula_dirs are searched after it, and
a user formula replaces a bundled one of the same name.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from formulary.core.config.loader import ConfigError
from formulary.core.data import BUNDLED_FORMULA_DIR
from formulary.core.models.formula import Formula
from formulary.core.models.settings import Settings

logger = logging.getLogger(__name__)

_SUFFIXES = (".yml", ".yaml")


def load_formula(path: Path) -> Formula:
    """Load a single formula from a YAML file.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Formula file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        formula = Formula.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid formula {path.name}: {e}") from e

    logger.debug("Loaded formula %s %s from %s", formula.name, formula.version, path)
    return formula


def formula_search_path(settings: Settings | None = None) -> list[Path]:
    """Directories searched for formulas, lowest precedence first."""
    dirs = [BUNDLED_FORMULA_DIR]
    if settings is not None:
        dirs.extend(Path(d).expanduser() for d in settings.formula_dirs)
    return dirs


def discover_formulas(dirs: list[Path]) -> dict[str, Formula]:
    """Load every formula in the given directories.

    Broken files are logged and skipped so one bad formula does not
    hide the others. Later directories override earlier ones by name.
    """
    formulas: dict[str, Formula] = {}

    for directory in dirs:
        if not directory.is_dir():
            logger.debug("Formula directory not found: %s", directory)
            continue
        for child in sorted(directory.iterdir()):
            if child.suffix not in _SUFFIXES or not child.is_file():
                continue
            try:
                formula = load_formula(child)
            except ConfigError as e:
                logger.warning("Skipping formula %s: %s", child, e)
                continue
            if formula.name in formulas:
                logger.info("Formula '%s' overridden by %s", formula.name, child)
            formulas[formula.name] = formula

    logger.info("Discovered %d formulas: %s", len(formulas), list(formulas.keys()))
    return formulas


def find_formula(name: str, settings: Settings | None = None) -> Formula:
    """Resolve a formula by name or by path to a formula file.

    Raises:
        ConfigError: If no formula with that name exists.
    """
    candidate = Path(name)
    if candidate.suffix in _SUFFIXES and candidate.is_file():
        return load_formula(candidate)

    # Highest precedence first
    for directory in reversed(formula_search_path(settings)):
        for suffix in _SUFFIXES:
            path = directory / f"{name}{suffix}"
            if path.is_file():
                return load_formula(path)

    raise ConfigError(f"No formula named '{name}'")
