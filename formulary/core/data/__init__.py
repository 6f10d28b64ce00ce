"""
Bundled data — formulas shipped inside the package.

Usage::

    from formulary.core.data import BUNDLED_FORMULA_DIR, bundled_formula_path

    path = bundled_formula_path("envelope")   # …/formulas/envelope.yml
"""

from __future__ import annotations

from pathlib import Path

_DATA_DIR = Path(__file__).parent

BUNDLED_FORMULA_DIR = _DATA_DIR / "formulas"


def bundled_formula_path(name: str) -> Path:
    """Path of a bundled formula file (may not exist)."""
    return BUNDLED_FORMULA_DIR / f"{name}.yml"
