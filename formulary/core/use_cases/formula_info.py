"""
Formula info use case — what a formula declares and whether it is installed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from formulary.core.config.formula_loader import (
    discover_formulas,
    find_formula,
    formula_search_path,
)
from formulary.core.config.loader import ConfigError, load_settings
from formulary.core.models.formula import Formula
from formulary.core.models.settings import Settings
from formulary.core.models.state import InstalledFormula
from formulary.core.persistence.state_file import default_state_path, load_state
from formulary.core.services.install import (
    UnsupportedPlatformError,
    SelectedArtifact,
    detect_os,
    select_artifact,
)


@dataclass
class FormulaInfoResult:
    """A formula plus its host-platform selection and install record."""

    formula: Formula | None = None
    host_platform: str = ""
    selected: SelectedArtifact | None = None
    unsupported: str | None = None
    installed: InstalledFormula | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.formula is not None
        return {
            "formula": self.formula.model_dump(mode="json"),
            "host_platform": self.host_platform,
            "artifact": self.selected.to_dict() if self.selected else None,
            "unsupported": self.unsupported,
            "installed": self.installed.model_dump(mode="json") if self.installed else None,
        }


@dataclass
class FormulaListResult:
    """All formulas visible on the search path."""

    formulas: list[Formula] = field(default_factory=list)
    search_path: list[Path] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "search_path": [str(p) for p in self.search_path],
            "formulas": [
                {"name": f.name, "version": f.version, "desc": f.desc}
                for f in self.formulas
            ],
        }


def formula_info(
    name: str,
    settings: Settings | None = None,
    config_path: Path | None = None,
    os_name: str | None = None,
) -> FormulaInfoResult:
    """Describe a formula for the host (or an overridden) platform."""
    result = FormulaInfoResult()
    try:
        if settings is None:
            settings = load_settings(config_path)
        result.formula = find_formula(name, settings)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.host_platform = os_name or detect_os()
    try:
        result.selected = select_artifact(result.formula, result.host_platform)
    except UnsupportedPlatformError as e:
        result.unsupported = str(e)

    state = load_state(default_state_path(settings.state_dir))
    result.installed = state.installed.get(result.formula.name)
    return result


def list_formulas(
    settings: Settings | None = None,
    config_path: Path | None = None,
) -> FormulaListResult:
    """List the formulas found on the search path."""
    result = FormulaListResult()
    try:
        if settings is None:
            settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.search_path = formula_search_path(settings)
    found = discover_formulas(result.search_path)
    result.formulas = [found[k] for k in sorted(found)]
    return result
