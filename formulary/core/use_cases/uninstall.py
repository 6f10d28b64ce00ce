"""
Uninstall and listing use cases — driven entirely by the state file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from formulary.core.config.loader import ConfigError, load_settings
from formulary.core.models.settings import Settings
from formulary.core.models.state import InstalledFormula
from formulary.core.persistence.audit import AuditEntry, AuditWriter
from formulary.core.persistence.state_file import default_state_path, load_state, save_state
from formulary.core.services.install import remove_artifact

logger = logging.getLogger(__name__)


@dataclass
class UninstallResult:
    """Result of removing an installed formula."""

    name: str = ""
    version: str = ""
    removed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "formula": self.name,
            "version": self.version,
            "removed": self.removed,
            "missing": self.missing,
        }


@dataclass
class ListResult:
    """Installed formulas, keyed by name."""

    installed: list[InstalledFormula] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"installed": [e.model_dump(mode="json") for e in self.installed]}


def uninstall_formula(
    name: str,
    settings: Settings | None = None,
    config_path: Path | None = None,
) -> UninstallResult:
    """Remove the recorded artifacts of an installed formula."""
    result = UninstallResult(name=name)

    try:
        if settings is None:
            settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    state_path = default_state_path(settings.state_dir)
    state = load_state(state_path)
    entry = state.installed.get(name)
    if entry is None:
        result.error = f"{name} is not installed"
        return result

    result.version = entry.version
    try:
        for artifact in entry.artifacts:
            if remove_artifact(Path(artifact)):
                result.removed.append(artifact)
            else:
                result.missing.append(artifact)
    except OSError as e:
        result.error = f"Cannot remove {name}: {e}"
        return result

    state.forget(name)
    save_state(state, state_path)

    AuditWriter(state_dir=settings.state_dir).write(AuditEntry(
        operation="uninstall",
        formula=name,
        version=entry.version,
        platform=entry.platform,
        status="ok",
        artifacts=result.removed,
    ))
    return result


def list_installed(
    settings: Settings | None = None,
    config_path: Path | None = None,
) -> ListResult:
    """List every formula recorded in the state file."""
    result = ListResult()
    try:
        if settings is None:
            settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    state = load_state(default_state_path(settings.state_dir))
    result.installed = sorted(state.installed.values(), key=lambda e: e.name)
    return result
