"""
Fetch use case — download and verify a release without installing it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from formulary.core.config.formula_loader import find_formula
from formulary.core.config.loader import ConfigError, load_settings
from formulary.core.models.settings import Settings
from formulary.core.persistence.audit import AuditEntry, AuditWriter
from formulary.core.services.install import (
    InstallError,
    SelectedArtifact,
    fetch_artifact,
    select_artifact,
)

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Result of fetching a formula's archive."""

    formula_name: str = ""
    version: str = ""
    selected: SelectedArtifact | None = None
    path: Path | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "formula": self.formula_name,
            "version": self.version,
            "artifact": self.selected.to_dict() if self.selected else None,
            "path": str(self.path) if self.path else None,
        }


def fetch_formula(
    name: str,
    settings: Settings | None = None,
    config_path: Path | None = None,
    os_name: str | None = None,
) -> FetchResult:
    """Download a formula's release archive into the cache and verify it."""
    result = FetchResult()

    try:
        if settings is None:
            settings = load_settings(config_path)
        formula = find_formula(name, settings)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.formula_name = formula.name
    result.version = formula.version
    audit = AuditWriter(state_dir=settings.state_dir)

    try:
        result.selected = select_artifact(formula, os_name)
        result.path = fetch_artifact(
            result.selected, settings.cache_path, timeout=settings.download_timeout,
        )
    except InstallError as e:
        result.error = str(e)

    audit.write(AuditEntry(
        operation="fetch",
        formula=formula.name,
        version=formula.version,
        platform=result.selected.platform if result.selected else (os_name or ""),
        status="failed" if result.error else "ok",
        artifacts=[str(result.path)] if result.path else [],
        error=result.error,
    ))
    return result
