"""
Install use case — fetch, verify, and place one formula's release.

The full vertical slice: load settings and formula, select the platform
archive, check build tools, download and verify, stage, render the man
page, place both artifacts, and record the result.
"""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

from formulary.core.config.formula_loader import find_formula
from formulary.core.config.loader import ConfigError, load_settings
from formulary.core.models.formula import Formula
from formulary.core.models.settings import Settings
from formulary.core.models.state import InstalledFormula
from formulary.core.persistence.audit import AuditEntry, AuditWriter
from formulary.core.persistence.state_file import default_state_path, load_state, save_state
from formulary.core.services.install import (
    InstallError,
    SelectedArtifact,
    UnsupportedPlatformError,
    extract_archive,
    fetch_artifact,
    install_binary,
    install_man_page,
    locate,
    remove_artifact,
    render_man_page,
    require_build_dependencies,
    select_artifact,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of installing a formula."""

    formula: Formula | None = None
    selected: SelectedArtifact | None = None
    binary: Path | None = None
    man_page: Path | None = None
    dry_run: bool = False
    skipped: bool = False
    duration_ms: int = 0
    error: str | None = None

    @property
    def artifacts(self) -> list[Path]:
        return [p for p in (self.binary, self.man_page) if p is not None]

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        assert self.formula is not None
        result["formula"] = self.formula.name
        result["version"] = self.formula.version
        result["artifact"] = self.selected.to_dict() if self.selected else None
        result["binary"] = str(self.binary) if self.binary else None
        result["man_page"] = str(self.man_page) if self.man_page else None
        result["dry_run"] = self.dry_run
        result["skipped"] = self.skipped
        result["duration_ms"] = self.duration_ms
        return result


def planned_targets(formula: Formula, settings: Settings) -> tuple[Path, Path]:
    """Where the binary and man page of a formula will be installed."""
    man = formula.install.man_page
    return (
        settings.bin_dir / formula.install.binary,
        settings.man_root / f"man{man.section}" / Path(man.output).name,
    )


def install_formula(
    name: str,
    settings: Settings | None = None,
    config_path: Path | None = None,
    os_name: str | None = None,
    dry_run: bool = False,
    force: bool = False,
) -> InstallResult:
    """Install a formula's prebuilt release.

    Args:
        name: Formula name (or path to a formula file).
        settings: Preloaded settings; loaded from ``config_path`` if None.
        config_path: Optional explicit path to formulary.yml.
        os_name: Platform override (``macos`` / ``linux``).
        dry_run: Select and plan only; nothing is fetched or written.
        force: Reinstall even when the same release is already installed.

    Returns:
        InstallResult. Failures are reported in ``error``; no artifact
        is placed unless every step before placement succeeded.
    """
    result = InstallResult(dry_run=dry_run)
    start = time.monotonic()

    try:
        if settings is None:
            settings = load_settings(config_path)
        formula = find_formula(name, settings)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.formula = formula
    state_path = default_state_path(settings.state_dir)
    audit = AuditWriter(state_dir=settings.state_dir)

    try:
        selected = select_artifact(formula, os_name)
    except UnsupportedPlatformError as e:
        result.error = str(e)
        _audit(audit, "install", formula, None, "failed", start, [], error=str(e), os_name=e.os_name)
        return result
    result.selected = selected

    bin_target, man_target = planned_targets(formula, settings)

    if dry_run:
        result.binary, result.man_page = bin_target, man_target
        return result

    # ── Idempotency: same release already in place ──────────────
    state = load_state(state_path)
    existing = state.installed.get(formula.name)
    if (
        existing is not None
        and not force
        and existing.matches(formula.version, selected.sha256)
        and all(Path(p).is_file() for p in existing.artifacts)
    ):
        logger.info("%s %s already installed", formula.name, formula.version)
        result.binary, result.man_page = Path(existing.binary), Path(existing.man_page)
        result.skipped = True
        _audit(audit, "install", formula, selected, "skipped", start, result.artifacts)
        return result

    placed: list[Path] = []
    try:
        require_build_dependencies(formula)
        archive = fetch_artifact(
            selected, settings.cache_path, timeout=settings.download_timeout,
        )

        with tempfile.TemporaryDirectory(prefix="formulary-") as tmp:
            staging = extract_archive(archive, Path(tmp) / "stage")
            binary_src = locate(staging, formula.install.binary)
            rendered = render_man_page(
                formula.install.man_page, staging, timeout=settings.converter_timeout,
            )

            # ── Placement: only after every check passed ────────
            result.binary = install_binary(
                binary_src, settings.bin_dir, formula.install.binary,
            )
            placed.append(result.binary)
            result.man_page = install_man_page(
                rendered, settings.man_root, formula.install.man_page.section,
            )
            placed.append(result.man_page)
    except (InstallError, OSError) as e:
        return _fail(result, e, placed, audit, formula, selected, start)

    state.record(InstalledFormula(
        name=formula.name,
        version=formula.version,
        platform=selected.platform,
        url=selected.url,
        sha256=selected.sha256,
        binary=str(result.binary),
        man_page=str(result.man_page),
    ))
    try:
        save_state(state, state_path)
    except OSError as e:
        return _fail(result, e, placed, audit, formula, selected, start)

    # Artifacts of a previous release that this one no longer places
    if existing is not None:
        current = {str(p) for p in result.artifacts}
        for old in existing.artifacts:
            if old not in current:
                _discard(Path(old))

    result.duration_ms = int((time.monotonic() - start) * 1000)
    _audit(audit, "install", formula, selected, "ok", start, result.artifacts)
    logger.info("Installed %s %s in %dms", formula.name, formula.version, result.duration_ms)
    return result


def _discard(path: Path) -> None:
    try:
        remove_artifact(path)
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)


def _fail(
    result: InstallResult,
    error: Exception,
    placed: list[Path],
    audit: AuditWriter,
    formula: Formula,
    selected: SelectedArtifact,
    start: float,
) -> InstallResult:
    """Roll back files placed by this run and report the failure."""
    for path in placed:
        _discard(path)
    result.binary = result.man_page = None
    result.error = str(error)
    result.duration_ms = int((time.monotonic() - start) * 1000)
    _audit(audit, "install", formula, selected, "failed", start, [], error=str(error))
    return result


def _audit(
    writer: AuditWriter,
    operation: str,
    formula: Formula,
    selected: SelectedArtifact | None,
    status: str,
    start: float,
    artifacts: list[Path],
    error: str | None = None,
    os_name: str | None = None,
) -> None:
    writer.write(AuditEntry(
        operation=operation,
        formula=formula.name,
        version=formula.version,
        platform=selected.platform if selected else (os_name or ""),
        status=status,
        duration_ms=int((time.monotonic() - start) * 1000),
        artifacts=[str(p) for p in artifacts],
        error=error,
        context={"url": selected.url} if selected else {},
    ))
