"""
Formula check use case — validate a formula and report issues.

Schema errors are caught by the loader; this adds the consistency
checks a schema cannot express, such as every release URL carrying
the declared version.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from formulary.core.config.formula_loader import find_formula
from formulary.core.config.loader import ConfigError, load_settings
from formulary.core.models.formula import Formula
from formulary.core.models.settings import Settings

# Target-triple fragment each platform's archive name must carry
_PLATFORM_MARKERS = {
    "macos": "apple-darwin",
    "linux": "linux",
}

_ARCHIVE_SUFFIXES = (".tar.gz", ".tgz", ".tar", ".zip")


@dataclass
class FormulaCheckResult:
    """Result of formula validation."""

    valid: bool = False
    formula: Formula | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "formula": self.formula.name if self.formula else None,
            "version": self.formula.version if self.formula else None,
            "errors": self.errors,
            "warnings": self.warnings,
        }


def check_formula_model(formula: Formula) -> FormulaCheckResult:
    """Run the consistency checks on an already-loaded formula."""
    result = FormulaCheckResult(formula=formula)
    version = formula.version

    if not formula.releases:
        result.errors.append("No releases declared; nothing can be installed.")

    for platform_key, artifact in formula.releases.items():
        url = formula.render_url(artifact)
        filename = url.rsplit("/", 1)[-1]

        if f"/{version}/" not in url or f"-{version}-" not in filename:
            result.errors.append(
                f"{platform_key}: URL does not embed version {version}: {url}"
            )

        marker = _PLATFORM_MARKERS.get(platform_key)
        if marker and marker not in filename:
            result.errors.append(
                f"{platform_key}: archive name '{filename}' does not target {marker}"
            )

        if not filename.endswith(_ARCHIVE_SUFFIXES):
            result.errors.append(
                f"{platform_key}: unsupported archive type '{filename}'"
            )

        if not url.startswith("https://"):
            result.warnings.append(f"{platform_key}: URL is not HTTPS: {url}")

        if artifact.arch not in filename:
            result.warnings.append(
                f"{platform_key}: archive name does not mention arch {artifact.arch}"
            )

    converter = formula.install.man_page.converter
    if converter not in formula.build_tools():
        result.warnings.append(
            f"Converter '{converter}' is not declared as a build dependency."
        )

    if not formula.install.man_page.source.endswith(".md"):
        result.warnings.append(
            f"Man page source '{formula.install.man_page.source}' is not markdown."
        )

    result.valid = len(result.errors) == 0
    return result


def check_formula(
    name: str,
    settings: Settings | None = None,
    config_path: Path | None = None,
) -> FormulaCheckResult:
    """Load a formula by name and validate it."""
    try:
        if settings is None:
            settings = load_settings(config_path)
        formula = find_formula(name, settings)
    except ConfigError as e:
        result = FormulaCheckResult()
        result.errors.append(str(e))
        return result

    return check_formula_model(formula)
