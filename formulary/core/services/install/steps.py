"""
L4 Execution — Install steps.

Each step places or produces exactly one file. Existing files at the
target are overwritten, so reinstalling the same release leaves the
same result.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from formulary.core.models.formula import ManPage
from formulary.core.services.install.archive import locate
from formulary.core.services.install.errors import ConversionError, InstallError
from formulary.core.services.install.subprocess_runner import run_command

logger = logging.getLogger(__name__)


def _copy_over(source: Path, target: Path, mode: int) -> Path:
    """Copy a file into place, replacing whatever is there.

    Raises:
        InstallError: The target cannot be written.
    """
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink() or target.exists():
            target.unlink()
        shutil.copyfile(source, target)
        os.chmod(target, mode)
    except OSError as e:
        raise InstallError(f"Cannot install {target}: {e}") from e
    return target


def install_binary(source: Path, bin_dir: Path, name: str | None = None) -> Path:
    """Install an executable into ``bin_dir`` with mode 0755."""
    target = bin_dir / (name or source.name)
    _copy_over(source, target, 0o755)
    logger.info("Installed binary %s", target)
    return target


def converter_command(man_page: ManPage, source: str) -> list[str]:
    """Build the converter invocation for a man page."""
    return [man_page.converter, *man_page.args, source, "-o", man_page.output]


def render_man_page(
    man_page: ManPage,
    staging_root: Path,
    *,
    timeout: int = 120,
) -> Path:
    """Render a man page from its markdown source inside the staging tree.

    Returns:
        Path of the rendered page in ``staging_root``.

    Raises:
        ArtifactNotFoundError: The markdown source is not in the release.
        ConversionError: The converter failed or wrote nothing.
    """
    source = locate(staging_root, man_page.source)
    cmd = converter_command(man_page, str(source.relative_to(staging_root)))

    result = run_command(cmd, timeout=timeout, cwd=str(staging_root))
    if not result["ok"]:
        detail = result.get("stderr") or ""
        raise ConversionError(
            f"{man_page.converter} failed for {man_page.source}: {result['error']}"
            + (f"\n{detail.strip()}" if detail.strip() else "")
        )

    rendered = staging_root / man_page.output
    if not rendered.is_file() or rendered.stat().st_size == 0:
        raise ConversionError(f"{man_page.converter} produced no output at {man_page.output}")

    logger.debug("Rendered %s in %sms", rendered, result.get("elapsed_ms", 0))
    return rendered


def install_man_page(rendered: Path, man_root: Path, section: int = 1) -> Path:
    """Install a rendered man page into ``man_root/man<section>/``."""
    target = man_root / f"man{section}" / rendered.name
    _copy_over(rendered, target, 0o644)
    logger.info("Installed man page %s", target)
    return target


def remove_artifact(path: Path) -> bool:
    """Remove an installed file. Returns False when it was already gone."""
    if path.is_symlink() or path.exists():
        path.unlink()
        logger.info("Removed %s", path)
        return True
    logger.debug("Already absent: %s", path)
    return False
