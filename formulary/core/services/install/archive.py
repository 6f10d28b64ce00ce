"""
L4 Execution — Archive extraction and staged-file lookup.

Supports tar.gz, tgz, tar, and zip release archives.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
from pathlib import Path

from formulary.core.services.install.errors import ArtifactNotFoundError, InstallError

logger = logging.getLogger(__name__)


def _is_within(root: Path, target: Path) -> bool:
    try:
        target.resolve().relative_to(root.resolve())
        return True
    except ValueError:
        return False


def extract_archive(archive: Path, dest: Path) -> Path:
    """Extract a release archive into a fresh staging directory.

    When the archive holds exactly one top-level directory, the returned
    staging root is that directory, so relative paths in the formula are
    written against the release contents.

    Raises:
        InstallError: Unknown archive type, unsafe member path, or a
            corrupt archive.
    """
    if dest.exists():
        shutil.rmtree(dest)
    dest.mkdir(parents=True)

    name = archive.name
    try:
        if name.endswith((".tar.gz", ".tgz", ".tar")):
            with tarfile.open(archive, "r:*") as tf:
                for member in tf.getmembers():
                    if not _is_within(dest, dest / member.name):
                        raise InstallError(f"Unsafe path in archive {name}: {member.name}")
                tf.extractall(dest, filter="data")
        elif name.endswith(".zip"):
            with zipfile.ZipFile(archive, "r") as zf:
                for member_name in zf.namelist():
                    if not _is_within(dest, dest / member_name):
                        raise InstallError(f"Unsafe path in archive {name}: {member_name}")
                zf.extractall(dest)
        else:
            raise InstallError(f"Unsupported archive type: {name}")
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as exc:
        raise InstallError(f"Extract failed for {name}: {exc}") from exc

    entries = list(dest.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        logger.debug("Descending into single top-level directory %s", entries[0].name)
        return entries[0]
    return dest


def locate(staging_root: Path, relative: str) -> Path:
    """Find a file in the staged release.

    Looks at the exact relative path first, then searches the tree for a
    file with the same name.

    Raises:
        ArtifactNotFoundError: Nothing matches.
    """
    direct = staging_root / relative
    if direct.is_file():
        return direct

    target_name = Path(relative).name
    for p in sorted(staging_root.rglob(target_name)):
        if p.is_file():
            logger.debug("Found %s at %s", relative, p)
            return p

    available = sorted(str(p.relative_to(staging_root)) for p in staging_root.rglob("*") if p.is_file())
    raise ArtifactNotFoundError(
        f"'{relative}' not found in release archive "
        f"(files: {', '.join(available[:10]) or 'none'})"
    )
