"""
L4 Execution — Download and checksum verification.

Release archives are fetched once into the cache directory and verified
against the formula's SHA-256 before anything is extracted.
"""

from __future__ import annotations

import hashlib
import logging
import urllib.request
from pathlib import Path

from formulary import __version__
from formulary.core.services.install.errors import ChecksumMismatchError, DownloadError
from formulary.core.services.install.selection import SelectedArtifact

logger = logging.getLogger(__name__)

_CHUNK = 8192


def sha256_file(path: Path) -> str:
    """Hex SHA-256 digest of a file, read in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_checksum(path: Path, expected: str) -> str:
    """Verify a file against an expected SHA-256.

    Returns:
        The computed digest.

    Raises:
        ChecksumMismatchError: The digests differ.
    """
    expected = expected.lower().removeprefix("sha256:")
    actual = sha256_file(path)
    if actual != expected:
        raise ChecksumMismatchError(str(path), expected, actual)
    return actual


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Cannot remove %s: %s", path, e)


def cached_archive_path(selected: SelectedArtifact, cache_dir: Path) -> Path:
    """Cache location for a selected archive."""
    return cache_dir / f"{selected.formula}--{selected.version}--{selected.filename}"


def fetch_artifact(
    selected: SelectedArtifact,
    cache_dir: Path,
    *,
    timeout: int = 60,
) -> Path:
    """Download a release archive into the cache and verify it.

    A cached archive whose checksum still matches is reused without
    touching the network. A corrupt cached or fresh download is deleted.

    Returns:
        Path of the verified archive.

    Raises:
        DownloadError: The transfer failed.
        ChecksumMismatchError: The archive does not match its checksum.
    """
    dest = cached_archive_path(selected, cache_dir)

    if dest.is_file():
        try:
            verify_checksum(dest, selected.sha256)
            logger.info("Using cached %s", dest)
            return dest
        except ChecksumMismatchError:
            logger.warning("Cached archive %s is corrupt, downloading again", dest)
            _discard(dest)

    partial = dest.with_name(dest.name + ".part")

    logger.info("Downloading %s", selected.url)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        req = urllib.request.Request(
            selected.url, headers={"User-Agent": f"formulary/{__version__}"},
        )
        downloaded = 0
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            with open(partial, "wb") as f:
                while True:
                    chunk = resp.read(_CHUNK)
                    if not chunk:
                        break
                    f.write(chunk)
                    downloaded += len(chunk)
    except Exception as exc:
        _discard(partial)
        raise DownloadError(f"Download failed for {selected.url}: {exc}") from exc

    try:
        verify_checksum(partial, selected.sha256)
    except ChecksumMismatchError as exc:
        _discard(partial)
        raise ChecksumMismatchError(selected.url, exc.expected, exc.actual) from None

    try:
        partial.replace(dest)
    except OSError as exc:
        _discard(partial)
        raise DownloadError(f"Cannot store {dest}: {exc}") from exc
    logger.info("Downloaded %d bytes to %s", downloaded, dest)
    return dest
