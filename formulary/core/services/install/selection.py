"""
L3 Detection — Host platform and release selection.

Maps the running operating system onto the formula's platform keys and
picks the single URL/checksum pair to install.
"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from urllib.parse import urlparse

from formulary.core.models.formula import Formula
from formulary.core.services.install.errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)

# platform.system() → formula platform key
_OS_MAP = {
    "Darwin": "macos",
    "Linux": "linux",
}


@dataclass(frozen=True)
class SelectedArtifact:
    """The one release archive chosen for this install."""

    formula: str
    version: str
    platform: str
    url: str
    sha256: str

    @property
    def filename(self) -> str:
        """Archive file name, taken from the last URL path segment."""
        name = urlparse(self.url).path.rsplit("/", 1)[-1]
        return name or f"{self.formula}-{self.version}"

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "url": self.url,
            "sha256": self.sha256,
            "filename": self.filename,
        }


def detect_os() -> str:
    """Return the formula platform key for the host.

    Unknown systems come back as their lower-cased ``platform.system()``
    name (e.g. ``windows``), which no formula declares.
    """
    system = platform.system()
    return _OS_MAP.get(system, system.lower() or "unknown")


def select_artifact(formula: Formula, os_name: str | None = None) -> SelectedArtifact:
    """Choose the release archive for a platform.

    Args:
        formula: The formula to install.
        os_name: Platform key override; detected when None.

    Raises:
        UnsupportedPlatformError: No release is declared for the platform.
    """
    target = os_name or detect_os()
    artifact = formula.artifact_for(target)
    if artifact is None:
        raise UnsupportedPlatformError(formula.name, target, formula.supported_platforms())

    selected = SelectedArtifact(
        formula=formula.name,
        version=formula.version,
        platform=target,
        url=formula.render_url(artifact),
        sha256=artifact.sha256,
    )
    logger.debug("Selected %s for %s: %s", formula.name, target, selected.url)
    return selected
