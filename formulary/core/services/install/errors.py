"""
L1 Domain — Install failure types.

Services raise these; use cases catch ``InstallError`` and turn it into
a result with ``error`` set, so nothing below the CLI prints.
"""

from __future__ import annotations


class InstallError(Exception):
    """Base class for every install-time failure."""


class UnsupportedPlatformError(InstallError):
    """The formula has no release for the host operating system."""

    def __init__(self, formula: str, os_name: str, supported: list[str]):
        self.formula = formula
        self.os_name = os_name
        self.supported = supported
        available = ", ".join(supported) if supported else "none"
        super().__init__(
            f"{formula} has no release for platform '{os_name}' (available: {available})"
        )


class DownloadError(InstallError):
    """The release archive could not be fetched."""


class ChecksumMismatchError(InstallError):
    """The downloaded archive does not match the declared SHA-256."""

    def __init__(self, path: str, expected: str, actual: str):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"SHA256 mismatch for {path}\n"
            f"Expected: {expected}\n"
            f"Got:      {actual}"
        )


class MissingDependencyError(InstallError):
    """A build-time tool is not on PATH."""

    def __init__(self, formula: str, missing: list[str]):
        self.formula = formula
        self.missing = missing
        super().__init__(
            f"{formula} requires build dependencies not found on PATH: {', '.join(missing)}"
        )


class ArtifactNotFoundError(InstallError):
    """An expected file is absent from the extracted release."""


class ConversionError(InstallError):
    """The document converter failed to produce the man page."""
