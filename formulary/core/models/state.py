"""
InstallState — the record of what formulary has placed on disk.

Serialized to <prefix>/var/formulary/state.json and loaded on every
operation. Uninstall reads it to know exactly which files to remove.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class InstalledFormula(BaseModel):
    """One installed formula and the artifacts it owns."""

    name: str
    version: str
    platform: str
    url: str
    sha256: str
    binary: str                     # absolute path of the installed executable
    man_page: str                   # absolute path of the installed man page
    installed_at: str = Field(default_factory=_now_iso)

    @property
    def artifacts(self) -> list[str]:
        return [self.binary, self.man_page]

    def matches(self, version: str, sha256: str) -> bool:
        """Whether this record was produced by the same release."""
        return self.version == version and self.sha256 == sha256


class InstallState(BaseModel):
    """Root state model — disposable, rebuilt by reinstalling."""

    schema_version: int = 1
    updated_at: str = Field(default_factory=_now_iso)
    installed: dict[str, InstalledFormula] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def record(self, entry: InstalledFormula) -> None:
        self.installed[entry.name] = entry

    def forget(self, name: str) -> InstalledFormula | None:
        return self.installed.pop(name, None)
