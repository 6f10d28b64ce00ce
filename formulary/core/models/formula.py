"""
Formula model — a declarative recipe for one prebuilt release.

Loaded from a formula YAML file, this describes where each platform's
release archive lives, how to verify it, what is needed at install time,
and which files the install procedure places.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

_SHA256_RE = re.compile(r"^[0-9a-f]{64}$")

# Platform keys accepted in the ``releases`` mapping
SUPPORTED_PLATFORMS = ("macos", "linux")


class ReleaseArtifact(BaseModel):
    """A downloadable release archive for one platform.

    ``url`` may contain a ``{version}`` placeholder, rendered against
    the formula version at selection time.
    """

    url: str
    sha256: str
    arch: str = "x86_64"

    @field_validator("sha256", mode="before")
    @classmethod
    def _require_quoted_sha256(cls, value: Any) -> Any:
        # YAML reads an all-digit digest as a number
        if isinstance(value, (int, float)):
            raise ValueError(
                "sha256 was read as a number; quote it in the formula file "
                "(sha256: \"<64 hex characters>\")"
            )
        return value

    @field_validator("sha256")
    @classmethod
    def _normalise_sha256(cls, value: str) -> str:
        digest = value.strip().lower().removeprefix("sha256:")
        if not _SHA256_RE.match(digest):
            raise ValueError(f"sha256 must be 64 hex characters, got {value!r}")
        return digest


class BuildDependency(BaseModel):
    """A tool required only while installing, not at runtime."""

    name: str
    kind: str = "build"


class ManPage(BaseModel):
    """A manual page rendered from a bundled markdown source."""

    source: str
    output: str
    section: int = 1
    converter: str = "pandoc"
    args: list[str] = Field(default_factory=lambda: ["--standalone", "--to=man"])


class InstallSpec(BaseModel):
    """The fixed install procedure: one binary, one man page."""

    binary: str
    man_page: ManPage


class HeadSpec(BaseModel):
    """Source checkout reference for building the development version."""

    url: str
    branch: str = "master"


class Formula(BaseModel):
    """Root formula identity — loaded from <name>.yml."""

    name: str
    version: str
    desc: str = ""
    homepage: str = ""
    license: str = ""
    head: HeadSpec | None = None

    releases: dict[str, ReleaseArtifact] = Field(default_factory=dict)
    build_dependencies: list[BuildDependency] = Field(default_factory=list)
    install: InstallSpec

    @model_validator(mode="before")
    @classmethod
    def _coerce_dependencies(cls, data: Any) -> Any:
        # Dependencies may be written as bare names: ``- pandoc``
        if isinstance(data, dict) and isinstance(data.get("build_dependencies"), list):
            data = dict(data)
            data["build_dependencies"] = [
                {"name": dep} if isinstance(dep, str) else dep
                for dep in data["build_dependencies"]
            ]
        return data

    @field_validator("releases")
    @classmethod
    def _known_platforms(cls, value: dict[str, ReleaseArtifact]) -> dict[str, ReleaseArtifact]:
        unknown = sorted(set(value) - set(SUPPORTED_PLATFORMS))
        if unknown:
            raise ValueError(
                f"Unknown release platform(s): {', '.join(unknown)}. "
                f"Valid: {', '.join(SUPPORTED_PLATFORMS)}"
            )
        return value

    def artifact_for(self, os_name: str) -> ReleaseArtifact | None:
        """Look up the release artifact for a platform."""
        return self.releases.get(os_name)

    def render_url(self, artifact: ReleaseArtifact) -> str:
        """Substitute the formula version into an artifact URL."""
        return artifact.url.replace("{version}", self.version)

    def supported_platforms(self) -> list[str]:
        return [p for p in SUPPORTED_PLATFORMS if p in self.releases]

    def build_tools(self) -> list[str]:
        """Names of all build-time dependencies."""
        return [d.name for d in self.build_dependencies if d.kind == "build"]
