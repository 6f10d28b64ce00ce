"""
Settings model — where formulary installs, caches, and finds formulas.

Loaded from formulary.yml; every field has a usable default so the
tool works without any config file.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


def _default_prefix() -> str:
    return str(Path.home() / ".local")


def _default_cache_dir() -> str:
    return str(Path.home() / ".cache" / "formulary")


class Settings(BaseModel):
    """Install-time settings."""

    prefix: str = Field(default_factory=_default_prefix)
    cache_dir: str = Field(default_factory=_default_cache_dir)
    formula_dirs: list[str] = Field(default_factory=list)

    download_timeout: int = 60
    converter_timeout: int = 120

    @property
    def prefix_path(self) -> Path:
        return Path(self.prefix).expanduser()

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser()

    @property
    def bin_dir(self) -> Path:
        return self.prefix_path / "bin"

    @property
    def man_root(self) -> Path:
        return self.prefix_path / "share" / "man"

    @property
    def state_dir(self) -> Path:
        return self.prefix_path / "var" / "formulary"
