"""
Shared test fixtures and configuration.
"""

import os
from pathlib import Path

import pytest

from formulary.core.models.settings import Settings
from tests.releases import FAKE_PANDOC, TRIPLES, build_release, write_formula


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's environment out of every test."""
    for var in (
        "FORMULARY_PREFIX", "FORMULARY_CACHE",
        "FORMULARY_LOG_LEVEL", "FORMULARY_LOG_FILE", "FORMULARY_LOG_FILE_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def releases_dir(tmp_path: Path) -> Path:
    """Directory serving release archives via file:// URLs."""
    d = tmp_path / "releases"
    d.mkdir()
    return d


@pytest.fixture
def archives(releases_dir: Path) -> dict[str, Path]:
    """One release archive per supported platform."""
    return {key: build_release(releases_dir, key) for key in TRIPLES}


@pytest.fixture
def formula_dir(tmp_path: Path, archives: dict[str, Path]) -> Path:
    """A user formula directory with a local envelope formula."""
    d = tmp_path / "formulas"
    write_formula(d, archives)
    return d


@pytest.fixture
def settings(tmp_path: Path, formula_dir: Path) -> Settings:
    """Settings with an isolated prefix and cache."""
    return Settings(
        prefix=str(tmp_path / "prefix"),
        cache_dir=str(tmp_path / "cache"),
        formula_dirs=[str(formula_dir)],
    )


@pytest.fixture
def fake_pandoc(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Put a stand-in pandoc first on PATH."""
    bin_dir = tmp_path / "fakebin"
    bin_dir.mkdir()
    script = bin_dir / "pandoc"
    script.write_text(FAKE_PANDOC)
    os.chmod(script, 0o755)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return script


@pytest.fixture
def no_pandoc(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """PATH with no pandoc on it."""
    empty = tmp_path / "emptybin"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
