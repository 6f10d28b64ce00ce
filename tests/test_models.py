"""
Tests for domain models — validation, lookups, serialization.
"""

import pytest
from pydantic import ValidationError

from formulary.core.config.formula_loader import load_formula
from formulary.core.data import bundled_formula_path
from formulary.core.models import (
    Formula,
    InstalledFormula,
    InstallState,
    ManPage,
    ReleaseArtifact,
    Settings,
)

SHA = "a" * 64


def _formula(**overrides) -> Formula:
    data = {
        "name": "tool",
        "version": "1.0.0",
        "releases": {
            "linux": {"url": "https://example.com/{version}/tool-{version}-linux.tar.gz", "sha256": SHA},
        },
        "install": {
            "binary": "tool",
            "man_page": {"source": "man/tool.1.md", "output": "tool.1"},
        },
    }
    data.update(overrides)
    return Formula.model_validate(data)


class TestReleaseArtifact:
    def test_sha256_normalised(self):
        a = ReleaseArtifact(url="https://x", sha256="SHA256:" + "AB" * 32)
        assert a.sha256 == "ab" * 32

    def test_sha256_wrong_length_rejected(self):
        with pytest.raises(ValidationError):
            ReleaseArtifact(url="https://x", sha256="abc123")

    def test_sha256_non_hex_rejected(self):
        with pytest.raises(ValidationError):
            ReleaseArtifact(url="https://x", sha256="z" * 64)

    @pytest.mark.parametrize("value", [0, 10**63, 1e64])
    def test_numeric_sha256_asks_for_quotes(self, value):
        with pytest.raises(ValidationError, match="quote it"):
            ReleaseArtifact(url="https://x", sha256=value)

    def test_default_arch(self):
        assert ReleaseArtifact(url="https://x", sha256=SHA).arch == "x86_64"


class TestFormula:
    def test_minimal(self):
        f = _formula()
        assert f.name == "tool"
        assert f.build_dependencies == []
        assert f.head is None

    def test_bare_dependency_names(self):
        f = _formula(build_dependencies=["pandoc", {"name": "make", "kind": "build"}])
        assert f.build_tools() == ["pandoc", "make"]
        assert f.build_dependencies[0].kind == "build"

    def test_unknown_platform_rejected(self):
        with pytest.raises(ValidationError, match="windows"):
            _formula(releases={"windows": {"url": "https://x", "sha256": SHA}})

    def test_install_required(self):
        with pytest.raises(ValidationError):
            Formula.model_validate({"name": "x", "version": "1"})

    def test_render_url(self):
        f = _formula()
        url = f.render_url(f.releases["linux"])
        assert url == "https://example.com/1.0.0/tool-1.0.0-linux.tar.gz"

    def test_artifact_lookup(self):
        f = _formula()
        assert f.artifact_for("linux") is not None
        assert f.artifact_for("macos") is None
        assert f.supported_platforms() == ["linux"]

    def test_man_page_defaults(self):
        m = ManPage(source="a.md", output="a.1")
        assert m.converter == "pandoc"
        assert m.args == ["--standalone", "--to=man"]
        assert m.section == 1


class TestBundledEnvelope:
    """The formula shipped with the package."""

    @pytest.fixture
    def envelope(self) -> Formula:
        return load_formula(bundled_formula_path("envelope"))

    def test_metadata(self, envelope: Formula):
        assert envelope.version == "0.3.2"
        assert envelope.desc == "A modern environment variables manager"
        assert envelope.license == "public_domain"
        assert envelope.head is not None
        assert envelope.head.branch == "master"

    def test_checksums(self, envelope: Formula):
        assert envelope.releases["macos"].sha256 == (
            "00b52ad94b678c861b5fb61d43488f13e09d49a4840a94ffd9e519dcc5bebebd"
        )
        assert envelope.releases["linux"].sha256 == (
            "100096b1f710133bda7efd68bf1ad51181bf3ab303a19e7140c885c07b49ea20"
        )

    def test_pandoc_is_build_only(self, envelope: Formula):
        assert envelope.build_tools() == ["pandoc"]
        assert envelope.build_dependencies[0].kind == "build"

    def test_install_procedure(self, envelope: Formula):
        assert envelope.install.binary == "envelope"
        man = envelope.install.man_page
        assert man.source == "man/envelope.1.md"
        assert man.output == "envelope.1"
        assert man.args == ["--standalone", "--to=man"]


class TestSettings:
    def test_derived_paths(self, tmp_path):
        s = Settings(prefix=str(tmp_path), cache_dir=str(tmp_path / "c"))
        assert s.bin_dir == tmp_path / "bin"
        assert s.man_root == tmp_path / "share" / "man"
        assert s.state_dir == tmp_path / "var" / "formulary"
        assert s.cache_path == tmp_path / "c"


class TestInstallState:
    def _entry(self, **kw) -> InstalledFormula:
        data = dict(
            name="envelope", version="0.3.2", platform="linux",
            url="https://x", sha256=SHA,
            binary="/p/bin/envelope", man_page="/p/share/man/man1/envelope.1",
        )
        data.update(kw)
        return InstalledFormula(**data)

    def test_record_and_forget(self):
        state = InstallState()
        state.record(self._entry())
        assert "envelope" in state.installed
        removed = state.forget("envelope")
        assert removed is not None
        assert state.installed == {}
        assert state.forget("envelope") is None

    def test_matches(self):
        e = self._entry()
        assert e.matches("0.3.2", SHA)
        assert not e.matches("0.3.3", SHA)
        assert not e.matches("0.3.2", "b" * 64)

    def test_artifacts(self):
        assert self._entry().artifacts == ["/p/bin/envelope", "/p/share/man/man1/envelope.1"]
