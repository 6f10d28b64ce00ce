"""
Tests for archive staging and the install steps that consume it.
"""

import io
import os
import stat
import tarfile
import zipfile
from pathlib import Path

import pytest

from formulary.core.models.formula import ManPage
from formulary.core.services.install import (
    ArtifactNotFoundError,
    ConversionError,
    InstallError,
    extract_archive,
    install_binary,
    install_man_page,
    locate,
    remove_artifact,
    render_man_page,
)
from formulary.core.services.install.steps import converter_command

from tests.releases import build_release


class TestExtractArchive:
    def test_single_top_level_dir(self, tmp_path: Path, releases_dir: Path):
        archive = build_release(releases_dir, "linux", top_level=True)
        root = extract_archive(archive, tmp_path / "stage")
        assert root.name == "envelope-0.3.2-x86_64-unknown-linux-musl"
        assert (root / "envelope").is_file()

    def test_flat_archive(self, tmp_path: Path, releases_dir: Path):
        archive = build_release(releases_dir, "macos", top_level=False)
        root = extract_archive(archive, tmp_path / "stage")
        assert root == tmp_path / "stage"
        assert (root / "man" / "envelope.1.md").is_file()

    def test_zip(self, tmp_path: Path):
        archive = tmp_path / "tool-1.0-linux.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("tool", "#!/bin/sh\n")
            zf.writestr("man/tool.1.md", "# tool\n")
        root = extract_archive(archive, tmp_path / "stage")
        assert (root / "tool").is_file()

    def test_restages_cleanly(self, tmp_path: Path, releases_dir: Path):
        stage = tmp_path / "stage"
        stage.mkdir()
        (stage / "leftover").write_text("old")
        archive = build_release(releases_dir, "linux", top_level=False)
        extract_archive(archive, stage)
        assert not (stage / "leftover").exists()

    def test_unsupported_type(self, tmp_path: Path):
        archive = tmp_path / "tool.dmg"
        archive.write_bytes(b"x")
        with pytest.raises(InstallError, match="Unsupported archive type"):
            extract_archive(archive, tmp_path / "stage")

    def test_unsafe_member(self, tmp_path: Path):
        archive = tmp_path / "evil.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            data = b"pwned"
            info = tarfile.TarInfo("../escape")
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
        with pytest.raises(InstallError, match="Unsafe path"):
            extract_archive(archive, tmp_path / "stage")
        assert not (tmp_path / "escape").exists()

    def test_corrupt(self, tmp_path: Path):
        archive = tmp_path / "broken.tar.gz"
        archive.write_bytes(b"not a tarball")
        with pytest.raises(InstallError, match="Extract failed"):
            extract_archive(archive, tmp_path / "stage")


class TestLocate:
    def test_exact_path(self, tmp_path: Path):
        (tmp_path / "man").mkdir()
        (tmp_path / "man" / "a.md").write_text("x")
        assert locate(tmp_path, "man/a.md") == tmp_path / "man" / "a.md"

    def test_by_name(self, tmp_path: Path):
        (tmp_path / "docs" / "man").mkdir(parents=True)
        (tmp_path / "docs" / "man" / "a.md").write_text("x")
        assert locate(tmp_path, "man/a.md") == tmp_path / "docs" / "man" / "a.md"

    def test_missing(self, tmp_path: Path):
        (tmp_path / "other").write_text("x")
        with pytest.raises(ArtifactNotFoundError, match="other"):
            locate(tmp_path, "envelope")


class TestSteps:
    def test_install_binary_mode(self, tmp_path: Path):
        src = tmp_path / "envelope"
        src.write_text("#!/bin/sh\n")
        target = install_binary(src, tmp_path / "bin")
        assert target == tmp_path / "bin" / "envelope"
        assert stat.S_IMODE(target.stat().st_mode) == 0o755

    def test_install_binary_overwrites(self, tmp_path: Path):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        (bin_dir / "envelope").write_text("old")
        src = tmp_path / "envelope"
        src.write_text("new")
        install_binary(src, bin_dir)
        assert (bin_dir / "envelope").read_text() == "new"

    def test_install_man_page_section(self, tmp_path: Path):
        page = tmp_path / "envelope.1"
        page.write_text(".TH ENVELOPE 1\n")
        target = install_man_page(page, tmp_path / "man", 1)
        assert target == tmp_path / "man" / "man1" / "envelope.1"
        assert stat.S_IMODE(target.stat().st_mode) == 0o644

    def test_unwritable_target_is_install_error(self, tmp_path: Path):
        page = tmp_path / "envelope.1"
        page.write_text(".TH ENVELOPE 1\n")
        man_root = tmp_path / "man"
        man_root.mkdir()
        (man_root / "man1").write_text("not a directory")
        with pytest.raises(InstallError, match="Cannot install"):
            install_man_page(page, man_root, 1)

    def test_remove_artifact(self, tmp_path: Path):
        path = tmp_path / "f"
        path.write_text("x")
        assert remove_artifact(path) is True
        assert remove_artifact(path) is False

    def test_converter_command(self):
        man = ManPage(source="man/envelope.1.md", output="envelope.1")
        assert converter_command(man, "man/envelope.1.md") == [
            "pandoc", "--standalone", "--to=man", "man/envelope.1.md", "-o", "envelope.1",
        ]


class TestRenderManPage:
    def _stage(self, tmp_path: Path) -> Path:
        (tmp_path / "man").mkdir(parents=True)
        (tmp_path / "man" / "envelope.1.md").write_text("# NAME\n")
        return tmp_path

    def test_renders(self, tmp_path: Path, fake_pandoc: Path):
        stage = self._stage(tmp_path / "stage")
        man = ManPage(source="man/envelope.1.md", output="envelope.1")
        rendered = render_man_page(man, stage)
        assert rendered == stage / "envelope.1"
        assert rendered.read_text().startswith(".TH ENVELOPE 1")

    def test_converter_failure(self, tmp_path: Path):
        stage = self._stage(tmp_path / "stage")
        failing = tmp_path / "failing"
        failing.write_text("#!/bin/sh\necho boom >&2\nexit 3\n")
        os.chmod(failing, 0o755)
        man = ManPage(source="man/envelope.1.md", output="envelope.1", converter=str(failing))
        with pytest.raises(ConversionError, match="boom"):
            render_man_page(man, stage)

    def test_converter_missing(self, tmp_path: Path):
        stage = self._stage(tmp_path / "stage")
        man = ManPage(
            source="man/envelope.1.md", output="envelope.1",
            converter=str(tmp_path / "nope"),
        )
        with pytest.raises(ConversionError, match="Command not found"):
            render_man_page(man, stage)

    def test_no_output(self, tmp_path: Path):
        stage = self._stage(tmp_path / "stage")
        silent = tmp_path / "silent"
        silent.write_text("#!/bin/sh\nexit 0\n")
        os.chmod(silent, 0o755)
        man = ManPage(source="man/envelope.1.md", output="envelope.1", converter=str(silent))
        with pytest.raises(ConversionError, match="no output"):
            render_man_page(man, stage)

    def test_source_missing(self, tmp_path: Path, fake_pandoc: Path):
        stage = tmp_path / "stage"
        stage.mkdir()
        man = ManPage(source="man/envelope.1.md", output="envelope.1")
        with pytest.raises(ArtifactNotFoundError):
            render_man_page(man, stage)
