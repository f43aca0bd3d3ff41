"""Tests for project archive creation and discovery."""

from __future__ import annotations

import os
import zipfile
from pathlib import Path

import pytest
from _helpers import write_file

from project_zips.archives import (
    ProjectArchive,
    archive_directory,
    create_project_archives,
    discover_archives,
    iter_project_dirs,
)
from project_zips.errors import ArchiveError


class TestIterProjectDirs:
    """Tests for project directory enumeration."""

    def test_yields_sorted_immediate_subdirectories(self, tmp_path: Path) -> None:
        """Only direct child directories are returned, in name order."""
        (tmp_path / "zeta" / "nested").mkdir(parents=True)
        (tmp_path / "alpha").mkdir()
        write_file(tmp_path / "loose.txt")

        names = [path.name for path in iter_project_dirs(tmp_path)]

        assert names == ["alpha", "zeta"]

    def test_skips_hidden_directories(self, tmp_path: Path) -> None:
        """Dot-directories are not projects."""
        (tmp_path / ".git").mkdir()
        (tmp_path / "visible").mkdir()

        assert [path.name for path in iter_project_dirs(tmp_path)] == ["visible"]


class TestArchiveDirectory:
    """Tests for archive_directory."""

    def test_stores_paths_relative_to_project(self, tmp_path: Path) -> None:
        """Entries omit the project directory itself."""
        project = tmp_path / "proj"
        write_file(project / "a.txt", b"a")
        write_file(project / "sub" / "b.txt", b"b")

        archive = archive_directory(project, tmp_path / "proj.zip")

        with zipfile.ZipFile(archive.path) as handle:
            assert sorted(handle.namelist()) == ["a.txt", "sub/", "sub/b.txt"]
            assert handle.read("sub/b.txt") == b"b"
        assert archive.name == "proj.zip"
        assert archive.size == archive.path.stat().st_size

    def test_includes_hidden_files(self, tmp_path: Path) -> None:
        """Dotfiles inside a project are archived."""
        project = tmp_path / "proj"
        write_file(project / ".env.example", b"KEY=value")

        archive = archive_directory(project, tmp_path / "proj.zip")

        with zipfile.ZipFile(archive.path) as handle:
            assert handle.namelist() == [".env.example"]

    def test_empty_directory_yields_empty_archive(self, tmp_path: Path) -> None:
        """An empty project still produces a valid zip."""
        project = tmp_path / "empty"
        project.mkdir()

        archive = archive_directory(project, tmp_path / "empty.zip")

        with zipfile.ZipFile(archive.path) as handle:
            assert handle.namelist() == []

    def test_accepts_files_older_than_1980(self, tmp_path: Path) -> None:
        """Timestamps the zip format cannot hold are clamped, not fatal."""
        project = tmp_path / "proj"
        old_file = write_file(project / "old.txt", b"old")
        os.utime(old_file, (0, 0))

        archive = archive_directory(project, tmp_path / "proj.zip")

        with zipfile.ZipFile(archive.path) as handle:
            assert handle.getinfo("old.txt").date_time[0] == 1980
            assert handle.read("old.txt") == b"old"

    def test_wraps_write_failures(self, tmp_path: Path) -> None:
        """Unwritable destinations surface as ArchiveError."""
        project = tmp_path / "proj"
        write_file(project / "a.txt")

        with pytest.raises(ArchiveError, match="Failed to archive"):
            archive_directory(project, tmp_path / "missing" / "proj.zip")


class TestCreateProjectArchives:
    """Tests for create_project_archives."""

    def test_creates_one_archive_per_project(
        self, projects_root: Path, tmp_path: Path
    ) -> None:
        """Each project directory becomes <name>.zip."""
        output = tmp_path / "temp_zips"

        archives = create_project_archives(projects_root, output)

        assert [archive.name for archive in archives] == ["Alpha Beta.zip", "gamma.zip"]
        assert sorted(path.name for path in output.iterdir()) == [
            "Alpha Beta.zip",
            "gamma.zip",
        ]
        with zipfile.ZipFile(output / "Alpha Beta.zip") as handle:
            assert "src/main.py" in handle.namelist()

    def test_missing_root_is_a_no_op(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A missing projects directory yields nothing and creates nothing."""
        output = tmp_path / "temp_zips"

        with caplog.at_level("INFO"):
            archives = create_project_archives(tmp_path / "projects", output)

        assert archives == []
        assert not output.exists()
        assert "Skipping zip creation" in caplog.text

    def test_root_without_projects(self, tmp_path: Path) -> None:
        """A projects directory without subdirectories yields no archives."""
        root = tmp_path / "projects"
        write_file(root / "README.md")

        assert create_project_archives(root, tmp_path / "out") == []


class TestDiscoverArchives:
    """Tests for discover_archives."""

    def test_lists_zip_files_in_order(self, tmp_path: Path) -> None:
        """Only .zip files are returned, sorted by name."""
        write_file(tmp_path / "b.zip")
        write_file(tmp_path / "a.zip", b"abc")
        write_file(tmp_path / "notes.txt")

        archives = discover_archives(tmp_path)

        assert [archive.name for archive in archives] == ["a.zip", "b.zip"]
        assert archives[0].size == 3

    def test_missing_directory_returns_empty(self, tmp_path: Path) -> None:
        """A missing hand-off directory means nothing to publish."""
        assert discover_archives(tmp_path / "downloaded_zips") == []

    def test_project_name_strips_extension(self, tmp_path: Path) -> None:
        """project_name drops the .zip suffix only."""
        archive = ProjectArchive.from_path(write_file(tmp_path / "my.app.zip"))

        assert archive.project_name == "my.app"
