"""Create and discover the per-project zip archives."""

from __future__ import annotations

import dataclasses
import logging
import typing as typ
import zipfile
from pathlib import Path

from .errors import ArchiveError

__all__ = [
    "ARCHIVE_SUFFIX",
    "ZIP_MEDIA_TYPE",
    "ProjectArchive",
    "archive_directory",
    "create_project_archives",
    "discover_archives",
    "iter_project_dirs",
]

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"
ZIP_MEDIA_TYPE = "application/zip"


@dataclasses.dataclass(frozen=True, slots=True)
class ProjectArchive:
    """Zip archive built from one project directory."""

    path: Path
    name: str
    size: int

    @property
    def project_name(self) -> str:
        """Archive name without the ``.zip`` extension."""
        return self.name.removesuffix(ARCHIVE_SUFFIX)

    @classmethod
    def from_path(cls, path: Path) -> ProjectArchive:
        return cls(path=path, name=path.name, size=path.stat().st_size)


def iter_project_dirs(projects_dir: Path) -> typ.Iterator[Path]:
    """Yield the immediate, non-hidden subdirectories of ``projects_dir``."""
    for path in sorted(projects_dir.iterdir()):
        if path.name.startswith("."):
            continue
        if path.is_dir():
            yield path


def _iter_entries(root: Path) -> typ.Iterator[Path]:
    yield from sorted(root.rglob("*"))


def archive_directory(source: Path, destination: Path) -> ProjectArchive:
    """Zip the contents of ``source`` into ``destination``.

    Entries are stored relative to ``source`` so that extracting the archive
    recreates the project's contents without the project directory itself.
    An empty ``source`` produces a valid, empty archive. Files dated before
    1980, which the zip format cannot represent, are stored as 1980-01-01.

    Raises
    ------
    ArchiveError
        Raised when the archive cannot be written.
    """
    try:
        with zipfile.ZipFile(
            destination, "w", zipfile.ZIP_DEFLATED, strict_timestamps=False
        ) as archive:
            for entry in _iter_entries(source):
                relative = entry.relative_to(source).as_posix()
                if entry.is_dir():
                    archive.write(entry, f"{relative}/")
                elif entry.is_file():
                    archive.write(entry, relative)
    except OSError as exc:
        msg = f"Failed to archive '{source}' into '{destination}': {exc}"
        raise ArchiveError(msg) from exc
    return ProjectArchive.from_path(destination)


def create_project_archives(
    projects_dir: Path, output_dir: Path
) -> list[ProjectArchive]:
    """Archive every project under ``projects_dir`` into ``output_dir``.

    Parameters
    ----------
    projects_dir
        Root whose immediate subdirectories are the projects to archive.
    output_dir
        Directory receiving ``<project>.zip`` files. Created when missing.

    Returns
    -------
    list[ProjectArchive]
        Archives in project-name order. Empty when ``projects_dir`` does not
        exist, which is not an error.
    """
    if not projects_dir.is_dir():
        logger.info(
            "Directory '%s' not found. Skipping zip creation.", projects_dir
        )
        return []

    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Searching for projects in: %s", projects_dir)

    archives: list[ProjectArchive] = []
    for project_dir in iter_project_dirs(projects_dir):
        name = f"{project_dir.name}{ARCHIVE_SUFFIX}"
        logger.info("--- Processing project: %s ---", project_dir.name)
        archive = archive_directory(project_dir, output_dir / name)
        logger.info("Created '%s' (%d bytes).", archive.name, archive.size)
        archives.append(archive)

    logger.info("Created %d project zip(s).", len(archives))
    return archives


def discover_archives(input_dir: Path) -> list[ProjectArchive]:
    """Return the zip archives handed over in ``input_dir``.

    A missing directory yields an empty list so that downstream stages can
    treat "nothing to publish" as success.
    """
    if not input_dir.is_dir():
        return []
    return [
        ProjectArchive.from_path(path)
        for path in sorted(input_dir.glob(f"*{ARCHIVE_SUFFIX}"))
        if path.is_file()
    ]
