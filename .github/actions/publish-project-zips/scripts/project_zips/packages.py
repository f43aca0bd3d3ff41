"""Push project archives to an OCI registry as tagged artifacts.

Archive names become repository path segments, which OCI restricts to
lowercase alphanumerics and separators. :func:`sanitize_package_name`
derives a valid segment; archives whose name sanitizes to nothing are
skipped.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import string
import typing as typ

from plumbum import local
from plumbum.commands import CommandNotFound, ProcessExecutionError

from .archives import ZIP_MEDIA_TYPE
from .commands import run_cmd
from .errors import RegistryError
from .outcomes import PublishReport

if typ.TYPE_CHECKING:
    from .archives import ProjectArchive

__all__ = [
    "ArtifactPusher",
    "OrasClient",
    "PackageReference",
    "package_reference",
    "publish_packages",
    "sanitize_package_name",
]

logger = logging.getLogger(__name__)

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_SEPARATORS = re.compile(r"[ _]")
_INVALID = re.compile(r"[^a-z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-{2,}")


def sanitize_package_name(name: str) -> str:
    """Return ``name`` reduced to a valid OCI repository path segment.

    The rules apply in a fixed order: lowercase ASCII letters, turn spaces
    and underscores into hyphens, drop anything outside ``[a-z0-9-]``,
    collapse hyphen runs, then trim hyphens from both ends. Non-ASCII letters
    are not case-folded, so they are dropped. The result may be empty.

    Examples
    --------
    >>> sanitize_package_name("Alpha Beta")
    'alpha-beta'
    >>> sanitize_package_name("__My_Project (v2)__")
    'my-project-v2'
    >>> sanitize_package_name("\u0130stanbul")
    'stanbul'
    >>> sanitize_package_name("!!!")
    ''
    """
    candidate = name.translate(_ASCII_LOWER)
    candidate = _SEPARATORS.sub("-", candidate)
    candidate = _INVALID.sub("", candidate)
    candidate = _REPEATED_HYPHENS.sub("-", candidate)
    return candidate.strip("-")


@dataclasses.dataclass(frozen=True, slots=True)
class PackageReference:
    """Fully qualified ``registry/repository/name:tag`` reference."""

    registry: str
    repository: str
    name: str
    tag: str

    def __str__(self) -> str:
        return f"{self.registry}/{self.repository}/{self.name}:{self.tag}"


def package_reference(
    archive_name: str, *, registry: str, repository: str, tag: str
) -> PackageReference | None:
    """Return the reference for ``archive_name`` or ``None`` when it is unusable."""
    stem = archive_name.removesuffix(".zip")
    if not (name := sanitize_package_name(stem)):
        return None
    return PackageReference(registry, repository.lower(), name, tag)


class ArtifactPusher(typ.Protocol):
    """Registry client used by :func:`publish_packages`."""

    def login(self, registry: str, username: str, password: str) -> None:
        """Authenticate against ``registry``."""
        ...

    def push(self, reference: PackageReference, archive: ProjectArchive) -> None:
        """Push ``archive`` under ``reference``."""
        ...


class OrasClient:
    """Drive the ``oras`` CLI.

    Parameters
    ----------
    command
        Plumbum command for the ``oras`` executable. Resolved from ``PATH``
        on first use when omitted.
    """

    def __init__(self, command: object | None = None) -> None:
        self._command = command

    @property
    def command(self) -> typ.Any:
        if self._command is None:
            self._command = local["oras"]
        return self._command

    def login(self, registry: str, username: str, password: str) -> None:
        """Log into ``registry``, piping ``password`` on stdin.

        Raises
        ------
        RegistryError
            Raised when ``oras`` is missing or rejects the credentials.
        """
        try:
            run_cmd(
                self.command["login", registry, "-u", username, "--password-stdin"],
                stdin=password,
            )
        except (CommandNotFound, ProcessExecutionError) as exc:
            msg = f"Failed to log in to {registry}: {exc}"
            raise RegistryError(msg) from exc

    def push(self, reference: PackageReference, archive: ProjectArchive) -> None:
        """Push ``archive`` with an empty config blob and a zip-typed layer.

        ``oras`` rejects absolute file paths, so the push runs from the
        archive's directory with the bare file name.
        """
        run_cmd(
            self.command[
                "push",
                str(reference),
                "--config",
                "/dev/null",
                f"{archive.name}:{ZIP_MEDIA_TYPE}",
            ],
            cwd=archive.path.parent,
        )


def publish_packages(
    archives: typ.Sequence[ProjectArchive],
    tag: str,
    *,
    registry: str,
    repository: str,
    pusher: ArtifactPusher,
    dry_run: bool = False,
) -> PublishReport:
    """Push every archive to ``registry/repository/<name>:tag``.

    Archives whose sanitized name is empty are skipped. A failed push is
    recorded and the remaining archives are still attempted.

    Returns
    -------
    PublishReport
        Per-archive outcomes; ``report.failed`` is set when any push failed.
    """
    report = PublishReport()
    if not archives:
        logger.info("No zip files found. Skipping upload to the package registry.")
        return report

    for archive in archives:
        reference = package_reference(
            archive.name, registry=registry, repository=repository, tag=tag
        )
        if reference is None:
            logger.info(
                "Skipping '%s' as its sanitized name is empty or invalid "
                "for OCI artifacts.",
                archive.name,
            )
            report.record(archive.name, "skipped", "empty sanitized name")
            continue

        logger.info(
            "--- Publishing '%s' (sanitized OCI name: %s) ---",
            archive.name,
            reference.name,
        )
        if dry_run:
            logger.info("[dry-run] Would push '%s'.", reference)
            report.record(archive.name, "planned", str(reference))
            continue

        try:
            pusher.push(reference, archive)
        except (CommandNotFound, ProcessExecutionError, OSError) as exc:
            logger.error("Failed to publish '%s': %s", archive.name, exc)
            report.record(archive.name, "failed", str(exc))
            continue

        logger.info("Successfully published '%s' as '%s'.", archive.name, reference)
        report.record(archive.name, "pushed", str(reference))

    return report
