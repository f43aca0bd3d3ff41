"""Get-or-create reconciliation of the GitHub release for a tag."""

from __future__ import annotations

import dataclasses
import logging
import typing as typ

import httpx

from .errors import GithubApiError, ReleaseError
from .github_api import is_already_exists

if typ.TYPE_CHECKING:
    from .github_api import GithubClient

__all__ = ["ReleaseInfo", "reconcile_release", "release_body", "release_title"]

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Identifier and upload target of the release backing a tag."""

    release_id: int
    upload_url: str
    tag: str
    created: bool = False

    def as_outputs(self) -> dict[str, str]:
        """Return the values exported to ``GITHUB_OUTPUT``."""
        return {"release_id": str(self.release_id), "upload_url": self.upload_url}


def release_title(tag: str) -> str:
    return f"Release {tag}"


def release_body(tag: str) -> str:
    return f"Automated release for tag {tag}"


def _release_info(
    data: typ.Mapping[str, object], tag: str, *, created: bool
) -> ReleaseInfo:
    """Validate ``data`` and return the fields the publishers need.

    Raises
    ------
    ReleaseError
        Raised when the identifier or upload URL is missing or malformed.
    """
    release_id = data.get("id")
    if isinstance(release_id, bool) or not isinstance(release_id, int):
        msg = f"GitHub returned no usable release id for tag {tag}: {release_id!r}"
        raise ReleaseError(msg)

    upload_url = data.get("upload_url")
    if not isinstance(upload_url, str) or not upload_url.strip():
        msg = f"Could not determine upload URL for release {release_id} ({tag})."
        raise ReleaseError(msg)
    try:
        parsed = httpx.URL(upload_url)
    except httpx.InvalidURL as exc:
        msg = f"Release {release_id} has an invalid upload URL: {upload_url!r}"
        raise ReleaseError(msg) from exc
    if parsed.scheme not in {"http", "https"} or not parsed.host:
        msg = f"Release {release_id} has an invalid upload URL: {upload_url!r}"
        raise ReleaseError(msg)

    return ReleaseInfo(
        release_id=release_id, upload_url=upload_url, tag=tag, created=created
    )


def _create_or_adopt(client: GithubClient, tag: str) -> ReleaseInfo:
    try:
        data = client.create_release(
            tag,
            name=release_title(tag),
            body=release_body(tag),
            draft=False,
            prerelease=False,
        )
    except GithubApiError as exc:
        if not is_already_exists(exc):
            raise
        # Another run created the release after our lookup.
        logger.warning(
            "A release for tag '%s' appeared concurrently; reusing it.", tag
        )
        existing = client.get_release_by_tag(tag)
        if existing is None:
            raise
        return _release_info(existing, tag, created=False)
    return _release_info(data, tag, created=True)


def reconcile_release(client: GithubClient, tag: str) -> ReleaseInfo:
    """Ensure exactly one release exists for ``tag`` and return it.

    An existing release is returned untouched. Otherwise a non-draft,
    non-prerelease release titled ``Release <tag>`` is created.

    Parameters
    ----------
    client
        GitHub client bound to the target repository.
    tag
        Non-empty tag name.

    Returns
    -------
    ReleaseInfo
        Identifier and upload URL template of the release.

    Raises
    ------
    ReleaseError
        Raised when the tag is empty, GitHub cannot be queried, the release
        cannot be created, or the resolved upload URL is unusable.
    """
    tag = tag.strip()
    if not tag:
        msg = "Release tag must not be empty."
        raise ReleaseError(msg)

    logger.info("Checking for existing release for tag: %s", tag)
    try:
        existing = client.get_release_by_tag(tag)
        if existing is not None:
            info = _release_info(existing, tag, created=False)
            logger.info("Found existing release with ID: %s", info.release_id)
        else:
            logger.info(
                "No existing release found for tag '%s'. Creating a new one...", tag
            )
            info = _create_or_adopt(client, tag)
            if info.created:
                logger.info("Created release with ID: %s", info.release_id)
    except GithubApiError as exc:
        msg = f"Failed to reconcile the release for tag {tag}: {exc}"
        raise ReleaseError(msg) from exc

    logger.info("Upload URL: %s", info.upload_url)
    return info
