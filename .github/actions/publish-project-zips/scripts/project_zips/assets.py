"""Idempotent upload of project archives as release assets."""

from __future__ import annotations

import logging
import re
import typing as typ

from .errors import GithubApiError
from .github_api import is_already_exists
from .outcomes import PublishReport

if typ.TYPE_CHECKING:
    from .archives import ProjectArchive
    from .github_api import GithubClient

__all__ = ["existing_asset_names", "github_asset_name", "publish_assets"]

logger = logging.getLogger(__name__)

_UNSUPPORTED_ASSET_CHARS = re.compile(r"[^A-Za-z0-9._+-]+")
_REPEATED_PERIODS = re.compile(r"\.{2,}")


def github_asset_name(name: str) -> str:
    """Return the name GitHub stores for an asset uploaded as ``name``.

    GitHub replaces special characters with periods and drops leading or
    trailing periods, so ``Alpha Beta.zip`` is listed as ``Alpha.Beta.zip``.

    Examples
    --------
    >>> github_asset_name("Alpha Beta.zip")
    'Alpha.Beta.zip'
    >>> github_asset_name("gamma.zip")
    'gamma.zip'
    """
    candidate = _UNSUPPORTED_ASSET_CHARS.sub(".", name)
    return _REPEATED_PERIODS.sub(".", candidate).strip(".")


def existing_asset_names(client: GithubClient, release_id: int) -> set[str]:
    """Return the stored names of the assets attached to ``release_id``.

    Raises
    ------
    GithubApiError
        Raised when the asset list cannot be fetched. Without it the upload
        could duplicate assets, so the stage stops.
    """
    return {
        github_asset_name(str(asset["name"]))
        for asset in client.list_release_assets(release_id)
        if asset.get("name")
    }


def publish_assets(
    client: GithubClient,
    archives: typ.Sequence[ProjectArchive],
    release_id: int,
    upload_url: str,
    *,
    dry_run: bool = False,
) -> PublishReport:
    """Upload ``archives`` to the release, skipping names already present.

    Running this repeatedly for the same release converges on one asset per
    distinct archive name. Names are compared as GitHub stores them, and an
    upload rejected because the asset appeared meanwhile counts as skipped.
    A failed upload is recorded and does not stop the remaining archives.

    Parameters
    ----------
    client
        GitHub client bound to the release's repository.
    archives
        Archives to publish, processed in order.
    release_id
        Identifier of the target release.
    upload_url
        Upload URL template reported for the release.
    dry_run
        When ``True``, record the planned uploads without sending them.

    Returns
    -------
    PublishReport
        Per-archive outcomes; ``report.failed`` is set when any upload failed.
    """
    report = PublishReport()
    if not archives:
        logger.info("No zip files found. Skipping upload to release assets.")
        return report

    logger.info("Fetching existing assets for release ID: %s", release_id)
    known = existing_asset_names(client, release_id)
    logger.info("Existing assets in release: %s", " ".join(sorted(known)))

    for archive in archives:
        logger.info("--- Processing asset: %s ---", archive.name)
        stored_name = github_asset_name(archive.name)
        if stored_name in known:
            logger.info(
                "Asset '%s' already exists in release. Skipping upload.", archive.name
            )
            report.record(archive.name, "skipped", "already attached")
            continue

        if dry_run:
            logger.info(
                "[dry-run] Would upload '%s' (%d bytes).", archive.name, archive.size
            )
            report.record(archive.name, "planned", f"{archive.size} bytes")
            continue

        logger.info("Uploading '%s' to release assets...", archive.name)
        try:
            client.upload_asset(upload_url, archive.path, name=archive.name)
        except (GithubApiError, OSError) as exc:
            if isinstance(exc, GithubApiError) and is_already_exists(exc):
                logger.info(
                    "Asset '%s' was attached by another run. Skipping upload.",
                    archive.name,
                )
                known.add(stored_name)
                report.record(archive.name, "skipped", "already attached")
                continue
            logger.error("Failed to upload '%s': %s", archive.name, exc)
            report.record(archive.name, "failed", str(exc))
            continue

        known.add(stored_name)
        logger.info("Successfully uploaded '%s'.", archive.name)
        report.record(archive.name, "uploaded", f"{archive.size} bytes")

    return report
