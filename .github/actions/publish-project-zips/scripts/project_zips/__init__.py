"""Publish per-project zip archives as GitHub release assets and OCI packages.

The package backs the scripts of the ``publish-project-zips`` action. Each
stage is usable on its own: :func:`create_project_archives` builds the zips,
:func:`reconcile_release` resolves the release for a tag,
:func:`publish_assets` attaches the zips to it, and
:func:`publish_packages` pushes them to a container registry.
"""

from __future__ import annotations

from .archives import (
    ProjectArchive,
    archive_directory,
    create_project_archives,
    discover_archives,
)
from .assets import existing_asset_names, github_asset_name, publish_assets
from .config import PublishConfig, coerce_bool, load_config
from .errors import (
    ArchiveError,
    ConfigError,
    GithubApiError,
    GithubApiRetryError,
    PublishError,
    RegistryError,
    ReleaseError,
)
from .github_api import GithubClient, expand_upload_url
from .outcomes import ArchiveOutcome, PublishReport
from .packages import (
    OrasClient,
    PackageReference,
    package_reference,
    publish_packages,
    sanitize_package_name,
)
from .releases import ReleaseInfo, reconcile_release

__all__ = [
    "ArchiveError",
    "ArchiveOutcome",
    "ConfigError",
    "GithubApiError",
    "GithubApiRetryError",
    "GithubClient",
    "OrasClient",
    "PackageReference",
    "ProjectArchive",
    "PublishConfig",
    "PublishError",
    "PublishReport",
    "RegistryError",
    "ReleaseError",
    "ReleaseInfo",
    "archive_directory",
    "coerce_bool",
    "create_project_archives",
    "discover_archives",
    "existing_asset_names",
    "expand_upload_url",
    "github_asset_name",
    "load_config",
    "package_reference",
    "publish_assets",
    "publish_packages",
    "reconcile_release",
    "sanitize_package_name",
]
