"""Error types shared across the project publishing package."""

from __future__ import annotations

__all__ = [
    "ArchiveError",
    "ConfigError",
    "GithubApiError",
    "GithubApiRetryError",
    "PublishError",
    "RegistryError",
    "ReleaseError",
]


class PublishError(RuntimeError):
    """Base class for failures raised while publishing project archives."""


class ConfigError(PublishError):
    """Raised when the run configuration is missing or invalid."""


class ArchiveError(PublishError):
    """Raised when a project archive cannot be written."""


class GithubApiError(PublishError):
    """Raised when the GitHub API rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GithubApiRetryError(GithubApiError):
    """Raised to indicate that the request should be retried."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class ReleaseError(PublishError):
    """Raised when the release for a tag cannot be resolved or created."""


class RegistryError(PublishError):
    """Raised when the container registry cannot be reached or logged into."""
