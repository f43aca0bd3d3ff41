"""Run configuration for the project publishing scripts.

GitHub Actions hands every script its context through environment variables.
:func:`load_config` reads them once per run and freezes the result into a
:class:`PublishConfig`, which is then passed explicitly to each component.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ

from .errors import ConfigError

__all__ = [
    "DEFAULT_ACTOR",
    "DEFAULT_API_URL",
    "DEFAULT_REGISTRY",
    "PublishConfig",
    "coerce_bool",
    "load_config",
]

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_REGISTRY = "ghcr.io"
DEFAULT_ACTOR = "github-actions"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

_TOKEN_VARS = ("INPUT_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN")


@dataclasses.dataclass(frozen=True, slots=True)
class PublishConfig:
    """Immutable settings shared by every publishing stage.

    Attributes
    ----------
    repository
        Repository in ``owner/name`` form.
    tag
        Tag that triggered the run, for example ``v1.2.3``.
    token
        Credential used for the GitHub API and the container registry. Empty
        when the stage does not need one.
    actor
        User name presented to the container registry.
    api_url
        Base URL of the GitHub REST API.
    registry
        Host name of the OCI registry receiving packages.
    """

    repository: str
    tag: str
    token: str = dataclasses.field(default="", repr=False)
    actor: str = DEFAULT_ACTOR
    api_url: str = DEFAULT_API_URL
    registry: str = DEFAULT_REGISTRY

    def require_token(self) -> str:
        """Return :attr:`token`, raising :class:`ConfigError` when it is empty."""
        if not self.token:
            joined = ", ".join(_TOKEN_VARS)
            msg = f"A GitHub token is required; set one of {joined}."
            raise ConfigError(msg)
        return self.token


def coerce_bool(value: object, *, default: bool) -> bool:
    """Interpret GitHub input values as booleans.

    GitHub Actions forwards ``workflow_call`` inputs as strings, so a variety
    of spellings are accepted. ``None`` or empty strings fall back to
    ``default``.

    Examples
    --------
    >>> coerce_bool("YES", default=False)
    True
    >>> coerce_bool("", default=True)
    True
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalised = value.strip().lower()
        if not normalised:
            return default
        if normalised in _TRUTHY:
            return True
        if normalised in _FALSY:
            return False
    msg = f"Cannot interpret {value!r} as boolean"
    raise ValueError(msg)


def _first_set(environ: typ.Mapping[str, str], *names: str) -> str:
    for name in names:
        if value := (environ.get(name) or "").strip():
            return value
    return ""


def load_config(
    environ: typ.Mapping[str, str] | None = None,
    *,
    tag: str | None = None,
    repository: str | None = None,
    require_tag: bool = True,
) -> PublishConfig:
    """Build a :class:`PublishConfig` from the workflow environment.

    Parameters
    ----------
    environ
        Mapping to read from. Defaults to :data:`os.environ`.
    tag
        Explicit tag overriding ``INPUT_TAG``/``GITHUB_REF_NAME``.
    repository
        Explicit repository overriding
        ``INPUT_REPOSITORY``/``GITHUB_REPOSITORY``.
    require_tag
        When ``False``, a missing tag is tolerated and left empty. Stages
        that address a release by identifier do not need one.

    Raises
    ------
    ConfigError
        Raised when the repository or tag cannot be determined, or when the
        repository is not in ``owner/name`` form.
    """
    source = os.environ if environ is None else environ

    resolved_repo = (repository or "").strip() or _first_set(
        source, "INPUT_REPOSITORY", "GITHUB_REPOSITORY"
    )
    if not resolved_repo:
        msg = "Repository is not set; export GITHUB_REPOSITORY as owner/name."
        raise ConfigError(msg)
    owner, _, name = resolved_repo.partition("/")
    if not owner or not name or "/" in name:
        msg = f"Repository must be in owner/name form, got {resolved_repo!r}."
        raise ConfigError(msg)

    resolved_tag = (tag or "").strip() or _first_set(
        source, "INPUT_TAG", "GITHUB_REF_NAME"
    )
    if require_tag and not resolved_tag:
        msg = "Release tag is not set; export GITHUB_REF_NAME or INPUT_TAG."
        raise ConfigError(msg)

    return PublishConfig(
        repository=resolved_repo,
        tag=resolved_tag,
        token=_first_set(source, *_TOKEN_VARS),
        actor=_first_set(source, "GITHUB_ACTOR") or DEFAULT_ACTOR,
        api_url=(_first_set(source, "GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
        registry=_first_set(source, "INPUT_REGISTRY") or DEFAULT_REGISTRY,
    )
