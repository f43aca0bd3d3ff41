"""Minimal GitHub REST client for release and asset management.

Requests are retried with bounded exponential backoff when GitHub reports a
transient failure (5xx, 429, a rate-limited 403, or a transport error). The
``Retry-After`` header, when present, takes precedence over the computed
backoff. Every other failure surfaces immediately as
:class:`~project_zips.errors.GithubApiError`.
"""

from __future__ import annotations

import contextlib
import datetime as dt
import logging
import re
import time
import typing as typ
import urllib.parse
from email.utils import parsedate_to_datetime

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from .errors import GithubApiError, GithubApiRetryError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import PublishConfig

__all__ = [
    "API_VERSION",
    "GithubClient",
    "expand_upload_url",
    "is_already_exists",
    "parse_retry_after",
]

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
USER_AGENT = "publish-project-zips"

MAX_ATTEMPTS = 5
INITIAL_DELAY = 1.0
MAX_BACKOFF_WAIT = 120.0
JITTER = 1.0
ERROR_DETAIL_LIMIT = 1024
PAGE_SIZE = 100

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
_URI_TEMPLATE = re.compile(r"\{[^}]*\}")

JsonObject: typ.TypeAlias = dict[str, typ.Any]


class _RetryAfterWait(wait_base):
    """Prefer the server's ``Retry-After`` hint over ``fallback``."""

    def __init__(self, fallback: wait_base, *, max_delay: float) -> None:
        super().__init__()
        self._fallback = fallback
        self._max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            exc = outcome.exception()
            if isinstance(exc, GithubApiRetryError) and exc.retry_after is not None:
                return min(max(exc.retry_after, 0.0), self._max_delay)
        return self._fallback(retry_state)


def _default_wait() -> wait_base:
    return _RetryAfterWait(
        wait_exponential_jitter(
            initial=INITIAL_DELAY, max=MAX_BACKOFF_WAIT, jitter=JITTER
        ),
        max_delay=MAX_BACKOFF_WAIT,
    )


def parse_retry_after(value: str | None) -> float | None:
    """Return the delay in seconds described by a ``Retry-After`` header.

    Both the delta-seconds and HTTP-date forms are accepted. ``None`` is
    returned when the header is absent, malformed, or already in the past.
    """
    if value is None or not (retry_after := value.strip()):
        return None
    if retry_after.isdigit():
        seconds = int(retry_after, base=10)
        return min(float(seconds), MAX_BACKOFF_WAIT) if seconds > 0 else None
    with contextlib.suppress(TypeError, ValueError, OverflowError):
        parsed = parsedate_to_datetime(retry_after)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=dt.UTC)
        delay = (parsed - dt.datetime.now(dt.UTC)).total_seconds()
        if delay > 0:
            return min(delay, MAX_BACKOFF_WAIT)
    return None


def expand_upload_url(template: str, name: str) -> httpx.URL:
    """Return the concrete upload URL for an asset called ``name``.

    GitHub publishes ``upload_url`` as an RFC 6570 template such as
    ``https://uploads.github.com/repos/o/r/releases/1/assets{?name,label}``;
    the template expression is dropped and ``name`` becomes a query
    parameter.
    """
    base = _URI_TEMPLATE.sub("", template)
    return httpx.URL(base).copy_merge_params({"name": name})


def _error_detail(response: httpx.Response) -> str:
    try:
        text = response.text
    except httpx.StreamError:  # pragma: no cover - streaming responses only
        text = ""
    detail = text.strip() or response.reason_phrase or ""
    if len(detail) > ERROR_DETAIL_LIMIT:
        return detail[:ERROR_DETAIL_LIMIT] + "…"
    return detail


def is_already_exists(exc: GithubApiError) -> bool:
    """Return True when GitHub rejected a create because the target exists.

    Both duplicate release tags and duplicate asset names are reported as
    ``422 Unprocessable Entity`` with an ``already_exists`` error code.
    """
    return (
        exc.status_code == httpx.codes.UNPROCESSABLE_ENTITY
        and "already_exists" in str(exc)
    )


def _is_rate_limited(response: httpx.Response) -> bool:
    if "retry-after" in response.headers:
        return True
    return response.headers.get("x-ratelimit-remaining") == "0"


def _raise_for_status(response: httpx.Response, action: str) -> None:
    """Translate an unsuccessful ``response`` into a client error."""
    status = response.status_code
    if response.is_success:
        return
    detail = _error_detail(response)

    if status == httpx.codes.UNAUTHORIZED:
        msg = (
            f"GitHub rejected the token while trying to {action} "
            f"(401 Unauthorized). Verify that GITHUB_TOKEN is valid. ({detail})"
        )
        raise GithubApiError(msg, status_code=status)

    if status == httpx.codes.FORBIDDEN and _is_rate_limited(response):
        msg = f"GitHub rate limited the request to {action} ({status}): {detail}"
        raise GithubApiRetryError(
            msg,
            status_code=status,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )

    if status in _RETRYABLE_STATUS_CODES:
        msg = f"GitHub API request to {action} failed with status {status}: {detail}"
        raise GithubApiRetryError(
            msg,
            status_code=status,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )

    msg = f"GitHub API request to {action} failed with status {status}: {detail}"
    raise GithubApiError(msg, status_code=status)


class GithubClient:
    """Talk to the releases endpoints of one repository.

    Parameters
    ----------
    repository
        Repository in ``owner/name`` form.
    token
        Token sent as a bearer credential.
    api_url
        Base URL of the REST API.
    http_client
        Pre-configured :class:`httpx.Client`. Tests pass one backed by
        :class:`httpx.MockTransport`; by default a client with a 30 second
        timeout is created and closed with this object.
    sleep
        Function used between retry attempts.
    """

    def __init__(
        self,
        repository: str,
        token: str,
        *,
        api_url: str = "https://api.github.com",
        http_client: httpx.Client | None = None,
        sleep: typ.Callable[[float], None] = time.sleep,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self.repository = repository
        self._api_url = api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": USER_AGENT,
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=httpx.Timeout(30.0))
        self._sleep = sleep
        self._max_attempts = max_attempts

    @classmethod
    def from_config(cls, config: PublishConfig, **kwargs: typ.Any) -> GithubClient:
        """Create a client for ``config``'s repository and token."""
        return cls(
            config.repository,
            config.require_token(),
            api_url=config.api_url,
            **kwargs,
        )

    def __enter__(self) -> GithubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _url(self, path: str) -> str:
        return f"{self._api_url}/repos/{self.repository}/{path.lstrip('/')}"

    def _send_once(
        self, method: str, url: str | httpx.URL, action: str, **kwargs: typ.Any
    ) -> httpx.Response:
        headers = self._headers | kwargs.pop("headers", {})
        try:
            response = self._client.request(
                method, url, headers=headers, follow_redirects=False, **kwargs
            )
        except httpx.TransportError as exc:
            msg = f"Failed to reach GitHub while trying to {action}: {exc!s}"
            raise GithubApiRetryError(msg) from exc
        _raise_for_status(response, action)
        return response

    def request(
        self, method: str, url: str | httpx.URL, *, action: str, **kwargs: typ.Any
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Raises
        ------
        GithubApiError
            Raised when GitHub rejects the request or transient failures
            persist after the final attempt.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=_default_wait(),
            retry=retry_if_exception_type(GithubApiRetryError),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            return retrying(self._send_once, method, url, action, **kwargs)
        except GithubApiRetryError as exc:
            msg = f"{exc} (gave up after {self._max_attempts} attempts)"
            raise GithubApiError(msg, status_code=exc.status_code) from exc

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        reason = outcome.exception() if outcome is not None else None
        logger.warning(
            "Attempt %d failed (%s); retrying.", retry_state.attempt_number, reason
        )

    @staticmethod
    def _json(response: httpx.Response, action: str) -> typ.Any:
        try:
            return response.json()
        except ValueError as exc:
            msg = f"GitHub returned invalid JSON while trying to {action}."
            raise GithubApiError(msg, status_code=response.status_code) from exc

    def get_release_by_tag(self, tag: str) -> JsonObject | None:
        """Return the release for ``tag`` or ``None`` when it does not exist."""
        action = f"read the release for tag {tag}"
        # Tags may contain "#", "%" or "/", which must not reach the path raw.
        path = f"releases/tags/{urllib.parse.quote(tag, safe='')}"
        try:
            response = self.request("GET", self._url(path), action=action)
        except GithubApiError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                return None
            raise
        return self._json(response, action)

    def create_release(
        self,
        tag: str,
        *,
        name: str,
        body: str,
        draft: bool = False,
        prerelease: bool = False,
    ) -> JsonObject:
        """Create a release for ``tag`` and return GitHub's representation."""
        payload = {
            "tag_name": tag,
            "name": name,
            "body": body,
            "draft": draft,
            "prerelease": prerelease,
        }
        action = f"create a release for tag {tag}"
        response = self.request(
            "POST", self._url("releases"), action=action, json=payload
        )
        return self._json(response, action)

    def list_release_assets(self, release_id: int) -> list[JsonObject]:
        """Return every asset attached to ``release_id``, following pagination."""
        action = f"list the assets of release {release_id}"
        url: str | None = self._url(f"releases/{release_id}/assets")
        params: dict[str, int] | None = {"per_page": PAGE_SIZE}
        assets: list[JsonObject] = []
        while url:
            response = self.request("GET", url, action=action, params=params)
            page = self._json(response, action)
            if not isinstance(page, list):
                msg = f"GitHub returned an unexpected payload while trying to {action}."
                raise GithubApiError(msg, status_code=response.status_code)
            assets.extend(page)
            url = response.links.get("next", {}).get("url")
            # The "next" link already carries the query string.
            params = None
        return assets

    def upload_asset(
        self,
        upload_url: str,
        path: Path,
        *,
        name: str,
        content_type: str = "application/zip",
    ) -> JsonObject:
        """Upload ``path`` as an asset named ``name`` to ``upload_url``."""
        action = f"upload {name}"
        response = self.request(
            "POST",
            expand_upload_url(upload_url, name),
            action=action,
            content=path.read_bytes(),
            headers={"Content-Type": content_type},
        )
        return self._json(response, action)
