#!/usr/bin/env -S uv run --script
# fmt: off
# /// script
# requires-python = ">=3.12"
# dependencies = [
#   "cyclopts>=3.24,<4.0",
#   "httpx>=0.28,<0.29",
#   "plumbum>=1.8,<2.0",
#   "syspath-hack>=0.4.0,<0.5.0",
#   "tenacity>=8.2,<10.0",
#   "typer>=0.17,<0.18",
# ]
# ///
# fmt: on

r"""Get or create the GitHub release for the pushed tag.

The release identifier and upload URL are written to ``GITHUB_OUTPUT`` as
``release_id`` and ``upload_url`` for the asset upload job.

Examples
--------
Resolve the release for ``v1.2.3``::

    GITHUB_TOKEN=ghp_... GITHUB_REPOSITORY=owner/repo \
        INPUT_TAG=v1.2.3 uv run reconcile_release.py
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App
from syspath_hack import prepend_to_syspath

_SCRIPT_DIR = Path(__file__).resolve().parent
prepend_to_syspath(_SCRIPT_DIR)

from project_zips import (
    ConfigError,
    GithubClient,
    PublishConfig,
    ReleaseError,
    load_config,
    reconcile_release,
)
from project_zips.output import annotate_error, github_output_path, write_github_output

if typ.TYPE_CHECKING:
    import httpx

app: App = App(
    help="Get or create the GitHub release for a tag.",
    config=cyclopts.config.Env("INPUT_", command=False),
)


def main(config: PublishConfig, *, http_client: httpx.Client | None = None) -> int:
    """Reconcile the release for ``config.tag`` and export its details.

    Returns
    -------
    int
        ``0`` when the release exists afterwards, ``1`` otherwise.
    """
    try:
        with GithubClient.from_config(config, http_client=http_client) as client:
            info = reconcile_release(client, config.tag)
    except (ConfigError, ReleaseError) as exc:
        annotate_error("Release Reconciliation Failure", exc)
        return 1

    write_github_output(github_output_path(), info.as_outputs())
    return 0


@app.default
def cli(*, tag: str = "", repository: str = "") -> None:
    """Get or create the release for ``tag``.

    Parameters
    ----------
    tag
        Tag to reconcile. Defaults to ``GITHUB_REF_NAME``.
    repository
        Repository in ``owner/name`` form. Defaults to ``GITHUB_REPOSITORY``.
    """
    try:
        config = load_config(tag=tag, repository=repository)
    except ConfigError as exc:
        annotate_error("Release Reconciliation Failure", exc)
        raise SystemExit(1) from exc
    raise SystemExit(main(config))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    app()
