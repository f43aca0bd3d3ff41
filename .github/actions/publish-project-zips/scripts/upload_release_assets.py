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

r"""Attach the project zips to the release as assets.

Assets whose name is already attached to the release are skipped, so the
script can be re-run for the same tag without duplicating anything. A failed
upload does not stop the remaining ones but makes the script exit with
status 1.

Examples
--------
Upload the zips handed over by the archive job::

    GITHUB_TOKEN=ghp_... GITHUB_REPOSITORY=owner/repo \
        INPUT_RELEASE_ID=42 \
        INPUT_UPLOAD_URL="$UPLOAD_URL" \
        uv run upload_release_assets.py

Show the plan without uploading::

    INPUT_DRY_RUN=true ... uv run upload_release_assets.py
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from syspath_hack import prepend_to_syspath

_SCRIPT_DIR = Path(__file__).resolve().parent
prepend_to_syspath(_SCRIPT_DIR)

from project_zips import (
    ConfigError,
    GithubApiError,
    GithubClient,
    PublishConfig,
    coerce_bool,
    discover_archives,
    load_config,
    publish_assets,
)
from project_zips.output import (
    annotate_error,
    github_output_path,
    render_outcome_table,
    write_github_output,
    write_step_summary,
)

if typ.TYPE_CHECKING:
    import httpx

app: App = App(
    help="Upload project zips to a GitHub release.",
    config=cyclopts.config.Env("INPUT_", command=False),
)


def main(
    config: PublishConfig,
    *,
    zip_dir: Path,
    release_id: int,
    upload_url: str,
    dry_run: bool = False,
    http_client: httpx.Client | None = None,
) -> int:
    """Upload the zips in ``zip_dir`` to ``release_id``.

    Returns
    -------
    int
        ``0`` when every archive was uploaded or skipped, ``1`` when the
        asset list could not be read or any upload failed.
    """
    archives = discover_archives(zip_dir)
    if not archives:
        print(f"No zip files found in '{zip_dir}'. Skipping upload to release assets.")
        return 0

    try:
        with GithubClient.from_config(config, http_client=http_client) as client:
            report = publish_assets(
                client, archives, release_id, upload_url, dry_run=dry_run
            )
    except (ConfigError, GithubApiError) as exc:
        annotate_error("Release Asset Upload Failure", exc)
        return 1

    uploaded = report.names("uploaded")
    failed = report.names("failed")
    write_github_output(
        github_output_path(),
        {
            "uploaded_count": str(len(uploaded)),
            "skipped_count": str(len(report.names("skipped"))),
            "upload_error": "true" if report.failed else "false",
        },
    )
    write_step_summary(render_outcome_table("Release assets", report.rows()))

    for name in failed:
        annotate_error("Release Asset Upload Failure", f"Failed to upload {name}")
    print("All project zips processed for release assets.")
    return 1 if report.failed else 0


@app.default
def cli(
    *,
    release_id: typ.Annotated[int, Parameter(required=True)],
    upload_url: typ.Annotated[str, Parameter(required=True)],
    zip_dir: Path = Path("downloaded_zips"),
    dry_run: bool | str = False,
) -> None:
    """Upload project zips to a release.

    Parameters
    ----------
    release_id
        Identifier of the release produced by ``reconcile_release.py``.
    upload_url
        Upload URL template of that release.
    zip_dir
        Directory holding the downloaded zip files.
    dry_run
        When true, list the planned uploads without sending them.
    """
    try:
        config = load_config(require_tag=False)
        dry_run_value = coerce_bool(dry_run, default=False)
    except (ConfigError, ValueError) as exc:
        annotate_error("Release Asset Upload Failure", exc)
        raise SystemExit(1) from exc
    raise SystemExit(
        main(
            config,
            zip_dir=zip_dir,
            release_id=release_id,
            upload_url=upload_url,
            dry_run=dry_run_value,
        )
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    app()
