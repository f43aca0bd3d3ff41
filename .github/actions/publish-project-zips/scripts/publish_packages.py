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

r"""Push the project zips to the container registry as OCI artifacts.

Each ``<project>.zip`` is pushed as
``<registry>/<owner>/<repo>/<sanitized-project>:<tag>`` using ``oras``.

Examples
--------
Log in with the workflow token and push every downloaded zip::

    GITHUB_TOKEN=ghp_... GITHUB_REPOSITORY=owner/repo GITHUB_REF_NAME=v1.0.0 \
        uv run publish_packages.py

Print the references without touching the registry::

    INPUT_DRY_RUN=true ... uv run publish_packages.py
"""

from __future__ import annotations

import logging
from pathlib import Path

import cyclopts
from cyclopts import App
from syspath_hack import prepend_to_syspath

_SCRIPT_DIR = Path(__file__).resolve().parent
prepend_to_syspath(_SCRIPT_DIR)

from project_zips import (
    ConfigError,
    OrasClient,
    PublishConfig,
    RegistryError,
    coerce_bool,
    discover_archives,
    load_config,
    publish_packages,
)
from project_zips.output import (
    annotate_error,
    github_output_path,
    render_outcome_table,
    write_github_output,
    write_step_summary,
)
from project_zips.packages import ArtifactPusher

app: App = App(
    help="Push project zips to the container registry as OCI artifacts.",
    config=cyclopts.config.Env("INPUT_", command=False),
)


def main(
    config: PublishConfig,
    *,
    zip_dir: Path,
    pusher: ArtifactPusher | None = None,
    dry_run: bool = False,
    login: bool = True,
) -> int:
    """Push the zips in ``zip_dir`` and report per-archive outcomes.

    Returns
    -------
    int
        ``0`` when every archive was pushed or skipped, ``1`` when the
        registry login failed or any push failed.
    """
    archives = discover_archives(zip_dir)
    if not archives:
        print(f"No zip files found in '{zip_dir}'. Skipping upload to GitHub Packages.")
        return 0

    registry_client = OrasClient() if pusher is None else pusher
    try:
        if login and not dry_run:
            registry_client.login(
                config.registry, config.actor, config.require_token()
            )
        print(f"Publishing zips from: {zip_dir}")
        report = publish_packages(
            archives,
            config.tag,
            registry=config.registry,
            repository=config.repository,
            pusher=registry_client,
            dry_run=dry_run,
        )
    except (ConfigError, RegistryError) as exc:
        annotate_error("Package Publish Failure", exc)
        return 1

    write_github_output(
        github_output_path(),
        {
            "pushed_count": str(len(report.names("pushed"))),
            "publish_error": "true" if report.failed else "false",
        },
    )
    write_step_summary(render_outcome_table("Packages", report.rows()))

    for name in report.names("failed"):
        annotate_error("Package Publish Failure", f"Failed to publish {name}")
    if report.failed:
        return 1
    print("All project zips published to GitHub Packages.")
    return 0


@app.default
def cli(
    *,
    zip_dir: Path = Path("downloaded_zips"),
    dry_run: bool | str = False,
    registry_login: bool | str = True,
) -> None:
    """Push project zips as OCI artifacts.

    Parameters
    ----------
    zip_dir
        Directory holding the downloaded zip files.
    dry_run
        When true, print the references without logging in or pushing.
    registry_login
        Log into the registry with the workflow token before pushing.
    """
    try:
        config = load_config()
        dry_run_value = coerce_bool(dry_run, default=False)
        login = coerce_bool(registry_login, default=True)
    except (ConfigError, ValueError) as exc:
        annotate_error("Package Publish Failure", exc)
        raise SystemExit(1) from exc
    raise SystemExit(
        main(config, zip_dir=zip_dir, dry_run=dry_run_value, login=login)
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    app()
