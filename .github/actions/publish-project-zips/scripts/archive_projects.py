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

r"""Zip every project directory for the publishing jobs.

Each immediate subdirectory of ``projects-dir`` becomes
``<output-dir>/<project>.zip``. A missing ``projects-dir`` is not an error.

Examples
--------
Archive the projects of the current checkout::

    export GITHUB_OUTPUT="$(mktemp)"
    INPUT_PROJECTS_DIR=projects INPUT_OUTPUT_DIR=temp_zips \
        uv run archive_projects.py
"""

from __future__ import annotations

import logging
from pathlib import Path

import cyclopts
from cyclopts import App
from syspath_hack import prepend_to_syspath

_SCRIPT_DIR = Path(__file__).resolve().parent
prepend_to_syspath(_SCRIPT_DIR)

from project_zips import ArchiveError, create_project_archives
from project_zips.output import annotate_error, github_output_path, write_github_output

app: App = App(
    help="Zip each project directory into a hand-off directory.",
    config=cyclopts.config.Env("INPUT_", command=False),
)


def main(*, projects_dir: Path, output_dir: Path) -> int:
    """Archive the projects and export ``archive_count``/``archive_dir``.

    Returns
    -------
    int
        ``0`` on success, ``1`` when an archive cannot be written.
    """
    try:
        archives = create_project_archives(projects_dir, output_dir)
    except ArchiveError as exc:
        annotate_error("Archive Failure", exc)
        return 1

    write_github_output(
        github_output_path(),
        {"archive_count": str(len(archives)), "archive_dir": output_dir.as_posix()},
    )
    print(f"Created {len(archives)} project zip(s) in '{output_dir}'.")
    return 0


@app.default
def cli(
    *,
    projects_dir: Path = Path("projects"),
    output_dir: Path = Path("temp_zips"),
) -> None:
    """Zip each project directory.

    Parameters
    ----------
    projects_dir
        Directory whose immediate subdirectories are archived.
    output_dir
        Directory that receives the zip files.
    """
    raise SystemExit(main(projects_dir=projects_dir, output_dir=output_dir))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    app()
