"""Helpers for writing GitHub Actions outputs, summaries and annotations."""

from __future__ import annotations

import os
import sys
import typing as typ
from pathlib import Path

__all__ = [
    "annotate_error",
    "github_output_path",
    "render_outcome_table",
    "write_github_output",
    "write_step_summary",
]


def _escape(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def github_output_path(environ: typ.Mapping[str, str] | None = None) -> Path | None:
    """Return the ``GITHUB_OUTPUT`` file, or ``None`` outside Actions."""
    source = os.environ if environ is None else environ
    value = source.get("GITHUB_OUTPUT")
    return Path(value) if value else None


def write_github_output(file: Path | None, values: typ.Mapping[str, str]) -> None:
    """Append ``values`` as ``key=value`` lines to the ``GITHUB_OUTPUT`` file.

    Nothing is written when ``file`` is ``None`` so that the scripts can run
    locally without an Actions runner.
    """
    if file is None:
        return
    file.parent.mkdir(parents=True, exist_ok=True)
    with file.open("a", encoding="utf-8") as handle:
        for key, value in values.items():
            handle.write(f"{key}={_escape(value)}\n")


def render_outcome_table(
    heading: str, rows: typ.Iterable[tuple[str, str, str]]
) -> str:
    """Render ``(name, outcome, detail)`` rows as a markdown table."""
    lines = [
        f"## {heading}",
        "",
        "| Archive | Outcome | Detail |",
        "| --- | --- | --- |",
    ]
    lines.extend(
        "| " + " | ".join(cell.replace("|", r"\|") for cell in row) + " |"
        for row in rows
    )
    return "\n".join(lines) + "\n"


def write_step_summary(
    content: str, environ: typ.Mapping[str, str] | None = None
) -> None:
    """Append ``content`` to ``GITHUB_STEP_SUMMARY`` when it is configured."""
    source = os.environ if environ is None else environ
    if not (summary := source.get("GITHUB_STEP_SUMMARY")):
        return
    summary_path = Path(summary)
    prefix = "\n" if summary_path.exists() and summary_path.stat().st_size > 0 else ""
    with summary_path.open("a", encoding="utf-8") as handle:
        handle.write(prefix + content)


def annotate_error(title: str, message: object) -> None:
    """Print ``message`` as a GitHub error annotation on stderr."""
    print(f"::error title={title}::{message}", file=sys.stderr)
