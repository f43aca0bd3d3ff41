"""Tests for the plumbum command runner."""

from __future__ import annotations

import sys
import typing as typ

import pytest
from plumbum import local
from plumbum.commands.processes import ProcessExecutionError

from project_zips.commands import RunResult, run_cmd

if typ.TYPE_CHECKING:
    from pathlib import Path

PYTHON = local[sys.executable]


def test_returns_output_and_echoes_invocation(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """The command line is echoed and its output captured."""
    result = run_cmd(PYTHON["-c", "print('hello')"])

    assert result == RunResult(0, "hello\n", "")
    assert capsys.readouterr().out.startswith("$ ")


def test_pipes_stdin_without_echoing_it(capsys: pytest.CaptureFixture[str]) -> None:
    """Stdin reaches the process but never the log."""
    script = "import sys; print(sys.stdin.read().upper())"

    result = run_cmd(PYTHON["-c", script], stdin="secret")

    assert result.stdout == "SECRET\n"
    assert "secret" not in capsys.readouterr().out


def test_runs_in_requested_directory(tmp_path: Path) -> None:
    """The working directory applies for the duration of the command."""
    result = run_cmd(PYTHON["-c", "import os; print(os.getcwd())"], cwd=tmp_path)

    assert result.stdout.strip() == str(tmp_path.resolve())


def test_non_zero_exit_raises_when_checked() -> None:
    """Failures raise ProcessExecutionError carrying the exit status."""
    with pytest.raises(ProcessExecutionError) as excinfo:
        run_cmd(PYTHON["-c", "import sys; sys.exit(4)"])

    assert excinfo.value.retcode == 4


def test_non_zero_exit_is_returned_when_unchecked() -> None:
    """With check disabled the exit status is returned."""
    result = run_cmd(
        PYTHON["-c", "import sys; sys.stderr.write('bad'); sys.exit(2)"],
        check=False,
    )

    assert result.returncode == 2
    assert result.stderr == "bad"


def test_rejects_plain_argument_lists() -> None:
    """Only plumbum invocations are accepted."""
    with pytest.raises(TypeError, match="plumbum command"):
        run_cmd(["echo", "hi"])
