r"""Run external tools through plumbum with the invocation echoed first.

Examples
--------
>>> from plumbum import local
>>> run_cmd(local["echo"]["hello"])  # doctest: +SKIP
$ echo hello
RunResult(returncode=0, stdout='hello\n', stderr='')
"""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import typing as typ

import typer
from plumbum import local
from plumbum.commands.processes import ProcessExecutionError

if typ.TYPE_CHECKING:
    from pathlib import Path

__all__ = ["RunResult", "SupportsRun", "run_cmd"]


class RunResult(typ.NamedTuple):
    """Exit status and captured streams of a finished command."""

    returncode: int
    stdout: str
    stderr: str


@typ.runtime_checkable
class SupportsRun(typ.Protocol):
    """Plumbum-style command objects accepted by :func:`run_cmd`."""

    def formulate(self) -> cabc.Sequence[str]:  # pragma: no cover - protocol
        ...

    def run(
        self, *args: object, **kwargs: object
    ) -> object:  # pragma: no cover - protocol
        ...

    def __lshift__(self, data: str) -> SupportsRun:  # pragma: no cover - protocol
        ...


def _text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run_cmd(
    cmd: object,
    *,
    stdin: str | None = None,
    cwd: Path | None = None,
    timeout: float | None = None,
    check: bool = True,
) -> RunResult:
    """Echo ``cmd`` and run it, returning its exit status and output.

    Parameters
    ----------
    cmd
        Bound plumbum command, for example ``local["oras"]["push", ref]``.
    stdin
        Text piped to the command. It is never echoed, which keeps secrets
        such as registry passwords out of the log.
    cwd
        Working directory for the duration of the command.
    timeout
        Seconds after which the command is killed.
    check
        When ``True``, a non-zero exit raises
        :class:`~plumbum.commands.processes.ProcessExecutionError`.
    """
    if not isinstance(cmd, SupportsRun):
        msg = "run_cmd requires a plumbum command invocation"
        raise TypeError(msg)

    typer.echo(f"$ {cmd}")
    prepared = cmd if stdin is None else cmd << stdin
    workdir = local.cwd(cwd) if cwd is not None else contextlib.nullcontext()
    with workdir:
        returncode, stdout, stderr = typ.cast(
            "tuple[int, str | bytes | None, str | bytes | None]",
            prepared.run(retcode=None, timeout=timeout),
        )

    result = RunResult(int(returncode), _text(stdout), _text(stderr))
    if check and result.returncode != 0:
        raise ProcessExecutionError(
            [str(part) for part in cmd.formulate()],
            result.returncode,
            result.stdout,
            result.stderr,
        )
    return result
