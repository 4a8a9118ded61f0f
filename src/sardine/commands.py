"""
Running external command line tools, and the eslint check built on top.
"""
from __future__ import annotations

import subprocess
import typing as t
from pathlib import Path

from .core import BuildError, LintError


class CommandResult(t.NamedTuple):
    returncode: int
    stdout: str
    stderr: str


def run_command(command: list[str], cwd: Path | None = None) -> CommandResult:
    """
    Run @command without a shell and collect its output. A non-zero exit
    status is reported, not raised.
    """
    try:
        proc = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding='utf-8',
            check=False,
        )
    except OSError as e:
        raise BuildError(f'Could not run {command[0]}: {e}') from e
    return CommandResult(proc.returncode, proc.stdout or '', proc.stderr or '')


def eslint_fix(executable: str, target: str, cwd: Path | None = None):
    """
    Run eslint in fix mode on @target. Whatever eslint still prints after
    fixing counts as a failure, as does a crash (exit status 2). A target
    matching no files is skipped.
    """
    result = run_command([executable, '--fix', '--no-error-on-unmatched-pattern', target], cwd=cwd)
    if result.stdout.strip():
        raise LintError(target, result.stdout.strip())
    if result.returncode > 1:
        raise LintError(target, result.stderr.strip())
