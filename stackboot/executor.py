"""Command execution abstraction.

Stages never call subprocess directly. They go through an executor with a
single ``execute(argv)`` method, so tests can substitute a fake that records
calls and returns canned results.
"""

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import List, Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandExecutor(Protocol):
    def execute(self, argv: Sequence[str], *, tty: bool = False) -> CommandResult:
        ...


class SubprocessExecutor:
    """Runs commands with subprocess, blocking until they exit.

    No timeout is applied; the external tools' own behavior decides. With
    ``tty=True`` the command inherits the terminal so it can prompt the
    operator, and its output is not captured.
    """

    def __init__(self, cwd: str | None = None):
        self.cwd = cwd

    def execute(self, argv: Sequence[str], *, tty: bool = False) -> CommandResult:
        try:
            if tty:
                completed = subprocess.run(list(argv), cwd=self.cwd)
                return CommandResult(completed.returncode)
            completed = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                errors="replace",
                cwd=self.cwd,
            )
        except FileNotFoundError as e:
            # Missing binary behaves like the shell's "command not found"
            return CommandResult(127, "", f"{argv[0]}: {e.strerror or 'command not found'}\n")
        except OSError as e:
            # Not executable, or the exec failed for another reason
            return CommandResult(126, "", f"{argv[0]}: {e.strerror or e}\n")
        return CommandResult(completed.returncode, completed.stdout or "", completed.stderr or "")


class TrackingExecutor:
    """Wraps another executor and logs every invocation to the durable log."""

    def __init__(self, inner: CommandExecutor):
        self.inner = inner
        self.history: List[tuple[list[str], CommandResult]] = []

    def execute(self, argv: Sequence[str], *, tty: bool = False) -> CommandResult:
        argv = list(argv)
        logger.info("$ %s", " ".join(argv))
        start = time.monotonic()
        result = self.inner.execute(argv, tty=tty)
        took = time.monotonic() - start
        self.history.append((argv, result))
        logger.info("exit=%s took=%.1fs", result.exit_code, took)
        if result.stdout:
            logger.debug("stdout:%s%s", os.linesep, result.stdout.rstrip())
        if result.stderr:
            log = logger.debug if result.ok else logger.info
            log("stderr:%s%s", os.linesep, result.stderr.rstrip())
        return result
