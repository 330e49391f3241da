"""Exception hierarchy for the bootstrapper.

Every error that should halt a required stage derives from BootstrapError.
Remediation failures are not exceptions; see permissions.RemediationResult.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stackboot.executor import CommandResult


class BootstrapError(Exception):
    """Base class for failures that stop a stage."""

    pass


class PreflightError(BootstrapError):
    """Not running from the expected project root."""

    pass


class CommandFailed(BootstrapError):
    """An external command exited non-zero and no remediation covers it."""

    def __init__(self, argv: list[str], result: "CommandResult"):
        self.argv = list(argv)
        self.result = result
        super().__init__(
            f"Command failed with exit code {result.exit_code}: {' '.join(self.argv)}"
        )


class PermissionDenied(BootstrapError):
    """Paths are still not writable after remediation."""

    def __init__(self, paths: list[str], message: str = ""):
        self.paths = list(paths)
        super().__init__(
            message or f"Still not allowed to write to: {', '.join(self.paths)}"
        )


class LivenessCheckFailed(BootstrapError):
    """The restarted app service did not answer the HTTP probe."""

    pass
