"""Permission probes and best-effort remediation.

A probe is a cheap write attempt (``touch``) made as the unprivileged
container user. When it fails, a privileged remediation runs as root inside
the app container. Remediation never raises: its outcome is reported as a
RemediationResult so callers can tell "attempted but failed" apart from
"not needed".
"""

import logging
import shlex
from dataclasses import dataclass
from typing import Sequence

from stackboot.config import MAIN_LOCK_FILES, REQUIRED_DIRS
from stackboot.exceptions import PermissionDenied
from stackboot.runner import StageContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemediationResult:
    attempted: bool
    succeeded: bool
    detail: str = ""

    @classmethod
    def not_needed(cls) -> "RemediationResult":
        return cls(attempted=False, succeeded=True, detail="not needed")


def probe(ctx: StageContext, paths: Sequence[str]) -> bool:
    """True when the container user can write to every path."""
    try:
        result = ctx.run(ctx.in_app(["touch", *paths]))
    except OSError as e:
        logger.warning("write probe errored for %s: %s", list(paths), e)
        return False
    logger.info("write probe %s: %s", list(paths), "ok" if result.ok else "denied")
    return result.ok


def remediate(ctx: StageContext, argv: Sequence[str], *, confirm: bool = True) -> RemediationResult:
    """Run *argv* as root in the app container, swallowing failures."""
    cmd = ctx.in_app(argv, root=True)
    if confirm and not ctx.console.confirm_command(shlex.join(cmd)):
        logger.info("remediation declined: %s", shlex.join(cmd))
        return RemediationResult(attempted=False, succeeded=False, detail="declined by operator")
    try:
        result = ctx.run(cmd)
    except OSError as e:
        logger.warning("remediation errored: %s", e)
        return RemediationResult(attempted=True, succeeded=False, detail=str(e))
    if not result.ok:
        logger.warning("remediation exited %s: %s", result.exit_code, shlex.join(cmd))
        return RemediationResult(attempted=True, succeeded=False, detail=result.stderr.strip())
    return RemediationResult(attempted=True, succeeded=True)


def remediate_shell(ctx: StageContext, script: str, *, confirm: bool = True) -> RemediationResult:
    """remediate() for a multi-step shell snippet."""
    return remediate(ctx, ["bash", "-c", script], confirm=confirm)


def ensure_writable(
    ctx: StageContext,
    paths: Sequence[str],
    fix,
    message: str,
    *,
    strict: bool = True,
) -> RemediationResult:
    """Probe *paths*, remediating with *fix(ctx)* only when the probe fails.

    With *strict*, paths that are still not writable afterwards raise
    PermissionDenied instead of looping.
    """
    if probe(ctx, paths):
        return RemediationResult.not_needed()

    ctx.console.message(message)
    outcome: RemediationResult = fix(ctx)
    if probe(ctx, paths):
        return RemediationResult(attempted=outcome.attempted, succeeded=True, detail=outcome.detail)

    if strict:
        raise PermissionDenied(list(paths))
    return RemediationResult(attempted=outcome.attempted, succeeded=False, detail=outcome.detail or "still not writable")


# ----------------------------------------------------------------------
# Lock files
# ----------------------------------------------------------------------

def create_required_lock_files(ctx: StageContext) -> RemediationResult:
    """mkdir the required directories and touch every lock file, as root."""
    ctx.console.message("Creating required lock files...")
    failed: list[str] = []
    for directory in REQUIRED_DIRS:
        if not remediate(ctx, ["mkdir", "-p", directory], confirm=False).succeeded:
            failed.append(directory)
    for lock_file in MAIN_LOCK_FILES:
        if not remediate(ctx, ["touch", lock_file], confirm=False).succeeded:
            failed.append(lock_file)
    return RemediationResult(
        attempted=True,
        succeeded=not failed,
        detail=f"could not create: {', '.join(failed)}" if failed else "",
    )


def fix_lock_file_permissions(ctx: StageContext) -> RemediationResult:
    ctx.console.message("Fixing lock file permissions...")
    return remediate(ctx, ["find", ".", "-name", "*.lock", "-exec", "chmod", "666", "{}", ";"])


def clean_conflicting_lock_files(ctx: StageContext) -> RemediationResult:
    ctx.console.message("Cleaning conflicting lock files...")
    return remediate(ctx, ["rm", "-f", *MAIN_LOCK_FILES])


def host_fallback(ctx: StageContext, argv: Sequence[str]) -> RemediationResult:
    """Run a confirmed command on the host rather than in the container."""
    command = shlex.join(argv)
    if not ctx.console.confirm_command(command):
        return RemediationResult(attempted=False, succeeded=False, detail="declined by operator")
    try:
        result = ctx.run(argv)
    except OSError as e:
        return RemediationResult(attempted=True, succeeded=False, detail=str(e))
    return RemediationResult(attempted=True, succeeded=result.ok, detail=result.stderr.strip())
