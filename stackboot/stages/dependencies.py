"""Backend dependency installation with lock file repair.

Before bundle install runs, the lock files it regenerates must exist and be
writable by the container user. A failing ``bundle check`` is taken to mean
the lock files conflict with the manifest: they are removed, recreated and
made writable so bundle install can regenerate them from scratch.
"""

import logging

from stackboot.config import LOCK_FILE_PROBE
from stackboot.permissions import (
    clean_conflicting_lock_files,
    create_required_lock_files,
    ensure_writable,
    fix_lock_file_permissions,
)
from stackboot.runner import StageContext

logger = logging.getLogger(__name__)


def lock_files_consistent(ctx: StageContext) -> bool:
    """bundle check; any failure, including an executor error, counts as a conflict."""
    ctx.console.message("Checking for lock file conflicts...")
    try:
        result = ctx.run(ctx.in_app(["bundle", "check"]))
    except OSError as e:
        logger.warning("bundle check errored: %s", e)
        return False
    return result.ok


def check_gemfile_lock_permissions(ctx: StageContext) -> bool:
    """Repair lock files ahead of bundle install. Returns True when a clean was needed."""
    ctx.console.message("Checking Gemfile.lock permissions...")
    create_required_lock_files(ctx)

    conflicting = not lock_files_consistent(ctx)
    if conflicting:
        ctx.console.message(
            "Lock files are out of sync or have conflicts. We need to clean them so bundle install\n"
            "can regenerate them properly."
        )
        clean_conflicting_lock_files(ctx)
        create_required_lock_files(ctx)
        fix_lock_file_permissions(ctx)

    ensure_writable(
        ctx,
        LOCK_FILE_PROBE,
        fix_lock_file_permissions,
        "The 'docker' user is not allowed to write to Gemfile.lock files. We need write\n"
        "permissions so we can run bundle install.",
    )
    return conflicting


def install_backend_dependencies(ctx: StageContext) -> None:
    check_gemfile_lock_permissions(ctx)
    ctx.run_in_app([ctx.settings.install_script, "-c", "bundle"], "> Bundle install...")


def bundle_install(ctx: StageContext) -> None:
    ctx.run_in_app(["bundle", "install"], "  Installing gems (bundle install) ...")
