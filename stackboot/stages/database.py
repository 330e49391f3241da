"""Database setup for the development and test environments.

Flow: make db/structure.sql writable, start the app service, probe for an
existing database, then either create it or (when it exists) drop-and-create
or migrate, per the resolved DatabaseAction. Both environments are migrated
and a freshly created database is seeded.
"""

import logging
from pathlib import Path

from stackboot.config import DatabaseAction
from stackboot.permissions import host_fallback, probe
from stackboot.runner import StageContext

logger = logging.getLogger(__name__)

STRUCTURE_FILE = "db/structure.sql"

DROP_WARNING = (
    "!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!\n"
    "This script will destroy ALL EXISTING DATA if it continues\n"
    "If you want to migrate the existing database, cancel now\n"
    "!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!"
)


def ensure_structure_file_writable(ctx: StageContext, root: Path | None = None) -> None:
    if probe(ctx, [STRUCTURE_FILE]):
        return
    ctx.console.message(
        f"The 'docker' user is not allowed to write to {STRUCTURE_FILE}. We need write\n"
        "permissions so we can run migrations."
    )
    path = (root or Path.cwd()) / STRUCTURE_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    except OSError as e:
        logger.warning("could not touch %s: %s", path, e)
    host_fallback(ctx, ["chmod", "a+rw", STRUCTURE_FILE])


def database_exists(ctx: StageContext) -> bool:
    try:
        result = ctx.run(
            ctx.in_app(["bundle", "exec", "rails", "runner", "ActiveRecord::Base.connection"])
        )
    except OSError as e:
        logger.warning("database probe errored: %s", e)
        return False
    return result.ok


def migrate(ctx: StageContext, rails_env: str, label: str) -> None:
    ctx.run_in_app(["bundle", "exec", "rake", "db:migrate", f"RAILS_ENV={rails_env}"], label)


def rake_db_migrate_dev_and_test(ctx: StageContext) -> None:
    migrate(ctx, "development", "Migrating development DB...")
    migrate(ctx, "test", "Migrating test DB...")


def create_db(ctx: StageContext) -> None:
    console = ctx.console
    ensure_structure_file_writable(ctx)

    with console.spinner("Checking for existing db..."):
        ctx.run_checked(ctx.compose("up", "-d", ctx.settings.app_service))
        exists = database_exists(ctx)

    action = DatabaseAction.DROP
    if exists:
        console.message("An existing database was found.")
        action = ctx.resolve_database_action()
        if action == DatabaseAction.DROP:
            console.warning(DROP_WARNING)
            console.message('About to run "bundle exec rake db:drop"')
            ctx.run_in_app(["bundle", "exec", "rake", "db:drop"], "Deleting db.....")

    if action == DatabaseAction.DROP:
        ctx.run_in_app(["bundle", "exec", "rake", "db:create"], "Creating new database....")
        ctx.database_created = True

    # db:migrate only targets development unless RAILS_ENV is given
    migrate(ctx, "development", "Migrating (Development env)....")
    migrate(ctx, "test", "Migrating (Test env)....")

    if ctx.database_created:
        ctx.run_in_app(["bundle", "exec", "rake", "db:initial_setup"], "Running initial setup...", tty=True)
