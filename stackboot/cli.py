"""stackboot - Docker Compose development environment bootstrapper.

Usage:
    stackboot                      # Full setup (same as `stackboot setup`)
    stackboot update               # bundle, yarn, migrate, compile
    stackboot db --db-action migrate
    stackboot verify --url http://canvas.docker

Environment Variables:
    - JENKINS / CI: automation mode, no prompts. Any non-empty CI value counts,
      and an existing database is then dropped unless --db-action migrate
      (or STACKBOOT_DB_ACTION=migrate) is given
    - OS: host OS name, alters image build arguments
    - CANVAS_SKIP_DOCKER_USERMOD: do not pass USER_ID into the image build
    - DOCKER_COMMAND: container command (default: "docker compose")
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from stackboot import __version__
from stackboot.config import DatabaseAction, Settings
from stackboot.console import Console
from stackboot.executor import SubprocessExecutor, TrackingExecutor
from stackboot.logging_config import configure_logging
from stackboot.runner import RunReport, StageContext, StageOutcome, StageRunner
from stackboot.stages import SEQUENCES

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackboot",
        description="Bootstrap the Docker Compose development environment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  setup           Full bootstrap: configure, build, start, install, db, assets, verify
  update          bundle install, yarn install, migrate dev+test, compile assets
  configure       Copy docker config, seed override file and .env
  build-images    Build container images
  install         Backend and frontend dependencies, then compile assets
  db              Create or migrate the development and test databases
  compile-assets  Compile css and js assets
  verify          Restart the app service and check it answers HTTP
        """,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="setup",
        choices=sorted(SEQUENCES),
        help="What to run (default: setup)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Run privileged remediation commands without asking",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Echo the setup log to stderr")
    parser.add_argument(
        "--db-action",
        choices=[a.value for a in DatabaseAction],
        default=None,
        help="What to do with an existing database instead of prompting",
    )
    parser.add_argument("--url", default=None, help="URL for the liveness check")
    parser.add_argument("--log-file", default=None, help="Setup log path (default: log/docker_dev_setup.log)")
    return parser


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.db_action is not None:
        overrides["db_action"] = args.db_action
    if args.url:
        overrides["verify_url"] = args.url
    if args.log_file:
        overrides["log_file"] = args.log_file
    if args.yes:
        overrides["assume_yes"] = True
    return Settings(**overrides)


def print_summary(console: Console, report: RunReport) -> None:
    for result in report.results:
        if result.outcome == StageOutcome.SUCCESS:
            console.success(result.stage)
        elif result.outcome == StageOutcome.PARTIAL:
            console.warning(f"~ {result.stage} (partial)")
        elif result.outcome == StageOutcome.SKIPPED:
            console.message(f"- {result.stage} (skipped)")
        else:
            console.error(f"✗ {result.stage}: {result.message}")


def main(argv: Optional[List[str]] = None) -> int:
    args = create_argument_parser().parse_args(argv)
    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return EXIT_FAILED

    configure_logging(settings.log_file, settings.log_level, verbose=args.verbose)
    console = Console(
        automation=settings.automation,
        assume_yes=settings.assume_yes,
        color_enabled=not args.no_color,
    )
    context = StageContext(
        settings=settings,
        console=console,
        executor=TrackingExecutor(SubprocessExecutor()),
    )
    logger.info("stackboot %s: %s (automation=%s)", __version__, args.command, settings.automation)

    try:
        report = StageRunner(context).run_all(SEQUENCES[args.command]())
    except KeyboardInterrupt:
        console.error("\nInterrupted. Partially completed stages are not rolled back.")
        logger.warning("interrupted by operator")
        return EXIT_INTERRUPTED

    print_summary(console, report)
    for note in context.notes:
        console.warning(note)
    if not report.ok:
        console.error(f"Bootstrap halted at '{report.halted_at}'. See {settings.log_file} for details.")
        return EXIT_FAILED
    return EXIT_OK
