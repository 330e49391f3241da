"""Stage runner and the per-run stage context."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from stackboot.config import DatabaseAction, Settings
from stackboot.console import Console
from stackboot.exceptions import BootstrapError, CommandFailed
from stackboot.executor import CommandExecutor, CommandResult

logger = logging.getLogger(__name__)


class StageOutcome(Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StageContext:
    """Explicit per-run state handed to every stage.

    Holds the collaborators (settings, console, executor) and the operator
    choices made during the run, so no stage depends on ambient globals.
    """

    settings: Settings
    console: Console
    executor: CommandExecutor
    database_action: Optional[DatabaseAction] = None
    database_created: bool = False
    notes: List[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Command builders
    # ------------------------------------------------------------------

    def compose(self, *args: str) -> List[str]:
        """argv for DOCKER_COMMAND followed by *args*."""
        return [*self.settings.docker_argv, *args]

    def in_app(self, argv: Sequence[str], *, root: bool = False, tty: bool = False) -> List[str]:
        """argv that runs *argv* inside the app service container."""
        cmd = self.compose("exec")
        if not tty:
            cmd.append("-T")
        if root:
            cmd.extend(["--user", "root"])
        cmd.append(self.settings.app_service)
        cmd.extend(argv)
        return cmd

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, argv: Sequence[str], *, tty: bool = False) -> CommandResult:
        return self.executor.execute(list(argv), tty=tty)

    def run_checked(self, argv: Sequence[str], label: Optional[str] = None, *, tty: bool = False) -> CommandResult:
        """Run *argv* behind a spinner; raise CommandFailed on a non-zero exit."""
        if label and not tty:
            with self.console.spinner(label):
                result = self.run(argv)
        else:
            if label:
                self.console.message(label)
            result = self.run(argv, tty=tty)
        if not result.ok:
            raise CommandFailed(list(argv), result)
        return result

    def run_in_app(self, argv: Sequence[str], label: Optional[str] = None, *, tty: bool = False) -> CommandResult:
        return self.run_checked(self.in_app(argv, tty=tty), label, tty=tty)

    # ------------------------------------------------------------------
    # Operator choices
    # ------------------------------------------------------------------

    def resolve_database_action(self) -> DatabaseAction:
        """Decide DROP vs migrate for an existing database, once per run."""
        if self.database_action is not None:
            return self.database_action
        if self.settings.db_action is not None:
            action = self.settings.db_action
        elif self.settings.automation:
            action = DatabaseAction.DROP
        else:
            answer = self.console.prompt(
                "Do you want to drop and create new or migrate existing? [DROP/migrate]",
                default=DatabaseAction.MIGRATE.value,
            )
            action = DatabaseAction.DROP if answer == DatabaseAction.DROP.value else DatabaseAction.MIGRATE
        self.database_action = action
        logger.info("database action resolved: %s", action.value)
        return action


StageFunc = Callable[[StageContext], Optional[StageOutcome]]


@dataclass
class Stage:
    name: str
    label: str
    run: StageFunc
    required: bool = True
    guard: Optional[Callable[[StageContext], bool]] = None


@dataclass
class StageResult:
    stage: str
    outcome: StageOutcome
    message: str = ""


@dataclass
class RunReport:
    results: List[StageResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(r.outcome == StageOutcome.FAILED for r in self.results)

    @property
    def halted_at(self) -> Optional[str]:
        for r in self.results:
            if r.outcome == StageOutcome.FAILED:
                return r.stage
        return None

    def outcome_of(self, stage: str) -> Optional[StageOutcome]:
        for r in self.results:
            if r.stage == stage:
                return r.outcome
        return None


class StageRunner:
    """Executes stages strictly in order.

    A required stage that raises BootstrapError or OSError halts the
    sequence; command output is surfaced verbatim. No stage is retried.
    """

    def __init__(self, context: StageContext):
        self.context = context

    def run(self, stage: Stage) -> StageResult:
        console = self.context.console
        if stage.guard is not None and not stage.guard(self.context):
            logger.info("stage %s skipped by guard", stage.name)
            return StageResult(stage.name, StageOutcome.SKIPPED)

        console.rich.rule(f"[bold cyan]{stage.label}[/bold cyan]")
        logger.info("stage %s started", stage.name)
        try:
            outcome = stage.run(self.context) or StageOutcome.SUCCESS
        except BootstrapError as e:
            logger.error("stage %s failed: %s", stage.name, e)
            console.error(str(e))
            if isinstance(e, CommandFailed):
                console.output(e.result.stdout)
                console.output(e.result.stderr)
            return StageResult(stage.name, StageOutcome.FAILED, str(e))
        except OSError as e:
            # Host file operations (config copy, .env write) and exec errors
            logger.exception("stage %s failed with OS error", stage.name)
            console.error(f"{stage.label} failed: {e}")
            return StageResult(stage.name, StageOutcome.FAILED, str(e))

        logger.info("stage %s finished: %s", stage.name, outcome.value)
        if outcome == StageOutcome.PARTIAL:
            console.warning(f"{stage.label} finished with warnings")
        return StageResult(stage.name, outcome)

    def run_all(self, stages: Sequence[Stage]) -> RunReport:
        report = RunReport()
        for stage in stages:
            result = self.run(stage)
            report.results.append(result)
            if result.outcome == StageOutcome.FAILED and stage.required:
                logger.error("halting sequence at %s", stage.name)
                break
        return report
