"""Shared fixtures for stackboot tests.

Provides a fake command executor that records argv and returns canned
results, a console with captured output and scripted answers, and a
settings factory isolated from the caller's environment.
"""

import io
import os
import sys
from pathlib import Path
from typing import List, Optional

import pytest
from rich.console import Console as RichConsole

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from stackboot.config import Settings
from stackboot.console import Console
from stackboot.executor import CommandResult
from stackboot.runner import StageContext

ENV_VARS = (
    "JENKINS",
    "CI",
    "OS",
    "CANVAS_SKIP_DOCKER_USERMOD",
    "DOCKER_COMMAND",
)


class FakeExecutor:
    """Records every argv; answers from rules matched by substring.

    ``on(fragment, *results)`` registers canned results for commands whose
    joined argv contains *fragment*. Results are consumed in order and the
    last one repeats. An exception instance is raised instead of returned.
    Unmatched commands succeed.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.tty_calls: List[List[str]] = []
        self._rules: list = []

    def on(self, fragment: str, *results):
        self._rules.append((fragment, list(results)))
        return self

    def execute(self, argv, *, tty: bool = False) -> CommandResult:
        argv = list(argv)
        self.calls.append(argv)
        if tty:
            self.tty_calls.append(argv)
        line = " ".join(argv)
        for fragment, results in self._rules:
            if fragment in line:
                result = results.pop(0) if len(results) > 1 else results[0]
                if isinstance(result, BaseException):
                    raise result
                return result
        return CommandResult(0)

    @property
    def commands(self) -> List[str]:
        return [" ".join(c) for c in self.calls]

    def ran(self, fragment: str) -> bool:
        return any(fragment in c for c in self.commands)

    def count(self, fragment: str) -> int:
        return sum(1 for c in self.commands if fragment in c)

    def index(self, fragment: str) -> int:
        for i, c in enumerate(self.commands):
            if fragment in c:
                return i
        raise AssertionError(f"{fragment!r} was never run; ran: {self.commands}")


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(0, stdout, "")


def fail(code: int = 1, stderr: str = "boom") -> CommandResult:
    return CommandResult(code, "", stderr)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's CI / docker environment out of Settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.upper().startswith("STACKBOOT_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings():
    def _factory(**overrides) -> Settings:
        values = {"os_name": "Linux", "verify_attempts": 1, "log_file": ""}
        values.update(overrides)
        return Settings(**values)
    return _factory


@pytest.fixture
def make_console():
    """Console writing to a buffer; *answers* are returned by successive prompts."""
    def _factory(answers: Optional[List[str]] = None, automation: bool = False, assume_yes: bool = True) -> Console:
        scripted = list(answers or [])
        asked: List[str] = []

        def _input(question: str) -> str:
            asked.append(question)
            if not scripted:
                raise AssertionError(f"unexpected prompt: {question}")
            return scripted.pop(0)

        rich = RichConsole(file=io.StringIO(), width=200, no_color=True, force_terminal=False)
        console = Console(
            automation=automation,
            assume_yes=assume_yes,
            rich_console=rich,
            input_func=_input,
        )
        console.asked = asked  # type: ignore[attr-defined]
        return console
    return _factory


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def make_context(make_settings, make_console, executor):
    def _factory(answers=None, automation: bool = False, assume_yes: bool = True, **settings) -> StageContext:
        return StageContext(
            settings=make_settings(automation=automation, **settings),
            console=make_console(answers=answers, automation=automation, assume_yes=assume_yes),
            executor=executor,
        )
    return _factory


def output_of(ctx: StageContext) -> str:
    return ctx.console.rich.file.getvalue()
