"""Operator-facing output: messages, spinners and prompts."""

import sys
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from rich.console import Console as RichConsole
from rich.markup import escape


class Console:
    """Prints status messages, wraps work in spinners and asks questions.

    In automation mode prompts are never shown: every question resolves to its
    default, and command confirmations are auto-accepted. The same applies to
    confirmations when --yes is set or stdin is not a TTY.
    """

    def __init__(
        self,
        automation: bool = False,
        assume_yes: bool = False,
        color_enabled: bool = True,
        rich_console: Optional[RichConsole] = None,
        input_func: Optional[Callable[[str], str]] = None,
    ):
        self.automation = automation
        self.assume_yes = assume_yes
        self.rich = rich_console or RichConsole(no_color=not color_enabled, highlight=False)
        self._input = input_func or self.rich.input

    def message(self, text: str) -> None:
        self.rich.print(escape(text))

    def success(self, text: str) -> None:
        self.rich.print(f"[green]✓ {escape(text)}[/green]")

    def warning(self, text: str) -> None:
        self.rich.print(f"[yellow]{escape(text)}[/yellow]")

    def error(self, text: str) -> None:
        self.rich.print(f"[red]{escape(text)}[/red]")

    def output(self, text: str) -> None:
        """Echo captured command output verbatim."""
        if text:
            self.rich.out(text, highlight=False)

    @contextmanager
    def spinner(self, label: str) -> Iterator[None]:
        with self.rich.status(escape(label), spinner="dots"):
            yield

    def prompt(self, question: str, default: str = "") -> str:
        """Ask a free-form question; blank answers and automation yield *default*."""
        if self.automation:
            return default
        try:
            answer = self._input(f"{question} ").strip()
        except EOFError:
            return default
        return answer or default

    def confirm_command(self, command: str) -> bool:
        """Ask before running a privileged command. Returns True to proceed."""
        if self.automation:
            return True
        if self.assume_yes:
            self.rich.print(f"[bright_black]Running '{escape(command)}' (auto-confirmed with --yes)[/bright_black]")
            return True
        if not sys.stdin.isatty():
            self.rich.print(
                f"[bright_black]Running '{escape(command)}' (auto-confirmed: non-interactive mode)[/bright_black]"
            )
            return True
        answer = self.prompt(f"OK to run '{command}'? [y/n]", default="n")
        return answer.lower() in ("y", "yes")
