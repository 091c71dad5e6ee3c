"""Console progress reporting and user confirmation.

The pipeline reports progress through a Reporter and asks questions through a
Confirmer so library callers can silence the former and auto-approve the
latter.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.markup import escape


class Reporter:
    """Progress output for a review run, rendered with rich."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def section(self, name: str) -> None:
        self.console.print()
        self.console.rule(f"[bold cyan]{escape(name)}[/bold cyan]")

    def kv(self, key: str, value: str) -> None:
        self.console.print(f"[bold]{escape(key):<12}[/bold]: {escape(value)}")

    def status(self, scope: str, message: str) -> None:
        self.console.print(f"[dim]\\[{escape(scope)}][/dim] {escape(message)}")

    def provider_status(self, provider: str, status: str, extra: str | None = None) -> None:
        color = {"running": "cyan", "done": "green", "error": "red"}.get(status, "white")
        line = f"[bold]{escape(provider):<14}[/bold] [{color}]{status:<7}[/{color}]"
        if extra:
            line += f" {escape(extra)}"
        self.console.print(line)

    def raw(self, text: str) -> None:
        # Rendered markdown goes out verbatim; no markup or highlighting.
        self.console.print(text, markup=False, highlight=False)


class QuietReporter(Reporter):
    """Reporter that discards everything; for library use and tests."""

    def __init__(self):
        super().__init__(Console(quiet=True))


class Confirmer(Protocol):
    def confirm(self, message: str) -> bool:
        """Return True to go ahead with the action described by ``message``."""
        ...


class StdinConfirmer:
    """Ask on the terminal; only "y" or "yes" counts as approval."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def confirm(self, message: str) -> bool:
        self.console.print(f"[yellow]{escape(message)}[/yellow]")
        answer = input("continue? (y/yes): ").strip().lower()
        return answer in ("y", "yes")


class AutoConfirmer:
    """Always approves; used for --yes and non-interactive callers."""

    def confirm(self, message: str) -> bool:
        return True
