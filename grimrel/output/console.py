"""Console output abstraction.

Services report progress through ConsoleProtocol so they never depend on a
specific terminal library. RichConsole is used by the CLI; MockConsole
captures output in tests. Platform jobs run on worker threads and share one
console, so implementations must tolerate concurrent calls.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()  # echoed external commands
    BOLD = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Protocol for console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling.

        Args:
            message: The text to print
            style: The style to apply
        """
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> None:
        """Render rows under the given column headings."""
        ...


class RichConsole:
    """Console implementation using the Rich library."""

    def __init__(self) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console

        self._console = Console()
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False, highlight=False)
        else:
            self._console.print(message, markup=False, highlight=False)

    def success(self, message: str) -> None:
        self._console.print(f"[green]OK[/green] {_escape(message)}")

    def error(self, message: str) -> None:
        self._console.print(f"[red bold]error:[/red bold] {_escape(message)}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]warning:[/yellow] {_escape(message)}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {_escape(message)}")

    def header(self, message: str) -> None:
        self._console.print(f"\n[blue bold]{_escape(message)}[/blue bold]")

    def newline(self) -> None:
        self._console.print()

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> None:
        from rich.table import Table

        table = Table(title=title, title_justify="left")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self._console.print(table)


def _escape(message: str) -> str:
    from rich.markup import escape

    return escape(message)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _add(self, message: str, style: Style) -> None:
        with self._lock:
            self.outputs.append(OutputRecord(message, style))

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._add(message, style)

    def success(self, message: str) -> None:
        self._add(f"OK {message}", Style.SUCCESS)

    def error(self, message: str) -> None:
        self._add(f"error: {message}", Style.ERROR)

    def warning(self, message: str) -> None:
        self._add(f"warning: {message}", Style.WARNING)

    def info(self, message: str) -> None:
        self._add(f"info: {message}", Style.INFO)

    def header(self, message: str) -> None:
        self._add(message, Style.HEADER)

    def newline(self) -> None:
        self._add("", Style.DEFAULT)

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> None:
        self._add(title, Style.HEADER)
        self._add(" | ".join(columns), Style.BOLD)
        for row in rows:
            self._add(" | ".join(row), Style.DEFAULT)

    # Test helper methods

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        """Find all outputs containing a substring."""
        return [o for o in self.outputs if substring in o.message]
