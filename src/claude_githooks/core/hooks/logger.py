"""
Leveled logging for hooks.

Every hook receives a logger implementing ``HookLogger``. Two sinks ship:

- ConsoleLogger: human-readable, color-coded terminal output (standalone use)
- StdlibLogger: forwards to a ``logging.Logger`` (embedded use)

Usage:
    from claude_githooks.core.hooks.logger import default_logger

    log = default_logger(verbose=True)
    log.success("Installed commit-msg hook")
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape


@runtime_checkable
class HookLogger(Protocol):
    """Leveled sink for hook output."""

    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...


class ConsoleLogger:
    """Writes color-coded messages to a rich console. Debug only when verbose."""

    def __init__(self, console: Console | None = None, verbose: bool = False):
        self.console = console or Console(stderr=True)
        self.verbose = verbose

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")


class StdlibLogger:
    """Adapts a ``logging.Logger`` to the HookLogger protocol."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("claude_githooks")

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warn(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def success(self, message: str) -> None:
        self.logger.info(f"✓ {message}")


class PrefixedLogger:
    """Tags every message with ``[<name>]`` before delegating."""

    def __init__(self, inner: HookLogger, name: str):
        self.inner = inner
        self.name = name

    def _tag(self, message: str) -> str:
        return f"[{self.name}] {message}"

    def debug(self, message: str) -> None:
        self.inner.debug(self._tag(message))

    def info(self, message: str) -> None:
        self.inner.info(self._tag(message))

    def warn(self, message: str) -> None:
        self.inner.warn(self._tag(message))

    def error(self, message: str) -> None:
        self.inner.error(self._tag(message))

    def success(self, message: str) -> None:
        self.inner.success(self._tag(message))


def default_logger(verbose: bool = False) -> HookLogger:
    """The console sink used when no logger is injected."""
    return ConsoleLogger(verbose=verbose)
