"""Rich console helpers for the CLI layer.

Command output (help, result data) goes to stdout; diagnostics go to
stderr through the context logger.  A fresh :class:`rich.console.Console`
is built on every call so that redirected streams (pipes, pytest's
``capsys``) are always honoured.
"""

from __future__ import annotations

from typing import Any

from cmdtree.exceptions import EnvironmentError


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console(*, stderr: bool = False) -> Any:
    """Create a Rich console targeting stdout, or stderr when *stderr* is set."""
    console_class = _load_rich_console_class()
    return console_class(stderr=stderr, highlight=False, soft_wrap=True)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy over a per-call Rich console."""

    def __init__(self, *, stderr: bool = False) -> None:
        self._stderr = stderr

    def print(self, *objects: object, **kwargs: Any) -> None:
        get_rich_console(stderr=self._stderr).print(*objects, **kwargs)

    def print_json(self, data: Any) -> None:
        """Pretty-print *data* as indented JSON; non-JSON values via ``str``."""
        get_rich_console(stderr=self._stderr).print_json(data=data, indent=2, default=str)


console = _ConsoleProxy()
"""Standard output: help pages and command results."""

err_console = _ConsoleProxy(stderr=True)
"""Standard error: process-boundary messages."""
