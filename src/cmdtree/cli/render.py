"""Rich renderings of command results, faults and cancellations.

:func:`render_result` is the default result presenter: it receives the
raw :class:`~cmdtree.core.models.CommandResult` of every interactive-mode
run.  The session uses :func:`render_error` and :func:`render_cancelled`
for runs that did not complete.
"""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.json import JSON
from rich.panel import Panel
from rich.text import Text

from cmdtree.cli.console import console
from cmdtree.core.command import Command
from cmdtree.core.models import CommandResult
from cmdtree.exceptions import ConfigValidationError, OptionValidationError


def render_result(command: Command, result: CommandResult | None) -> None:
    title = command.display_name or command.name
    if result is None:
        console.print(Panel(Text("Done."), title=title, border_style="green"))
        return

    body: list[RenderableType] = []
    if result.message:
        body.append(Text(result.message))
    if result.error:
        body.append(Text(result.error, style="red"))
    if result.data is not None:
        body.append(JSON.from_data(result.data, default=str))
    if not body:
        body.append(Text("Done." if result.success else "Failed."))

    console.print(
        Panel(
            Group(*body),
            title=title,
            border_style="green" if result.success else "red",
        )
    )


def describe_error(error: BaseException) -> Text:
    """One or more lines describing *error* for the session view."""
    if isinstance(error, OptionValidationError):
        return Text("\n").join(Text(f"• {issue.message}") for issue in error.issues)
    if isinstance(error, ConfigValidationError):
        field_info = f" ({error.field})" if error.field else ""
        return Text(f"Configuration error{field_info}: {error}")
    return Text(str(error) or type(error).__name__)


def render_error(error: BaseException) -> None:
    console.print(Panel(describe_error(error), title="Error", border_style="red"))


def render_cancelled() -> None:
    console.print(Text("Cancelled", style="yellow"))
