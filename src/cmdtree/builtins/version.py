"""Built-in ``version`` command."""

from __future__ import annotations

from rich.text import Text

from cmdtree.cli.console import console
from cmdtree.core.command import Command, ExecutionContext

_DEV_MARKER = "(dev)"


def format_version(version: str, commit_hash: str | None = None) -> str:
    """``"1.2.0 - abc1234"``; ``"(dev)"`` stands in for a missing commit hash."""
    hash_part = commit_hash[:7] if commit_hash else _DEV_MARKER
    return f"{version} - {hash_part}"


class VersionCommand(Command):
    """Print ``<name> v<version> - <commit>``.

    Also reachable as ``--version`` when it is the only token.
    """

    name = "version"
    description = "Show version information"
    aliases = ("--version",)

    def __init__(self, app_name: str, app_version: str, commit_hash: str | None = None) -> None:
        super().__init__()
        self.app_name = app_name
        self.app_version = app_version
        self.commit_hash = commit_hash

    def formatted_version(self) -> str:
        return format_version(self.app_version, self.commit_hash)

    def execute(self, config: object, exec_ctx: ExecutionContext | None = None) -> None:
        line = Text(self.app_name, style="bold")
        line.append(f" v{self.formatted_version()}", style="dim")
        console.print(line)
