"""Protocols (interfaces) consumed by the core layer.

The interactive executor and the result presentation hook depend only on
these contracts, never on the concrete application class.
"""

from __future__ import annotations

from typing import Protocol

from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.models import CommandResult, ExecutionMode, OptionValues


class LifecycleRunner(Protocol):
    """Contract for whatever drives a command through its lifecycle.

    Satisfied structurally by :class:`~cmdtree.cli.application.Application`.
    """

    async def run_lifecycle(
        self,
        command: Command,
        options: OptionValues,
        mode: ExecutionMode,
        exec_ctx: ExecutionContext,
    ) -> CommandResult | None:
        """Run before-run hook through re-raise for already validated *options*.

        Stages run strictly in order: ``on_before_run``, ``before_execute``,
        ``build_config``, ``execute``, ``after_execute`` (always),
        ``on_after_run``.  The first fault is re-raised once at the end.

        Raises
        ------
        Exception
            Whatever fault the lifecycle captured, unchanged.
        """
        ...  # pragma: no cover


class ResultPresenter(Protocol):
    """Receives the raw result of a command run in interactive mode."""

    def __call__(self, command: Command, result: CommandResult | None) -> None:
        ...  # pragma: no cover
