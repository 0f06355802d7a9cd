"""Tests for the interactive execution path (core/executor.py).

Most tests drive the executor with small stub runners; the last group
runs it against a real application to check the presenter hand-off and
cooperative cancellation of an ``async`` command.
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

from cmdtree.cli.application import Application, ApplicationConfig
from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.executor import CommandExecutor
from cmdtree.core.models import CommandResult, ExecutionMode, OptionDef
from cmdtree.exceptions import AbortError, OptionValidationError


class Named(Command):
    name = "named"
    description = "Needs a name"
    options = {
        "name": OptionDef(type="string", required=True),
        "times": OptionDef(type="number", default=1),
    }


class Slow(Command):
    name = "slow"
    description = "Polls its signal while it works"
    options = {"steps": OptionDef(type="number", default=50)}

    async def execute(self, config: Any, exec_ctx: ExecutionContext | None = None) -> CommandResult:
        assert exec_ctx is not None
        for _ in range(int(config["steps"])):
            exec_ctx.signal.raise_if_cancelled()
            await asyncio.sleep(0.01)
        return CommandResult(success=True, message="finished")


# ---------------------------------------------------------------------------
# Stub runners
# ---------------------------------------------------------------------------

class ResultRunner:
    def __init__(self, result: CommandResult | None = None) -> None:
        self.result = result or CommandResult(success=True, data={"ok": True})
        self.calls: list[tuple[Command, dict[str, Any], ExecutionMode, ExecutionContext]] = []
        self.executing_during_run: bool | None = None
        self.executor: CommandExecutor | None = None

    async def run_lifecycle(
        self,
        command: Command,
        options: dict[str, Any],
        mode: ExecutionMode,
        exec_ctx: ExecutionContext,
    ) -> CommandResult | None:
        self.calls.append((command, options, mode, exec_ctx))
        if self.executor is not None:
            self.executing_during_run = self.executor.is_executing
        return self.result


class RaisingRunner:
    def __init__(self, error: BaseException) -> None:
        self.error = error

    async def run_lifecycle(self, command: Any, options: Any, mode: Any, exec_ctx: Any) -> None:
        raise self.error


class CancelDuringRunRunner:
    """Cancels through the executor, then finishes normally."""

    def __init__(self) -> None:
        self.executor: CommandExecutor | None = None

    async def run_lifecycle(self, command: Any, options: Any, mode: Any, exec_ctx: Any) -> CommandResult:
        assert self.executor is not None
        self.executor.cancel()
        assert self.executor.is_executing is False
        return CommandResult(success=True)


class GatedRunner:
    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.signals: list[Any] = []

    async def run_lifecycle(self, command: Any, options: Any, mode: Any, exec_ctx: Any) -> CommandResult:
        self.signals.append(exec_ctx.signal)
        await self.gate.wait()
        return CommandResult(success=True)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

class TestOutcomes:
    def test_success(self) -> None:
        runner = ResultRunner()
        executor = CommandExecutor(runner)
        runner.executor = executor

        outcome = asyncio.run(executor.execute(Named(), {"name": "Ada", "times": "3"}))

        assert outcome.success is True
        assert outcome.result == runner.result
        assert executor.result == runner.result
        assert executor.is_executing is False
        assert runner.executing_during_run is True

        command, options, mode, exec_ctx = runner.calls[0]
        assert options == {"name": "Ada", "times": 3}
        assert mode is ExecutionMode.INTERACTIVE
        assert exec_ctx.signal.cancelled is False

    def test_validation_issues_become_an_error_outcome(self) -> None:
        runner = ResultRunner()
        executor = CommandExecutor(runner)

        outcome = asyncio.run(executor.execute(Named(), {}))

        assert outcome.success is False
        assert isinstance(outcome.error, OptionValidationError)
        assert [issue.field for issue in outcome.error.issues] == ["name"]
        assert runner.calls == []
        assert executor.error is outcome.error

    def test_fault_is_returned_not_raised(self) -> None:
        error = RuntimeError("boom")
        executor = CommandExecutor(RaisingRunner(error))

        outcome = asyncio.run(executor.execute(Named(), {"name": "x"}))

        assert outcome.success is False
        assert outcome.error is error
        assert outcome.cancelled is False
        assert executor.is_executing is False

    def test_abort_error_is_cancellation(self) -> None:
        executor = CommandExecutor(RaisingRunner(AbortError()))

        outcome = asyncio.run(executor.execute(Named(), {"name": "x"}))

        assert outcome.cancelled is True
        assert outcome.error is None
        assert executor.was_cancelled is True
        assert executor.error is None

    def test_cancel_during_run(self) -> None:
        runner = CancelDuringRunRunner()
        executor = CommandExecutor(runner)
        runner.executor = executor

        outcome = asyncio.run(executor.execute(Named(), {"name": "x"}))

        assert outcome.cancelled is True
        assert outcome.result is None
        assert executor.result is None

    def test_reset(self) -> None:
        executor = CommandExecutor(RaisingRunner(AbortError()))
        asyncio.run(executor.execute(Named(), {"name": "x"}))

        executor.reset()

        assert executor.was_cancelled is False
        assert executor.result is None
        assert executor.error is None
        assert executor.is_executing is False

    def test_cancel_without_run_is_harmless(self) -> None:
        executor = CommandExecutor(ResultRunner())

        executor.cancel()

        assert executor.is_executing is False


class TestOverlappingRuns:
    def test_new_run_cancels_previous(self) -> None:
        runner = GatedRunner()
        executor = CommandExecutor(runner)

        async def scenario() -> tuple[Any, Any]:
            first = asyncio.ensure_future(executor.execute(Named(), {"name": "one"}))
            await asyncio.sleep(0)
            second = asyncio.ensure_future(executor.execute(Named(), {"name": "two"}))
            await asyncio.sleep(0)
            runner.gate.set()
            return await first, await second

        first_outcome, second_outcome = asyncio.run(scenario())

        assert runner.signals[0].cancelled is True
        assert runner.signals[1].cancelled is False
        assert first_outcome.cancelled is True
        assert second_outcome.success is True
        assert executor.is_executing is False


# ---------------------------------------------------------------------------
# Against a real application
# ---------------------------------------------------------------------------

class TestWithApplication:
    def _app(self, *commands: Command) -> tuple[Application, MagicMock]:
        presenter = MagicMock()
        app = Application(
            ApplicationConfig(name="test-app", version="1.0.0", commands=list(commands)),
            presenter=presenter,
        )
        return app, presenter

    def test_presenter_receives_result(self) -> None:
        app, presenter = self._app(Slow())
        command = app.registry.get("slow")
        assert command is not None

        outcome = asyncio.run(CommandExecutor(app).execute(command, {"steps": 1}))

        assert outcome.success is True
        presenter.assert_called_once_with(command, outcome.result)
        assert outcome.result is not None
        assert outcome.result.message == "finished"

    def test_cooperative_cancellation(self) -> None:
        app, presenter = self._app(Slow())
        command = app.registry.get("slow")
        assert command is not None
        executor = CommandExecutor(app)

        async def scenario() -> Any:
            task = asyncio.ensure_future(executor.execute(command, {"steps": 500}))
            await asyncio.sleep(0.05)
            assert executor.is_executing is True
            executor.cancel()
            return await task

        outcome = asyncio.run(scenario())

        assert outcome.cancelled is True
        assert outcome.error is None
        presenter.assert_not_called()
