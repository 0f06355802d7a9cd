"""Interactive execution path with cooperative cancellation.

:class:`CommandExecutor` is what a presentation layer calls when the user
confirms a form.  It owns the cancellation signal of the run in flight
and folds every way a run can end into an :class:`ExecutionOutcome`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cmdtree.core.command import CancellationSignal, Command, ExecutionContext
from cmdtree.core.models import CommandResult, ExecutionMode, ExecutionOutcome
from cmdtree.core.parser import parse_option_values, validate_options
from cmdtree.core.protocols import LifecycleRunner
from cmdtree.exceptions import AbortError, OptionValidationError


class CommandExecutor:
    """Run commands in interactive mode and track the latest run.

    Parameters
    ----------
    runner:
        Lifecycle implementation, normally the application itself.
    """

    def __init__(self, runner: LifecycleRunner) -> None:
        self._runner = runner
        self._signal: CancellationSignal | None = None
        self._executing: bool = False
        self.result: CommandResult | None = None
        self.error: BaseException | None = None
        self.was_cancelled: bool = False

    @property
    def is_executing(self) -> bool:
        return self._executing

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Flip the running command's signal and release the executor at once.

        The command's own work may continue until it next polls the signal;
        a new :meth:`execute` may start immediately.
        """
        if self._signal is not None:
            self._signal.cancel()
            self._signal = None
        self._executing = False

    def reset(self) -> None:
        self.cancel()
        self.result = None
        self.error = None
        self.was_cancelled = False

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, command: Command, values: Mapping[str, Any]) -> ExecutionOutcome:
        """Coerce *values*, validate them and run *command*'s lifecycle.

        Never raises for command faults: cancellation yields
        ``cancelled=True`` and any other fault is returned in ``error``.
        """
        if self._signal is not None:
            self._signal.cancel()

        signal = CancellationSignal()
        self._signal = signal
        self._executing = True
        self.result = None
        self.error = None
        self.was_cancelled = False

        try:
            options = parse_option_values(command.options, values)
            issues = validate_options(command.options, options)
            if issues:
                raise OptionValidationError(issues)
            result = await self._runner.run_lifecycle(
                command,
                options,
                ExecutionMode.INTERACTIVE,
                ExecutionContext(signal=signal),
            )
        except AbortError:
            return self._cancelled()
        except Exception as exc:
            if signal.cancelled:
                return self._cancelled()
            self.error = exc
            return ExecutionOutcome(success=False, error=exc)
        finally:
            if self._signal is signal:
                self._signal = None
                self._executing = False

        if signal.cancelled:
            return self._cancelled()

        self.result = result
        return ExecutionOutcome(success=True, result=result)

    def _cancelled(self) -> ExecutionOutcome:
        self.was_cancelled = True
        return ExecutionOutcome(success=False, cancelled=True)
