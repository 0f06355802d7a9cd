"""Demo commands: greet, math, status and a nested ``config`` group."""

from __future__ import annotations

import asyncio
import platform
import time
from typing import Any

from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.models import CommandExample, CommandResult, OptionDef, OptionValues
from cmdtree.exceptions import ConfigValidationError

_STARTED = time.monotonic()

STORE_SERVICE = "config-store"
"""Name of the in-memory key/value service used by the ``config`` group."""


class GreetCommand(Command):
    name = "greet"
    display_name = "Greet"
    description = "Greet someone with a friendly message"
    action_label = "Say Hello"
    examples = (
        CommandExample("greet --name World", "Simple greeting"),
        CommandExample("greet --name World --loud --times 3", "Loud greeting 3 times"),
    )
    options = {
        "name": OptionDef(
            type="string",
            description="Name to greet",
            required=True,
            label="Name",
            order=1,
            placeholder="Enter name...",
        ),
        "loud": OptionDef(
            type="boolean",
            description="Use uppercase",
            alias="l",
            default=False,
            label="Loud Mode",
            order=2,
        ),
        "times": OptionDef(
            type="number",
            description="Number of times to greet",
            default=1,
            min=1,
            max=10,
            label="Repeat Count",
            order=3,
        ),
    }

    def execute(self, config: OptionValues, exec_ctx: ExecutionContext | None = None) -> CommandResult:
        message = f"Hello, {config['name']}!"
        if config["loud"]:
            message = message.upper()
        greeting = "\n".join([message] * int(config["times"] or 1))

        if exec_ctx is not None and exec_ctx.app is not None:
            exec_ctx.app.logger.trace(greeting)
        return CommandResult(
            success=True,
            data={"greeting": greeting, "meta": {"loud": config["loud"], "times": config["times"]}},
            message=greeting,
        )


class MathCommand(Command):
    name = "math"
    display_name = "Math Operations"
    description = "Perform basic math operations"
    action_label = "Calculate"
    options = {
        "operation": OptionDef(
            type="string",
            description="Math operation to perform",
            required=True,
            enum=("add", "subtract", "multiply", "divide"),
            label="Operation",
            order=1,
        ),
        "a": OptionDef(type="number", description="First number", required=True, label="First Number", order=2),
        "b": OptionDef(type="number", description="Second number", required=True, label="Second Number", order=3),
        "show-steps": OptionDef(
            type="boolean",
            description="Show calculation steps",
            default=False,
            label="Show Steps",
            order=4,
        ),
    }

    def execute(self, config: OptionValues, exec_ctx: ExecutionContext | None = None) -> CommandResult:
        operation = config["operation"]
        a, b = config["a"], config["b"]

        if operation == "add":
            result, expression = a + b, f"{a} + {b}"
        elif operation == "subtract":
            result, expression = a - b, f"{a} - {b}"
        elif operation == "multiply":
            result, expression = a * b, f"{a} × {b}"
        else:
            if b == 0:
                return CommandResult(success=False, error="Cannot divide by zero")
            result, expression = a / b, f"{a} ÷ {b}"

        data: dict[str, Any] = {"expression": expression, "result": result}
        if config["show-steps"]:
            data["steps"] = [f"{operation} {a} and {b}", f"Result: {result}"]
        return CommandResult(success=True, data=data, message=f"{expression} = {result}")


class StatusCommand(Command):
    """Simulates slow work and stops early when cancelled."""

    name = "status"
    display_name = "Status"
    description = "Show application status"
    action_label = "Check Status"
    options = {
        "detailed": OptionDef(
            type="boolean",
            description="Show detailed status",
            default=False,
            alias="d",
            label="Detailed",
        ),
        "delay": OptionDef(
            type="number",
            description="Seconds of simulated work",
            default=0.5,
            min=0,
            hidden=True,
        ),
    }

    async def execute(self, config: OptionValues, exec_ctx: ExecutionContext | None = None) -> CommandResult:
        exec_ctx = exec_ctx or ExecutionContext()
        remaining = float(config["delay"])
        while remaining > 0:
            exec_ctx.signal.raise_if_cancelled()
            step = min(0.1, remaining)
            await asyncio.sleep(step)
            remaining -= step
        exec_ctx.signal.raise_if_cancelled()

        data: dict[str, Any] = {"uptime": f"{round(time.monotonic() - _STARTED)} seconds"}
        if config["detailed"]:
            data["platform"] = platform.system()
            data["python"] = platform.python_version()
        if exec_ctx.app is not None:
            exec_ctx.app.logger.info("Status check complete")
        return CommandResult(success=True, data=data, message="Status check complete")


# ---------------------------------------------------------------------------
# config group
# ---------------------------------------------------------------------------

def _store(exec_ctx: ExecutionContext | None) -> dict[str, str]:
    if exec_ctx is None or exec_ctx.app is None:
        return {}
    return exec_ctx.app.require_service(STORE_SERVICE)


class ConfigSetCommand(Command):
    name = "set"
    description = "Set a configuration value"
    options = {
        "key": OptionDef(type="string", description="Configuration key", required=True, order=1),
        "value": OptionDef(type="string", description="Value to store", required=True, order=2),
    }

    def build_config(self, options: OptionValues) -> tuple[str, str]:
        key = options["key"].strip()
        if not key or "=" in key:
            raise ConfigValidationError("must be non-empty and must not contain '='", field="key")
        return key, options["value"]

    def execute(self, config: tuple[str, str], exec_ctx: ExecutionContext | None = None) -> CommandResult:
        key, value = config
        _store(exec_ctx)[key] = value
        return CommandResult(success=True, data={key: value}, message=f"Set {key}")


class ConfigGetCommand(Command):
    name = "get"
    description = "Show configuration values"
    options = {
        "key": OptionDef(type="string", description="Only show this key"),
    }

    def execute(self, config: OptionValues, exec_ctx: ExecutionContext | None = None) -> CommandResult:
        store = _store(exec_ctx)
        key = config["key"]
        if key is None:
            return CommandResult(success=True, data=dict(store))
        if key not in store:
            return CommandResult(success=False, error=f"No value for '{key}'")
        return CommandResult(success=True, data={key: store[key]})


class ConfigCommand(Command):
    """Group only: running it prints its help."""

    name = "config"
    display_name = "Configuration"
    description = "Read and write configuration values"

    def __init__(self) -> None:
        super().__init__([ConfigGetCommand(), ConfigSetCommand()])
