"""Tests for the menu-driven interactive session (cli/interactive.py).

``questionary`` is replaced by a mock whose prompts answer from scripted
sequences, so no terminal interaction happens.  Menu answers and enum
answers share the ``select`` script, in the order the session asks.
"""

from __future__ import annotations

import asyncio
import os
import subprocess
import sys
import textwrap
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cmdtree.builtins.help import HelpCommand
from cmdtree.cli.application import ApplicationConfig, InteractiveApplication
from cmdtree.cli.interactive import (
    _BACK,
    _EXIT,
    _LOGS,
    InteractiveSession,
    _is_number_or_empty,
    _menu_label,
)
from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.logger import LogLevel
from cmdtree.core.models import CommandResult, OptionDef


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class Greet(Command):
    name = "greet"
    description = "Greet someone"
    options = {
        "name": OptionDef(type="string", description="Who", required=True, order=1),
        "loud": OptionDef(type="boolean", default=False, order=2),
        "times": OptionDef(type="number", default=1, order=3),
    }

    def __init__(self) -> None:
        super().__init__()
        self.received: list[Any] = []

    def execute(self, config: Any, exec_ctx: ExecutionContext | None = None) -> CommandResult:
        self.received.append(config)
        return CommandResult(success=True, message=f"Hello, {config['name']}!")


class Paint(Command):
    name = "paint"
    description = "Pick a colour"
    options = {"color": OptionDef(type="string", enum=("red", "green"), default="red")}

    def __init__(self) -> None:
        super().__init__()
        self.received: list[Any] = []

    def execute(self, config: Any, exec_ctx: ExecutionContext | None = None) -> None:
        self.received.append(config)


class Broken(Command):
    name = "broken"
    description = "Always fails"

    def execute(self, config: Any, exec_ctx: ExecutionContext | None = None) -> None:
        raise RuntimeError("boom")


class Child(Command):
    name = "child"
    description = "Nested command"

    def __init__(self) -> None:
        super().__init__()
        self.runs = 0

    def execute(self, config: Any, exec_ctx: ExecutionContext | None = None) -> None:
        self.runs += 1


class Group(Command):
    name = "group"
    description = "A group"

    def __init__(self) -> None:
        super().__init__([Child()])


class Slow(Command):
    name = "slow"
    description = "Takes a while"
    options = {"steps": OptionDef(type="number", default=100)}

    async def execute(self, config: Any, exec_ctx: ExecutionContext | None = None) -> CommandResult:
        assert exec_ctx is not None
        for _ in range(int(config["steps"])):
            exec_ctx.signal.raise_if_cancelled()
            await asyncio.sleep(0.01)
        return CommandResult(success=True)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _app(*commands: Command) -> InteractiveApplication:
    return InteractiveApplication(
        ApplicationConfig(name="test-app", version="1.0.0", commands=list(commands)),
    )


def _questionary(
    select: Sequence[Any] = (),
    text: Sequence[Any] = (),
    confirm: Sequence[Any] = (),
) -> MagicMock:
    questionary = MagicMock()
    questionary.select.return_value.ask_async = AsyncMock(side_effect=list(select))
    questionary.text.return_value.ask_async = AsyncMock(side_effect=list(text))
    questionary.confirm.return_value.ask_async = AsyncMock(side_effect=list(confirm))
    return questionary


def _run(app: InteractiveApplication, questionary: MagicMock) -> InteractiveSession:
    session = InteractiveSession(app)
    with patch("cmdtree.cli.interactive._import_questionary", return_value=questionary):
        asyncio.run(session.run())
    return session


def _menu_values(questionary: MagicMock) -> list[Any]:
    return [call.kwargs["value"] for call in questionary.Choice.call_args_list]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    @pytest.mark.parametrize("text", ["", "  ", "3", "-1.5"])
    def test_number_validator_accepts(self, text: str) -> None:
        assert _is_number_or_empty(text) is True

    def test_number_validator_rejects(self) -> None:
        assert _is_number_or_empty("abc") == "Enter a number"

    def test_menu_label_marks_groups(self) -> None:
        app = _app(Group(), Greet())
        group, greet = app.interactive_commands()[:2]

        assert _menu_label(group) == "group ›  A group"
        assert _menu_label(greet) == "greet  Greet someone"


# ---------------------------------------------------------------------------
# Menu loop
# ---------------------------------------------------------------------------

class TestMenu:
    def test_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        questionary = _questionary(select=[_EXIT])

        _run(_app(Greet()), questionary)

        assert "test-app v1.0.0" in capsys.readouterr().out

    def test_escape_at_top_level_leaves(self) -> None:
        questionary = _questionary(select=[None])

        _run(_app(Greet()), questionary)

        assert questionary.select.call_count == 1

    def test_top_level_entries(self) -> None:
        greet = Greet()
        app = _app(greet)
        questionary = _questionary(select=[_EXIT])

        _run(app, questionary)

        assert _menu_values(questionary) == [greet, app.settings_command, _LOGS, _EXIT]

    def test_group_sub_menu_hides_help(self) -> None:
        group = Group()
        child = group.sub_commands[0]
        questionary = _questionary(select=[group, child, _BACK, _EXIT])

        _run(_app(group), questionary)

        assert child.runs == 1
        values = _menu_values(questionary)
        assert child in values
        assert _BACK in values
        assert not any(isinstance(value, HelpCommand) for value in values)

    def test_escape_in_sub_menu_goes_back(self) -> None:
        group = Group()
        questionary = _questionary(select=[group, None, _EXIT])

        _run(_app(group), questionary)

        assert questionary.select.call_count == 3

    def test_logs(self, capsys: pytest.CaptureFixture[str]) -> None:
        app = _app(Greet())
        app.logger.info("remember me")
        questionary = _questionary(select=[_LOGS, _EXIT])

        _run(app, questionary)

        assert "[info] remember me" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Forms and runs
# ---------------------------------------------------------------------------

class TestRunCommand:
    def test_prompts_and_runs(self, capsys: pytest.CaptureFixture[str]) -> None:
        greet = Greet()
        questionary = _questionary(select=[greet, _EXIT], text=["Ada", "2"], confirm=[False])

        _run(_app(greet), questionary)

        assert greet.received == [{"name": "Ada", "loud": False, "times": 2}]
        out = capsys.readouterr().out
        assert "$ test-app greet --name Ada --times 2" in out
        assert "Hello, Ada!" in out

    def test_number_prompt_is_validated(self) -> None:
        greet = Greet()
        questionary = _questionary(select=[greet, _EXIT], text=["Ada", "2"], confirm=[False])

        _run(_app(greet), questionary)

        name_call, times_call = questionary.text.call_args_list
        assert name_call.kwargs["validate"] is None
        assert times_call.kwargs["validate"] is _is_number_or_empty
        assert times_call.kwargs["default"] == "1"

    def test_last_values_become_defaults(self) -> None:
        greet = Greet()
        questionary = _questionary(
            select=[greet, greet, _EXIT],
            text=["Ada", "2", "Grace", ""],
            confirm=[True, True],
        )

        _run(_app(greet), questionary)

        third_prompt = questionary.text.call_args_list[2]
        assert third_prompt.kwargs["default"] == "Ada"
        assert greet.received[1] == {"name": "Grace", "loud": True, "times": 1}

    def test_enum_field_uses_select(self) -> None:
        paint = Paint()
        questionary = _questionary(select=[paint, "green", _EXIT])

        _run(_app(paint), questionary)

        assert paint.received == [{"color": "green"}]
        enum_call = questionary.select.call_args_list[1]
        assert enum_call.kwargs["choices"] == ["red", "green"]
        assert enum_call.kwargs["default"] == "red"

    def test_escape_in_form_runs_nothing(self) -> None:
        greet = Greet()
        questionary = _questionary(select=[greet, _EXIT], text=[None])

        _run(_app(greet), questionary)

        assert greet.received == []

    def test_missing_required_is_rendered(self, capsys: pytest.CaptureFixture[str]) -> None:
        greet = Greet()
        questionary = _questionary(select=[greet, _EXIT], text=["", ""], confirm=[False])

        _run(_app(greet), questionary)

        assert greet.received == []
        assert "Missing required option: name" in capsys.readouterr().out

    def test_invalid_number_is_rendered(self, capsys: pytest.CaptureFixture[str]) -> None:
        greet = Greet()
        questionary = _questionary(select=[greet, _EXIT], text=["Ada", "abc"], confirm=[False])

        _run(_app(greet), questionary)

        assert greet.received == []
        assert 'Invalid number "abc"' in capsys.readouterr().out

    def test_fault_does_not_end_session(self, capsys: pytest.CaptureFixture[str]) -> None:
        broken = Broken()
        questionary = _questionary(select=[broken, broken, _EXIT])

        _run(_app(broken), questionary)

        out = capsys.readouterr().out
        assert out.count("boom") == 2
        assert questionary.select.call_count == 3

    def test_settings_changes_logger(self) -> None:
        app = _app(Greet())
        questionary = _questionary(select=[app.settings_command, "debug", _EXIT], confirm=[True])

        _run(app, questionary)

        assert app.logger.get_min_level() is LogLevel.DEBUG
        assert app.logger.is_detailed() is True


class TestCancellation:
    def test_interrupt_during_run_cancels_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        slow = Slow()
        app = _app(slow)
        session = InteractiveSession(app)
        questionary = _questionary(text=["100"])

        async def scenario() -> Any:
            task = asyncio.ensure_future(session.run_command([slow]))
            await asyncio.sleep(0.05)
            # Same path as Ctrl+C on the event loop's main task.
            task.cancel()
            outcome = await task
            await asyncio.sleep(0.05)
            return outcome

        with patch("cmdtree.cli.interactive._import_questionary", return_value=questionary):
            outcome = asyncio.run(scenario())

        assert outcome.cancelled is True
        assert outcome.error is None
        assert session.executor.is_executing is False
        assert session.executor.was_cancelled is True
        assert "Cancelled" in capsys.readouterr().out

    @pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")
    def test_repeated_sigint_cancels_each_run_and_keeps_session(self) -> None:
        script = textwrap.dedent(
            """
            import asyncio
            import os
            import signal
            from unittest.mock import AsyncMock, MagicMock, patch

            from cmdtree.cli.application import ApplicationConfig, InteractiveApplication
            from cmdtree.cli.interactive import _EXIT
            from cmdtree.core.command import Command
            from cmdtree.core.models import CommandResult, OptionDef


            class Slow(Command):
                name = "slow"
                description = "Takes a while"
                options = {"steps": OptionDef(type="number", default=500)}

                async def execute(self, config, exec_ctx=None):
                    loop = asyncio.get_running_loop()
                    loop.call_later(0.2, os.kill, os.getpid(), signal.SIGINT)
                    for _ in range(int(config["steps"])):
                        exec_ctx.signal.raise_if_cancelled()
                        await asyncio.sleep(0.01)
                    return CommandResult(success=True)


            slow = Slow()
            questionary = MagicMock()
            questionary.select.return_value.ask_async = AsyncMock(side_effect=[slow, slow, _EXIT])
            questionary.text.return_value.ask_async = AsyncMock(side_effect=["", ""])
            app = InteractiveApplication(
                ApplicationConfig(name="p", version="1.0.0", commands=[slow]),
            )
            with patch("cmdtree.cli.interactive._import_questionary", return_value=questionary):
                code = app.main([])
            print("EXIT", code)
            """
        )
        src = Path(__file__).resolve().parents[1] / "src"
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src), env.get("PYTHONPATH")]))

        completed = subprocess.run(
            [sys.executable, "-c", script],
            capture_output=True,
            text=True,
            timeout=60,
            env=env,
        )

        assert completed.returncode == 0, completed.stderr
        assert completed.stdout.count("Cancelled") == 2
        assert "EXIT 0" in completed.stdout
