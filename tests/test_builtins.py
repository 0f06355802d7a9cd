"""Tests for framework built-ins and the Rich result renderers."""

from __future__ import annotations

from typing import Any

import pytest

from cmdtree.builtins import RESERVED_COMMAND_NAMES
from cmdtree.builtins.settings import SettingsCommand, SettingsConfig
from cmdtree.builtins.version import VersionCommand, format_version
from cmdtree.cli.render import describe_error, render_cancelled, render_error, render_result
from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.logger import Logger, LogLevel
from cmdtree.core.models import CommandResult, ParseIssue
from cmdtree.exceptions import ConfigValidationError, OptionValidationError


class Show(Command):
    name = "show"
    display_name = "Show Things"
    description = "Shows things"

    def execute(self, config: Any, exec_ctx: ExecutionContext | None = None) -> None:
        return None


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_format_with_hash(self) -> None:
        assert format_version("1.2.0", "abcdef0123") == "1.2.0 - abcdef0"

    def test_format_without_hash(self) -> None:
        assert format_version("1.2.0") == "1.2.0 - (dev)"
        assert format_version("1.2.0", "") == "1.2.0 - (dev)"

    def test_command_prints_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        VersionCommand("tool", "3.0.0", "1234567890").execute({})

        assert capsys.readouterr().out.strip() == "tool v3.0.0 - 1234567"

    def test_flag_alias(self) -> None:
        assert "--version" in VersionCommand.aliases


class TestReservedNames:
    def test_names(self) -> None:
        assert RESERVED_COMMAND_NAMES == {"help", "version", "settings"}


# ---------------------------------------------------------------------------
# settings
# ---------------------------------------------------------------------------

class TestSettings:
    def test_interactive_only(self) -> None:
        command = SettingsCommand(Logger())

        assert command.supports_cli() is False
        assert command.supports_interactive() is True

    def test_level_choices(self) -> None:
        enum = SettingsCommand.options["log-level"].enum

        assert enum == ("silly", "trace", "debug", "info", "warn", "error", "fatal")

    def test_build_config(self) -> None:
        command = SettingsCommand(Logger())

        config = command.build_config({"log-level": "error", "detailed-logs": True})

        assert config == SettingsConfig(log_level=LogLevel.ERROR, detailed_logs=True)

    def test_build_config_falls_back_to_info(self) -> None:
        config = SettingsCommand(Logger()).build_config({"log-level": None, "detailed-logs": None})

        assert config.log_level is LogLevel.INFO
        assert config.detailed_logs is False

    def test_execute_applies_settings(self) -> None:
        logger = Logger()
        command = SettingsCommand(logger)

        result = command.execute(SettingsConfig(log_level=LogLevel.WARN, detailed_logs=True))

        assert logger.get_min_level() is LogLevel.WARN
        assert logger.is_detailed() is True
        assert result.message == "Logging set to warn with detailed format"


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------

class TestRenderResult:
    def test_message_and_data(self, capsys: pytest.CaptureFixture[str]) -> None:
        render_result(Show(), CommandResult(success=True, message="All good", data={"count": 3}))

        out = capsys.readouterr().out
        assert "Show Things" in out
        assert "All good" in out
        assert '"count": 3' in out

    def test_failed_result(self, capsys: pytest.CaptureFixture[str]) -> None:
        render_result(Show(), CommandResult(success=False, error="went wrong"))

        assert "went wrong" in capsys.readouterr().out

    @pytest.mark.parametrize(
        ("result", "text"),
        [(None, "Done."), (CommandResult(success=True), "Done."), (CommandResult(success=False), "Failed.")],
    )
    def test_empty_results(
        self,
        result: CommandResult | None,
        text: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        render_result(Show(), result)

        assert text in capsys.readouterr().out


class TestDescribeError:
    def test_option_validation_lists_issues(self) -> None:
        error = OptionValidationError(
            [
                ParseIssue(type="missing_required", message="Missing required option: a", field="a"),
                ParseIssue(type="missing_required", message="Missing required option: b", field="b"),
            ]
        )

        assert describe_error(error).plain == "• Missing required option: a\n• Missing required option: b"

    def test_config_validation_names_field(self) -> None:
        assert describe_error(ConfigValidationError("bad", field="value")).plain == (
            "Configuration error (value): bad"
        )

    def test_plain_error(self) -> None:
        assert describe_error(RuntimeError("boom")).plain == "boom"

    def test_error_without_message(self) -> None:
        assert describe_error(RuntimeError()).plain == "RuntimeError"

    def test_render_error_and_cancelled(self, capsys: pytest.CaptureFixture[str]) -> None:
        render_error(RuntimeError("boom"))
        render_cancelled()

        out = capsys.readouterr().out
        assert "Error" in out
        assert "boom" in out
        assert "Cancelled" in out
