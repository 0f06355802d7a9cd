"""Built-in ``settings`` command for the interactive session."""

from __future__ import annotations

from dataclasses import dataclass

from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.logger import Logger, LogLevel
from cmdtree.core.models import CommandResult, OptionDef, OptionValues


@dataclass(frozen=True, slots=True)
class SettingsConfig:
    log_level: LogLevel
    detailed_logs: bool


class SettingsCommand(Command):
    """Change the logger's minimum level and format at runtime.

    Only offered in the interactive session; on the command line the same
    settings are the ``--log-level`` and ``--detailed-logs`` global flags.
    """

    name = "settings"
    display_name = "Settings"
    description = "Configure logging level and output format"
    action_label = "Save Settings"
    options = {
        "log-level": OptionDef(
            type="string",
            description="Minimum log level to emit",
            default="info",
            enum=tuple(level.name.lower() for level in LogLevel),
            label="Log Level",
            order=1,
        ),
        "detailed-logs": OptionDef(
            type="boolean",
            description="Include timestamp and level in log output",
            default=False,
            label="Detailed Logs",
            order=2,
        ),
    }

    def __init__(self, logger: Logger) -> None:
        super().__init__()
        self._logger = logger

    def supports_cli(self) -> bool:
        return False

    def build_config(self, options: OptionValues) -> SettingsConfig:
        level = LogLevel.parse(str(options.get("log-level") or "")) or LogLevel.INFO
        return SettingsConfig(log_level=level, detailed_logs=bool(options.get("detailed-logs")))

    def execute(
        self,
        config: SettingsConfig,
        exec_ctx: ExecutionContext | None = None,
    ) -> CommandResult:
        self._logger.set_min_level(config.log_level)
        self._logger.set_detailed(config.detailed_logs)
        suffix = " with detailed format" if config.detailed_logs else ""
        return CommandResult(
            success=True,
            message=f"Logging set to {config.log_level.name.lower()}{suffix}",
        )
