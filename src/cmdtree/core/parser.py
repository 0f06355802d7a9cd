"""Token parsing, coercion and validation against an option schema.

Pipeline order (driven by the execution engine):

1. **Global flags**: :func:`extract_global_options` strips framework
   flags from anywhere in the token stream.
2. **Command chain**: :func:`extract_command_chain` splits the command
   path from the flag tokens.
3. **Flags**: :func:`parse_flag_tokens` runs a strict ``argparse``
   parser generated from the schema (:func:`schema_to_parser_config`).
4. **Coercion**: :func:`parse_option_values` applies env fallbacks,
   defaults, type coercion and enum checks.
5. **Validation**: :func:`validate_options` reports (never raises)
   required / range problems so several can be shown together.

Everything here is pure apart from reading ``os.environ`` for option
environment fallbacks.
"""

from __future__ import annotations

import argparse
import os
import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, NoReturn

from cmdtree.core.models import (
    GlobalOptions,
    OptionDef,
    OptionSchema,
    OptionValues,
    ParseIssue,
)
from cmdtree.exceptions import InvalidOptionError, OptionParseError

GLOBAL_OPTION_SCHEMA: dict[str, OptionDef] = {
    "log-level": OptionDef(
        type="string",
        description="Minimum log level (silly, trace, debug, info, warn, error, fatal)",
    ),
    "detailed-logs": OptionDef(
        type="boolean",
        description="Include timestamp and level in log output",
    ),
    "mode": OptionDef(
        type="string",
        description="Frontend to run (cli, interactive, default)",
    ),
}
"""Framework flags, shown under *Global Options* in help."""


# ---------------------------------------------------------------------------
# 1. Global flags
# ---------------------------------------------------------------------------

def extract_global_options(tokens: Sequence[str]) -> tuple[GlobalOptions, list[str]]:
    """Pull framework flags out of *tokens*, wherever they appear.

    Recognised forms: ``--log-level <lvl>``, ``--log-level=<lvl>``,
    ``--detailed-logs``, ``--no-detailed-logs``, ``--mode <m>`` and
    ``--mode=<m>``.  Every other token is returned in its original
    relative order.  A value-taking flag in last position (no value) is
    left in place for the command parser to reject.
    """
    log_level: str | None = None
    detailed: bool | None = None
    mode: str | None = None
    remaining: list[str] = []

    i = 0
    while i < len(tokens):
        token = tokens[i]
        has_next = i + 1 < len(tokens)

        if token == "--log-level" and has_next:
            log_level = tokens[i + 1]
            i += 2
        elif token.startswith("--log-level="):
            log_level = token.split("=", 1)[1]
            i += 1
        elif token == "--detailed-logs":
            detailed = True
            i += 1
        elif token == "--no-detailed-logs":
            detailed = False
            i += 1
        elif token == "--mode" and has_next:
            mode = tokens[i + 1]
            i += 2
        elif token.startswith("--mode="):
            mode = token.split("=", 1)[1]
            i += 1
        else:
            remaining.append(token)
            i += 1

    return GlobalOptions(log_level=log_level, detailed_logs=detailed, mode=mode), remaining


# ---------------------------------------------------------------------------
# 2. Command chain
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CommandChain:
    """Command path tokens and the flag tokens that follow them."""

    commands: list[str]
    remaining: list[str]


def extract_command_chain(tokens: Sequence[str]) -> CommandChain:
    """Split *tokens* at the first ``-``-prefixed token.

    Once a flag has been seen every later token belongs to the flags,
    even when it does not start with ``-``.
    """
    commands: list[str] = []
    index = 0
    for index, token in enumerate(tokens):
        if token.startswith("-"):
            break
        if token:
            commands.append(token)
    else:
        index = len(tokens)
    return CommandChain(commands=commands, remaining=list(tokens[index:]))


# ---------------------------------------------------------------------------
# 3. Flags
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FlagSpec:
    """Low-level flag description derived from an :class:`OptionDef`.

    The flag layer is string-typed for everything except booleans, so
    non-boolean defaults are stored in their string form.
    """

    type: Literal["boolean", "string"]
    multiple: bool = False
    short: str | None = None
    default: Any = None


def schema_to_parser_config(schema: OptionSchema) -> dict[str, FlagSpec]:
    """Translate *schema* into per-key :class:`FlagSpec` entries."""
    config: dict[str, FlagSpec] = {}
    for key, definition in schema.items():
        flag_type: Literal["boolean", "string"] = (
            "boolean" if definition.type == "boolean" else "string"
        )
        default = definition.default
        if default is not None and flag_type == "string" and not isinstance(default, str):
            if isinstance(default, (list, tuple)):
                default = [str(item) for item in default]
            else:
                default = str(default)
        config[key] = FlagSpec(
            type=flag_type,
            multiple=definition.type == "array",
            short=definition.alias,
            default=default,
        )
    return config


class _StrictArgumentParser(argparse.ArgumentParser):
    """``argparse`` parser that raises instead of printing and exiting."""

    def error(self, message: str) -> NoReturn:
        raise OptionParseError(message)


def build_argument_parser(config: Mapping[str, FlagSpec]) -> argparse.ArgumentParser:
    """Build the strict flag parser for a :func:`schema_to_parser_config` result.

    Defaults are suppressed: an absent flag stays absent until coercion
    applies environment fallbacks and schema defaults.
    """
    parser = _StrictArgumentParser(
        add_help=False,
        allow_abbrev=False,
        exit_on_error=False,
    )
    for key, spec in config.items():
        flags = [f"--{key}"]
        if spec.short:
            flags.insert(0, f"-{spec.short}")

        if spec.type == "boolean":
            parser.add_argument(
                *flags,
                dest=key,
                action=argparse.BooleanOptionalAction,
                default=argparse.SUPPRESS,
            )
        elif spec.multiple:
            parser.add_argument(*flags, dest=key, action="append", default=argparse.SUPPRESS)
        else:
            parser.add_argument(*flags, dest=key, default=argparse.SUPPRESS)
    return parser


def _reject_dash_values(config: Mapping[str, FlagSpec], tokens: Sequence[str]) -> None:
    """Refuse a "-"-prefixed token as the separate value of a flag.

    ``--count -5`` is ambiguous; the value must be attached as ``--count=-5``.
    """
    value_flags: set[str] = set()
    for key, spec in config.items():
        if spec.type == "boolean":
            continue
        value_flags.add(f"--{key}")
        if spec.short:
            value_flags.add(f"-{spec.short}")

    for token, following in zip(tokens, tokens[1:]):
        if token in value_flags and following.startswith("-"):
            raise OptionParseError(
                f"Option '{token}' argument is ambiguous. "
                f"To pass a value starting with a dash use '{token}={following}'",
            )


def parse_flag_tokens(schema: OptionSchema, tokens: Sequence[str]) -> dict[str, Any]:
    """Parse flag *tokens* strictly against *schema*.

    Returns only the keys that were actually given on the command line.

    Raises
    ------
    OptionParseError
        On unknown flags, stray positional tokens or missing values.
    """
    config = schema_to_parser_config(schema)
    _reject_dash_values(config, tokens)
    parser = build_argument_parser(config)
    try:
        namespace = parser.parse_args(list(tokens))
    except argparse.ArgumentError as exc:
        raise OptionParseError(str(exc)) from exc
    return dict(vars(namespace))


# ---------------------------------------------------------------------------
# 4. Coercion
# ---------------------------------------------------------------------------

def _enum_text(value: Any) -> str:
    """Render *value* the way enum membership is compared."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _coerce_number(key: str, value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError as exc:
        raise InvalidOptionError(
            f'Invalid number "{value}" for option "{key}"',
            field=key,
        ) from exc


def _coerce(key: str, definition: OptionDef, value: Any) -> Any:
    if definition.type == "number":
        return _coerce_number(key, value)
    if definition.type == "boolean":
        if isinstance(value, str):
            return value == "true" or value == "1"
        return bool(value)
    if definition.type == "array":
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value]
        return [str(value)]
    return value if isinstance(value, str) else str(value)


def _check_enum(key: str, definition: OptionDef, value: Any) -> None:
    if definition.enum is None:
        return
    candidates = value if isinstance(value, list) else [value]
    for candidate in candidates:
        if _enum_text(candidate) not in definition.enum:
            raise InvalidOptionError(
                f'Invalid value "{_enum_text(candidate)}" for option "{key}". '
                f"Must be one of: {', '.join(definition.enum)}",
                field=key,
            )


def parse_option_values(
    schema: OptionSchema,
    raw: Mapping[str, Any],
    *,
    environ: Mapping[str, str] | None = None,
) -> OptionValues:
    """Coerce *raw* flag values into typed option values.

    Resolution order per key: explicit value, ``OptionDef.env`` variable,
    ``OptionDef.default``.  Keys with none of these map to ``None``.

    Raises
    ------
    InvalidOptionError
        When a number cannot be parsed or a value is outside its enum.
    """
    env = os.environ if environ is None else environ
    values: OptionValues = {}

    for key, definition in schema.items():
        value = raw.get(key)
        if value is None and definition.env:
            value = env.get(definition.env)
        if value is None:
            value = definition.default

        if value is not None:
            value = _coerce(key, definition, value)
            _check_enum(key, definition, value)

        values[key] = value

    return values


# ---------------------------------------------------------------------------
# 5. Validation
# ---------------------------------------------------------------------------

def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def validate_options(schema: OptionSchema, values: Mapping[str, Any]) -> list[ParseIssue]:
    """Return every required / range problem in *values*; never raises."""
    issues: list[ParseIssue] = []

    for key, definition in schema.items():
        value = values.get(key)

        if definition.required and value is None:
            issues.append(
                ParseIssue(
                    type="missing_required",
                    message=f"Missing required option: {key}",
                    field=key,
                )
            )

        if (
            definition.type == "number"
            and isinstance(value, (int, float))
            and not isinstance(value, bool)
        ):
            if definition.min is not None and value < definition.min:
                issues.append(
                    ParseIssue(
                        type="validation",
                        message=f'Option "{key}" must be at least {_format_number(definition.min)}',
                        field=key,
                    )
                )
            if definition.max is not None and value > definition.max:
                issues.append(
                    ParseIssue(
                        type="validation",
                        message=f'Option "{key}" must be at most {_format_number(definition.max)}',
                        field=key,
                    )
                )

    return issues


# ---------------------------------------------------------------------------
# Command-line reconstruction
# ---------------------------------------------------------------------------

def _flag_with_value(key: str, value: str) -> list[str]:
    # A value that looks like a flag must be attached with "=".
    if value.startswith("-"):
        return [shlex.quote(f"--{key}={value}")]
    return [f"--{key}", shlex.quote(value)]


def build_command_line(
    app_name: str,
    command_path: Sequence[str],
    schema: OptionSchema,
    values: Mapping[str, Any],
) -> str:
    """Build a shell command line reproducing *values*.

    Only non-default values are emitted, so feeding the result back
    through :func:`parse_flag_tokens` and :func:`parse_option_values`
    yields the same values.
    """
    parts: list[str] = [app_name, *command_path]

    for key, definition in schema.items():
        value = values.get(key)
        if value is None or value == definition.default:
            continue

        if definition.type == "boolean":
            parts.append(f"--{key}" if value else f"--no-{key}")
        elif definition.type == "array":
            for item in value:
                parts.extend(_flag_with_value(key, str(item)))
        elif definition.type == "number":
            parts.extend(_flag_with_value(key, str(value)))
        elif str(value).strip():
            parts.extend(_flag_with_value(key, str(value)))

    return " ".join(parts)
