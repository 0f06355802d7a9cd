"""Form field model derived from an option schema.

The interactive session prompts for one field per visible option.  This
module is the pure mapping from :class:`~cmdtree.core.models.OptionDef`
to :class:`FieldConfig`; it performs no I/O.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Any, Literal

from cmdtree.core.models import OptionDef, OptionSchema

FieldType = Literal["text", "number", "boolean", "enum"]

_MAX_DISPLAY_LENGTH = 60


@dataclass(frozen=True, slots=True)
class FieldOption:
    name: str
    value: str


@dataclass(frozen=True, slots=True)
class FieldConfig:
    """A single form field."""

    key: str
    label: str
    type: FieldType
    options: tuple[FieldOption, ...] = ()
    """Choices for ``enum`` fields."""
    description: str = ""
    placeholder: str | None = None
    group: str | None = None
    multiple: bool = False
    """Array option, edited as comma-separated text."""


def _field_type(definition: OptionDef) -> FieldType:
    if definition.enum:
        return "enum"
    if definition.type == "number":
        return "number"
    if definition.type == "boolean":
        return "boolean"
    return "text"


def key_to_label(key: str) -> str:
    """``"repoPath"`` → ``"Repo Path"``, ``"log-level"`` → ``"Log level"``."""
    spaced = re.sub(r"([A-Z])", r" \1", key)
    spaced = re.sub(r"[-_]+", " ", spaced).strip()
    return spaced[:1].upper() + spaced[1:]


def schema_to_fields(schema: OptionSchema) -> list[FieldConfig]:
    """Convert *schema* to form fields.

    Hidden options are skipped.  Fields are sorted by ``order``; options
    without one keep insertion order after every ordered option.
    """
    fields: list[FieldConfig] = []
    for key, definition in schema.items():
        if definition.hidden:
            continue
        fields.append(
            FieldConfig(
                key=key,
                label=definition.label or key_to_label(key),
                type=_field_type(definition),
                options=tuple(FieldOption(name=value, value=value) for value in definition.enum or ()),
                description=definition.description,
                placeholder=definition.placeholder,
                group=definition.group,
                multiple=definition.type == "array",
            )
        )

    def order_of(field_config: FieldConfig) -> int:
        order = schema[field_config.key].order
        return sys.maxsize if order is None else order

    # list.sort is stable, so equal orders keep insertion order.
    fields.sort(key=order_of)
    return fields


def get_field_display_value(value: Any, field_config: FieldConfig) -> str:
    """Format *value* for a menu line or summary."""
    if field_config.type == "boolean":
        return "True" if value else "False"

    if field_config.type == "enum":
        for option in field_config.options:
            if option.value == value:
                return option.name
        return str(value)

    if isinstance(value, (list, tuple)):
        text = ", ".join(str(item) for item in value)
    else:
        text = "" if value is None else str(value)
    if text == "":
        return "(empty)"

    if len(text) > _MAX_DISPLAY_LENGTH:
        return text[: _MAX_DISPLAY_LENGTH - 3] + "..."
    return text
