"""Configuration property definitions for node types."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flowcanvas.catalog.rules import (
    EnumMemberRule,
    NumericRangeRule,
    RequiredRule,
    RuleRegistry,
    ValidationRule,
    default_rules,
    is_absent,
)
from flowcanvas.catalog.types import DEFAULT_WIDGETS, PropertyType, PropertyWidget

_MULTILINE_WIDGETS = (PropertyWidget.TEXTAREA, PropertyWidget.CODE)


class UIHints(BaseModel):
    """Rendering hints for the property editor."""

    model_config = ConfigDict(frozen=True)

    widget: PropertyWidget = PropertyWidget.TEXTAREA
    placeholder: str = ""
    rows: int = Field(default=1, ge=1)


class PropertyDef(BaseModel):
    """One configuration field of a node type.

    ``label`` falls back to ``name`` and the UI widget falls back to the
    one matching ``type``. Enum properties must declare their options, and
    a required enum's default must be one of them.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    label: str = ""
    type: PropertyType = PropertyType.STRING
    required: bool = False
    default: Any = None
    description: str = ""
    ui: UIHints = Field(default_factory=UIHints)
    options: list[Any] = Field(default_factory=list)
    validation: ValidationRule | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_display_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("label"):
            data["label"] = data.get("name", "")

        prop_type = PropertyType(data.get("type", PropertyType.STRING))
        ui = data.get("ui") or {}
        if isinstance(ui, UIHints):
            ui = ui.model_dump(exclude_unset=True)
        ui = dict(ui)
        widget = PropertyWidget(ui.get("widget") or DEFAULT_WIDGETS.get(prop_type, PropertyWidget.TEXTAREA))
        ui["widget"] = widget
        if ui.get("rows") is None:
            ui["rows"] = 3 if widget in _MULTILINE_WIDGETS else 1
        data["ui"] = ui
        return data

    @model_validator(mode="after")
    def _check_enum_options(self) -> PropertyDef:
        if self.type == PropertyType.ENUM:
            if not self.options:
                raise ValueError(f"Enum property '{self.name}' must declare options")
            if self.required and self.default not in self.options:
                raise ValueError(
                    f"Default {self.default!r} of required enum property '{self.name}' "
                    f"is not one of {self.options}"
                )
        return self

    def builtin_rules(self) -> list[ValidationRule]:
        """Type-derived checks applied when no explicit validation is declared."""
        if self.type == PropertyType.NUMBER:
            return [NumericRangeRule()]
        if self.type == PropertyType.ENUM and self.options:
            return [EnumMemberRule()]
        return []

    def validate_value(self, value: Any, rules: RuleRegistry | None = None) -> str | None:
        """Validate one value.

        The required check runs first. A declared ``validation`` rule then
        replaces the built-in type checks entirely. Absent optional values
        are not checked further.

        Returns:
            An error message keyed by the property label, or None if valid.
        """
        rules = rules or default_rules
        if self.required:
            error = RequiredRule().check(value, self, rules)
            if error:
                return error
        if is_absent(value):
            return None

        checks = [self.validation] if self.validation is not None else self.builtin_rules()
        for rule in checks:
            error = rule.check(value, self, rules)
            if error:
                return error
        return None
