"""Validation rules and migration steps expressed as data.

Property validators and config migration steps are small tagged models
(``kind`` discriminator) instead of closures, so a node definition can be
serialized, shipped across a process boundary, or loaded from YAML.
Anything that genuinely needs code is a ``custom`` entry whose id
resolves against a ``RuleRegistry`` of named callables.

Usage::

    from flowcanvas.catalog.rules import RuleRegistry, CustomStep

    rules = RuleRegistry()
    rules.register_migration("llm.rename_model", lambda cfg: {...})
    step = CustomStep(step_id="llm.rename_model")
    new_config = step.apply(old_config, rules)
"""

from __future__ import annotations

import copy
import logging
import math
from collections.abc import Callable
from typing import TYPE_CHECKING, Annotated, Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from flowcanvas.exceptions import MigrationError

if TYPE_CHECKING:
    from flowcanvas.catalog.properties import PropertyDef

logger = logging.getLogger(__name__)

ValidatorFn = Callable[[Any, "PropertyDef"], str | None]
MigrationFn = Callable[[dict[str, Any]], dict[str, Any]]


# =============================================================================
# VALIDATION RULES
# =============================================================================


class RequiredRule(BaseModel):
    """Value must be present (not None and not an empty string)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["required"] = "required"

    def check(self, value: Any, prop: PropertyDef, rules: RuleRegistry) -> str | None:
        if is_absent(value):
            return f"{prop.label} es requerido"
        return None


class NumericRangeRule(BaseModel):
    """Value must be numeric and, when bounds are given, inside them."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric_range"] = "numeric_range"
    min: float | None = None
    max: float | None = None

    def check(self, value: Any, prop: PropertyDef, rules: RuleRegistry) -> str | None:
        number = to_number(value)
        if number is None:
            return f"{prop.label} debe ser un número"
        if self.min is not None and number < self.min:
            return f"{prop.label} debe ser mayor o igual a {_fmt(self.min)}"
        if self.max is not None and number > self.max:
            return f"{prop.label} debe ser menor o igual a {_fmt(self.max)}"
        return None


class EnumMemberRule(BaseModel):
    """Value must be one of ``options`` (the property's options when unset)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["enum_member"] = "enum_member"
    options: list[Any] | None = None

    def check(self, value: Any, prop: PropertyDef, rules: RuleRegistry) -> str | None:
        options = self.options if self.options is not None else prop.options
        if not options or value in options:
            return None
        return f"{prop.label} debe ser uno de: {', '.join(str(o) for o in options)}"


class CustomRule(BaseModel):
    """Named validator resolved in a ``RuleRegistry``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["custom"] = "custom"
    rule_id: str = Field(..., min_length=1)

    def check(self, value: Any, prop: PropertyDef, rules: RuleRegistry) -> str | None:
        fn = rules.get_validator(self.rule_id)
        if fn is None:
            logger.warning("Unknown validation rule '%s' on property '%s'", self.rule_id, prop.name)
            return f"{prop.label}: regla de validación desconocida '{self.rule_id}'"
        return fn(value, prop)


ValidationRule = Annotated[
    RequiredRule | NumericRangeRule | EnumMemberRule | CustomRule,
    Field(discriminator="kind"),
]


# =============================================================================
# MIGRATION STEPS
# =============================================================================


class RenameField(BaseModel):
    """Move ``source`` to ``target`` when present."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rename"] = "rename"
    source: str
    target: str

    def apply(self, config: dict[str, Any], rules: RuleRegistry) -> dict[str, Any]:
        result = dict(config)
        if self.source in result:
            result[self.target] = result.pop(self.source)
        return result


class SetField(BaseModel):
    """Set ``key`` to ``value``; only fills a missing key unless ``overwrite``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["set"] = "set"
    key: str
    value: Any = None
    overwrite: bool = False

    def apply(self, config: dict[str, Any], rules: RuleRegistry) -> dict[str, Any]:
        result = dict(config)
        if self.overwrite or self.key not in result:
            result[self.key] = copy.deepcopy(self.value)
        return result


class DropField(BaseModel):
    """Remove ``key`` if present."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["drop"] = "drop"
    key: str

    def apply(self, config: dict[str, Any], rules: RuleRegistry) -> dict[str, Any]:
        result = dict(config)
        result.pop(self.key, None)
        return result


class CustomStep(BaseModel):
    """Named migration function resolved in a ``RuleRegistry``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["custom"] = "custom"
    step_id: str = Field(..., min_length=1)

    def apply(self, config: dict[str, Any], rules: RuleRegistry) -> dict[str, Any]:
        fn = rules.get_migration(self.step_id)
        if fn is None:
            raise MigrationError(f"Unknown migration step '{self.step_id}'")
        return fn(dict(config))


MigrationStep = Annotated[
    RenameField | SetField | DropField | CustomStep,
    Field(discriminator="kind"),
]


# =============================================================================
# RULE REGISTRY
# =============================================================================


class RuleRegistry:
    """Named validators and migration functions referenced by ``custom`` entries."""

    def __init__(self) -> None:
        self._validators: dict[str, ValidatorFn] = {}
        self._migrations: dict[str, MigrationFn] = {}

    def register_validator(self, rule_id: str, function: ValidatorFn) -> None:
        """Register a validator returning an error message, or None when valid."""
        self._validators[rule_id] = function

    def register_migration(self, step_id: str, function: MigrationFn) -> None:
        """Register a migration taking a config dict and returning the new one."""
        self._migrations[step_id] = function

    def get_validator(self, rule_id: str) -> ValidatorFn | None:
        return self._validators.get(rule_id)

    def get_migration(self, step_id: str) -> MigrationFn | None:
        return self._migrations.get(step_id)

    def list_validators(self) -> list[str]:
        return list(self._validators.keys())

    def list_migrations(self) -> list[str]:
        return list(self._migrations.keys())


# =============================================================================
# HELPERS
# =============================================================================


def is_absent(value: Any) -> bool:
    """A config value counts as absent when it is None or an empty string."""
    return value is None or value == ""


def to_number(value: Any) -> float | None:
    """Coerce a config value to a float, or None when it is not numeric."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _http_url(value: Any, prop: PropertyDef) -> str | None:
    parsed = urlparse(str(value))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return f"{prop.label} debe ser una URL http(s) válida"
    return None


def _http_path(value: Any, prop: PropertyDef) -> str | None:
    if not isinstance(value, str) or not value.startswith("/"):
        return f"{prop.label} debe comenzar con /"
    return None


def _register_builtin_rules(registry: RuleRegistry) -> None:
    """Register the validators referenced by the built-in catalog."""
    registry.register_validator("http_url", _http_url)
    registry.register_validator("http_path", _http_path)


# Module-level default rules
default_rules = RuleRegistry()
_register_builtin_rules(default_rules)


__all__ = [
    "CustomRule",
    "CustomStep",
    "DropField",
    "EnumMemberRule",
    "MigrationStep",
    "NumericRangeRule",
    "RenameField",
    "RequiredRule",
    "RuleRegistry",
    "SetField",
    "ValidationRule",
    "default_rules",
    "is_absent",
    "to_number",
]
