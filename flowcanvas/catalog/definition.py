"""Versioned node-type definitions.

A ``NodeDefinition`` is the complete schema of one node type: its ports,
configuration properties, defaults, required credentials, runtime policy
and the migration steps that carry stored configs forward between
versions. Definitions are immutable once constructed.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flowcanvas.catalog.ports import PortDef
from flowcanvas.catalog.properties import PropertyDef
from flowcanvas.catalog.rules import MigrationStep, RuleRegistry, default_rules
from flowcanvas.catalog.types import NodeCategory

logger = logging.getLogger(__name__)

CREDENTIAL_REFS_KEY = "credentialRefs"


class CredentialDef(BaseModel):
    """Reference to an external secret a node needs."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., min_length=1)
    required: bool = False


class RuntimePolicy(BaseModel):
    """Execution limits applied by the runtime to nodes of this type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timeout_ms: int = Field(default=30000, ge=0, alias="timeout")
    retries: int = Field(default=0, ge=0)
    rate_limit: float | None = Field(default=None, alias="rateLimit")


class ConfigValidation(BaseModel):
    """Outcome of validating a node config against its definition.

    Attributes:
        valid: Whether the config has no errors.
        errors: Messages keyed by property label, ready for display.
        warnings: Non-fatal findings (e.g. unknown keys).
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class NodeDefinition(BaseModel):
    """Complete, versioned description of one node type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type_id: str = Field(
        ...,
        pattern=r"^[a-z][a-z0-9_]*(\.[a-z0-9_]+)+$",
        alias="typeId",
        description="Globally unique dotted identifier (e.g. 'ap.agent.core')",
    )
    version: int = Field(default=1, ge=1)
    display_name: str = Field(..., min_length=1, alias="displayName")
    name: str = ""
    description: str = ""
    category: NodeCategory = NodeCategory.AGENT
    tags: list[str] = Field(default_factory=list)
    icon: str = "settings"
    color: str = "#6366f1"
    inputs: list[PortDef] = Field(default_factory=list)
    outputs: list[PortDef] = Field(default_factory=list)
    properties: list[PropertyDef] = Field(default_factory=list)
    credentials: list[CredentialDef] = Field(default_factory=list)
    defaults: dict[str, Any] = Field(default_factory=dict)
    migrate: dict[int, list[MigrationStep]] = Field(
        default_factory=dict,
        description="Steps keyed by the version they migrate *to*",
    )
    runtime: RuntimePolicy = Field(default_factory=RuntimePolicy)
    help_url: str = Field(default="", alias="helpUrl")

    @model_validator(mode="before")
    @classmethod
    def _fill_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            type_id = data.get("type_id") or data.get("typeId") or ""
            data = {**data, "name": str(type_id).split(".")[-1]}
        return data

    @field_validator("migrate", mode="before")
    @classmethod
    def _coerce_single_steps(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            version: steps if isinstance(steps, list) else [steps]
            for version, steps in value.items()
        }

    @model_validator(mode="after")
    def _check_consistency(self) -> NodeDefinition:
        names = [p.name for p in self.properties]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate property names in '{self.type_id}': {', '.join(duplicates)}")

        for version in self.migrate:
            if version < 2 or version > self.version:
                raise ValueError(
                    f"Migration target version {version} of '{self.type_id}' "
                    f"must be between 2 and {self.version}"
                )
        return self

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def is_trigger(self) -> bool:
        return self.category == NodeCategory.TRIGGER

    def get_property(self, name: str) -> PropertyDef | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def get_input(self, port_id: str) -> PortDef | None:
        return next((p for p in self.inputs if p.id == port_id), None)

    def get_output(self, port_id: str) -> PortDef | None:
        return next((p for p in self.outputs if p.id == port_id), None)

    # -------------------------------------------------------------------------
    # Defaults
    # -------------------------------------------------------------------------

    def get_default_value(self, name: str) -> Any:
        """Return the type-level override, else the property default, else None."""
        if name in self.defaults:
            return copy.deepcopy(self.defaults[name])
        prop = self.get_property(name)
        return copy.deepcopy(prop.default) if prop is not None else None

    def get_default_config(self) -> dict[str, Any]:
        """Build a full config with one entry per declared property."""
        return {prop.name: self.get_default_value(prop.name) for prop in self.properties}

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_config(
        self,
        config: dict[str, Any],
        rules: RuleRegistry | None = None,
    ) -> ConfigValidation:
        """Validate a complete node config.

        Never raises: every problem is reported in the result so the editor
        can keep an invalid node on the canvas and show why.

        Args:
            config: Property values keyed by property name; required
                credentials are looked up in ``config["credentialRefs"]``.
            rules: Registry resolving custom rule ids (defaults to the
                module-level rules).

        Returns:
            ConfigValidation with label-keyed error messages.
        """
        rules = rules or default_rules
        errors: list[str] = []
        warnings: list[str] = []

        if not isinstance(config, dict):
            return ConfigValidation(
                valid=False,
                errors=[f"La configuración debe ser un objeto, no {type(config).__name__}"],
            )

        for prop in self.properties:
            try:
                error = prop.validate_value(config.get(prop.name), rules)
            except Exception as exc:
                logger.warning("Validator for '%s.%s' raised: %s", self.type_id, prop.name, exc)
                error = f"{prop.label} es inválido"
            if error:
                errors.append(error)

        refs = config.get(CREDENTIAL_REFS_KEY)
        refs = refs if isinstance(refs, dict) else {}
        for cred in self.credentials:
            if cred.required and not refs.get(cred.type):
                errors.append(f"Credencial {cred.type} es requerida")

        known = {p.name for p in self.properties} | {CREDENTIAL_REFS_KEY}
        for key in config:
            if key not in known:
                warnings.append(f"Propiedad desconocida: {key}")

        return ConfigValidation(valid=not errors, errors=errors, warnings=warnings)

    # -------------------------------------------------------------------------
    # Migration
    # -------------------------------------------------------------------------

    def migrate_config(
        self,
        config: dict[str, Any],
        from_version: int,
        rules: RuleRegistry | None = None,
    ) -> dict[str, Any]:
        """Carry a stored config from ``from_version`` up to ``self.version``.

        Applies the steps registered for every version in
        ``from_version + 1 .. self.version`` in order. Versions without
        steps are skipped without error. The input config is not mutated.

        Raises:
            MigrationError: If a custom step id is not registered.
        """
        rules = rules or default_rules
        migrated = copy.deepcopy(config)

        for version in range(from_version + 1, self.version + 1):
            steps = self.migrate.get(version)
            if not steps:
                logger.debug("No migration steps for %s v%d, skipping", self.type_id, version)
                continue
            for step in steps:
                migrated = step.apply(migrated, rules)

        return migrated
