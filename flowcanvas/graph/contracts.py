"""Canonical graph contracts.

Pydantic models describing the canonical graph envelope and the config
accepted by each canonical node type. Models are compiled to JSON Schema
via ``.model_json_schema()`` and checked with the jsonschema library, so
the same schemas can be published to non-Python consumers unchanged.

Usage::

    from flowcanvas.graph.contracts import contracts, config_schema_name

    result = contracts.validate(config_schema_name("tool.http"), node["config"])
    for violation in result.violations:
        print(violation)
"""

from __future__ import annotations

from typing import Any, Literal

import jsonschema  # type: ignore[import-untyped,unused-ignore]
from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

ENVELOPE_SCHEMA = "graph.envelope"
CONFIG_SCHEMA_PREFIX = "config."

# =============================================================================
# RESULT MODELS
# =============================================================================


class ContractViolation(BaseModel):
    """A single contract violation with location context.

    Attributes:
        path: JSONPath-style location (e.g. "nodes[0].typeVersion").
        message: Human-readable description from jsonschema.
        schema_path: JSON Schema path that triggered the violation.
    """

    path: str
    message: str
    schema_path: str = ""

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ContractResult(BaseModel):
    """Result of checking data against a named contract."""

    valid: bool
    violations: list[ContractViolation] = Field(default_factory=list)
    schema_name: str


# =============================================================================
# ENVELOPE
# =============================================================================


class EnvelopeUI(BaseModel):
    x: float
    y: float
    w: float | None = None
    h: float | None = None


class EnvelopeNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    type_version: int = Field(default=1, ge=1, alias="typeVersion")
    label: str | None = None
    config: Any = None
    ui: EnvelopeUI | None = None


class EnvelopeEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    label: str | None = None


class GraphEnvelope(BaseModel):
    """Structural shape of a persisted GraphDefinition."""

    id: str = Field(..., min_length=1)
    version: int = Field(..., ge=1)
    start: str = Field(..., min_length=1)
    nodes: list[EnvelopeNode] = Field(..., min_length=1)
    edges: list[EnvelopeEdge]


# =============================================================================
# NODE CONFIGS
# =============================================================================


class TriggerManualConfig(BaseModel):
    message: str


class TriggerWebhookConfig(BaseModel):
    path: str = Field(..., pattern=r"^/")
    method: HttpMethod


class TriggerInputConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input_schema: dict[str, Any] | None = Field(default=None, alias="schema")


class AgentCoreConfig(BaseModel):
    strategy: Literal["reactive"]
    instructions: str


class ConditionRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    if_: str = Field(..., min_length=1, alias="if")
    to: str = Field(..., min_length=1, description="Target node id")


class ConditionExprConfig(BaseModel):
    engine: Literal["jexl", "jmespath"]
    rules: list[ConditionRule] = Field(..., min_length=1)


class MemoryKvConfig(BaseModel):
    mode: Literal["load", "save"]
    scope: Literal["conversation", "run"]
    backend: Literal["postgres", "memory"]


class ModelLlmConfig(BaseModel):
    provider: Literal["azure", "openai", "local"]
    model: str
    temperature: float | None = Field(default=None, ge=0, le=2)


class ToolHttpConfig(BaseModel):
    method: HttpMethod
    url: str = Field(..., pattern=r"^https?://[^\s/$.?#][^\s]*$")
    headers: dict[str, str] | None = None
    body: Any = None


class ToolPostgresConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    connection_ref: str = Field(..., alias="connectionRef")
    query: str


class ResponseChatConfig(BaseModel):
    format: Literal["text", "json"]
    template: str | None = None


class ResponseEndConfig(BaseModel):
    output: Any = None


NODE_CONFIG_MODELS: dict[str, type[BaseModel]] = {
    "trigger.manual": TriggerManualConfig,
    "trigger.webhook": TriggerWebhookConfig,
    "trigger.input": TriggerInputConfig,
    "agent.core": AgentCoreConfig,
    "condition.expr": ConditionExprConfig,
    "memory.kv": MemoryKvConfig,
    "model.llm": ModelLlmConfig,
    "tool.http": ToolHttpConfig,
    "tool.postgres": ToolPostgresConfig,
    "response.chat": ResponseChatConfig,
    "response.end": ResponseEndConfig,
}


# =============================================================================
# CONTRACT REGISTRY
# =============================================================================


class ContractRegistry:
    """Registry mapping contract names to Pydantic models and compiled JSON Schemas.

    Schemas are compiled on first access; checks delegate to jsonschema.
    """

    def __init__(self) -> None:
        self._models: dict[str, type[BaseModel]] = {}
        self._compiled: dict[str, dict[str, Any]] = {}

    def register(self, name: str, model: type[BaseModel]) -> None:
        """Register a Pydantic model under a contract name.

        Raises:
            ValueError: If name is already registered.
        """
        if name in self._models:
            raise ValueError(f"Contract '{name}' is already registered")
        self._models[name] = model
        self._compiled.pop(name, None)

    def list_schemas(self) -> list[str]:
        return list(self._models.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def get_json_schema(self, name: str) -> dict[str, Any]:
        """Get the compiled JSON Schema for a registered contract.

        Raises:
            KeyError: If the contract is not registered.
        """
        if name not in self._models:
            raise KeyError(f"Contract '{name}' is not registered")

        if name not in self._compiled:
            schema = self._models[name].model_json_schema(by_alias=True)
            # Extra keys (credentialRefs, UI-only fields) are allowed
            schema.setdefault("additionalProperties", True)
            self._compiled[name] = schema

        return self._compiled[name]

    def validate(self, name: str, data: Any) -> ContractResult:
        """Check data against a registered contract.

        Raises:
            KeyError: If the contract is not registered.
        """
        json_schema = self.get_json_schema(name)
        validator_cls = jsonschema.validators.validator_for(json_schema)
        validator = validator_cls(json_schema)

        violations = [
            ContractViolation(
                path=_format_json_path(error.absolute_path),
                message=error.message,
                schema_path=_format_json_path(error.absolute_schema_path),
            )
            for error in validator.iter_errors(data)
        ]
        return ContractResult(valid=not violations, violations=violations, schema_name=name)


def config_schema_name(canonical_type: str) -> str:
    return f"{CONFIG_SCHEMA_PREFIX}{canonical_type}"


def _format_json_path(path: Any) -> str:
    """Format a jsonschema deque path as a JSONPath-style string.

    Examples:
        deque([]) -> ""
        deque(["nodes", 0, "typeVersion"]) -> "nodes[0].typeVersion"
    """
    parts: list[str] = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
    return "".join(parts)


def _build_default_contracts() -> ContractRegistry:
    registry = ContractRegistry()
    registry.register(ENVELOPE_SCHEMA, GraphEnvelope)
    for canonical_type, model in NODE_CONFIG_MODELS.items():
        registry.register(config_schema_name(canonical_type), model)
    return registry


# Module-level default contracts
contracts = _build_default_contracts()


__all__ = [
    "ENVELOPE_SCHEMA",
    "NODE_CONFIG_MODELS",
    "ContractRegistry",
    "ContractResult",
    "ContractViolation",
    "GraphEnvelope",
    "config_schema_name",
    "contracts",
]
