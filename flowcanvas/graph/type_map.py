"""Mapping between registry type ids and canonical node types.

Registry type ids carry the ``ap.`` prefix (``ap.agent.core``); the
persisted graph uses the prefix-free canonical type (``agent.core``).
``ap.action.http`` is a legacy alias of ``ap.tool.http``: both map to
``tool.http`` and the reverse direction always yields ``ap.tool.http``.
"""

TYPE_ID_PREFIX = "ap."
FALLBACK_CANONICAL_TYPE = "trigger.manual"
TRIGGER_TYPE_PREFIX = "trigger."

TYPE_ID_TO_CANONICAL: dict[str, str] = {
    "ap.trigger.webhook": "trigger.webhook",
    "ap.trigger.manual": "trigger.manual",
    "ap.trigger.input": "trigger.input",
    "ap.agent.core": "agent.core",
    "ap.condition.expr": "condition.expr",
    "ap.memory.kv": "memory.kv",
    "ap.model.llm": "model.llm",
    "ap.action.http": "tool.http",
    "ap.tool.http": "tool.http",
    "ap.tool.postgres": "tool.postgres",
    "ap.response.chat": "response.chat",
    "ap.response.end": "response.end",
}

CANONICAL_TO_TYPE_ID: dict[str, str] = {
    "trigger.webhook": "ap.trigger.webhook",
    "trigger.manual": "ap.trigger.manual",
    "trigger.input": "ap.trigger.input",
    "agent.core": "ap.agent.core",
    "condition.expr": "ap.condition.expr",
    "memory.kv": "ap.memory.kv",
    "model.llm": "ap.model.llm",
    "tool.http": "ap.tool.http",
    "tool.postgres": "ap.tool.postgres",
    "response.chat": "ap.response.chat",
    "response.end": "ap.response.end",
}

# Canonical type -> rendering component name
CANONICAL_TO_COMPONENT: dict[str, str] = {
    "trigger.webhook": "webhook_trigger",
    "trigger.manual": "manual_trigger",
    "trigger.input": "trigger_input",
    "agent.core": "agent_core",
    "condition.expr": "condition_expr",
    "memory.kv": "memory_kv",
    "model.llm": "model_llm",
    "tool.http": "tool_http",
    "tool.postgres": "tool_postgres",
    "response.chat": "response_chat",
    "response.end": "response_end",
}


def to_canonical_type(type_id: str | None) -> str:
    """Canonical type for a registry type id.

    Unknown ids pass through unchanged; a missing id falls back to
    ``trigger.manual``.
    """
    if not type_id:
        return FALLBACK_CANONICAL_TYPE
    return TYPE_ID_TO_CANONICAL.get(type_id, type_id)


def to_type_id(canonical_type: str) -> str:
    """Registry type id for a canonical type (``ap.<type>`` when unknown)."""
    return CANONICAL_TO_TYPE_ID.get(canonical_type, f"{TYPE_ID_PREFIX}{canonical_type}")


def component_name(canonical_type: str) -> str:
    return CANONICAL_TO_COMPONENT.get(canonical_type, canonical_type.replace(".", "_"))


def is_trigger_type(canonical_type: str) -> bool:
    return canonical_type.startswith(TRIGGER_TYPE_PREFIX)
