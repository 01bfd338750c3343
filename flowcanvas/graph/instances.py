"""Node instances: creation, migration and connection checks."""

from __future__ import annotations

import logging
from typing import Any

from flowcanvas.catalog.definition import NodeDefinition
from flowcanvas.catalog.registry import NodeRegistry
from flowcanvas.catalog.rules import RuleRegistry
from flowcanvas.catalog.types import NodeStatus
from flowcanvas.exceptions import NodeTypeNotFoundError
from flowcanvas.graph.ids import new_node_id
from flowcanvas.graph.models import EditorNode, NodeData, Position

logger = logging.getLogger(__name__)


def create_node_instance(
    registry: NodeRegistry,
    type_id: str,
    position: Position | dict[str, float] | None = None,
    config: dict[str, Any] | None = None,
    data_overrides: dict[str, Any] | None = None,
) -> EditorNode:
    """Create a new node of ``type_id`` with a fresh ``n_<ULID>`` id.

    The config is merged in order: definition defaults, ``config``, then
    ``data_overrides["config"]``. An invalid result is still returned;
    validation at creation time is advisory and only logged.

    Args:
        registry: Registry holding the node definition.
        type_id: Node type to instantiate.
        position: Canvas position (origin when omitted).
        config: Property values overriding the defaults.
        data_overrides: Extra ``NodeData`` fields; a ``config`` entry is
            merged into the config rather than replacing it.

    Returns:
        The new EditorNode in ``idle`` status.

    Raises:
        NodeTypeNotFoundError: If ``type_id`` is not registered.
    """
    definition = registry.get(type_id)
    if definition is None:
        raise NodeTypeNotFoundError(type_id)

    overrides = dict(data_overrides or {})
    final_config = {
        **definition.get_default_config(),
        **(config or {}),
        **(overrides.pop("config", None) or {}),
    }

    validation = definition.validate_config(final_config)
    if not validation.valid:
        logger.warning("Validation warnings for %s: %s", type_id, validation.errors)

    data = {
        "type_id": type_id,
        "version": definition.version,
        "display_name": definition.display_name,
        "config": final_config,
        "status": NodeStatus.IDLE,
        **overrides,
    }
    if not isinstance(position, Position):
        position = Position.model_validate(position or {})

    return EditorNode(
        id=new_node_id(),
        type=definition.name,
        position=position,
        data=NodeData.model_validate(data),
    )


def get_node_definition(node: EditorNode, registry: NodeRegistry) -> NodeDefinition | None:
    return registry.get(node.data.type_id)


def migrate_node_if_needed(
    node: EditorNode,
    registry: NodeRegistry,
    rules: RuleRegistry | None = None,
) -> EditorNode:
    """Bring a node's config up to its definition's current version.

    Returns the node unchanged when its type is unknown or already current;
    otherwise a copy with the migrated config and the new version.

    Raises:
        MigrationError: If a custom migration step is not registered.
    """
    definition = registry.get(node.data.type_id)
    if definition is None:
        return node

    current = node.data.version or 1
    if current >= definition.version:
        return node

    migrated = definition.migrate_config(node.data.config, current, rules)
    logger.debug(
        "Migrated %s (%s) from v%d to v%d", node.id, definition.type_id, current, definition.version
    )
    return node.model_copy(
        update={"data": node.data.model_copy(update={"version": definition.version, "config": migrated})}
    )


def can_connect(
    source: EditorNode,
    source_handle: str,
    target: EditorNode,
    target_handle: str,
    registry: NodeRegistry,
) -> bool:
    """Check whether an edge between two node ports is allowed.

    Both ports must exist on their definitions and be compatible. Nodes of
    unregistered types are never connectable.
    """
    source_def = get_node_definition(source, registry)
    target_def = get_node_definition(target, registry)
    if source_def is None or target_def is None:
        return False
    source_port = source_def.get_output(source_handle)
    target_port = target_def.get_input(target_handle)
    if source_port is None or target_port is None:
        return False
    return source_port.can_connect_to(target_port)


__all__ = [
    "can_connect",
    "create_node_instance",
    "get_node_definition",
    "migrate_node_if_needed",
]
