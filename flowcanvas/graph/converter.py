"""Bidirectional conversion between editor collections and GraphDefinition.

Both directions are pure: inputs are never mutated and node/edge ids are
carried over exactly, so ``to_canonical(*from_canonical(g))`` keeps every
id, edge endpoint and config value of ``g``.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any

from flowcanvas.catalog.types import NodeStatus
from flowcanvas.graph.models import (
    CONTRACT_VERSION,
    DEFAULT_SOURCE_HANDLE,
    DEFAULT_TARGET_HANDLE,
    BaseNode,
    CanonicalEdge,
    EditorEdge,
    EditorNode,
    GraphDefinition,
    NodeData,
    Position,
    UIBox,
)
from flowcanvas.graph.type_map import (
    component_name,
    is_trigger_type,
    to_canonical_type,
    to_type_id,
)


def to_canonical(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
    graph_id: str = "default",
) -> GraphDefinition:
    """Build the canonical graph from editor collections.

    Args:
        nodes: Editor nodes, in canvas order.
        edges: Editor edges.
        graph_id: Id of the resulting graph.

    Returns:
        GraphDefinition with contract version 1 and a computed ``start``.
    """
    base_nodes = [_node_to_base(node) for node in nodes]
    canonical_edges = [_edge_to_canonical(edge) for edge in edges]
    return GraphDefinition(
        id=graph_id,
        version=CONTRACT_VERSION,
        start=find_start(base_nodes, canonical_edges),
        nodes=base_nodes,
        edges=canonical_edges,
    )


def from_canonical(
    graph: GraphDefinition | dict[str, Any] | None,
) -> tuple[list[EditorNode], list[EditorEdge]]:
    """Rebuild editor collections from a canonical graph.

    Unknown canonical types map to ``ap.<type>`` instead of failing. Every
    node starts in the ``idle`` status.
    """
    if graph is None:
        return [], []
    if not isinstance(graph, GraphDefinition):
        graph = GraphDefinition.model_validate(graph)

    nodes = [_base_to_node(base) for base in graph.nodes]
    edges = [_canonical_to_edge(edge) for edge in graph.edges]
    return nodes, edges


def find_start(nodes: Sequence[BaseNode], edges: Sequence[CanonicalEdge]) -> str:
    """Pick the entry node id.

    Preference order: the first trigger node, else the first node with no
    incoming edge, else the first node. Empty graphs yield ``""``.
    """
    if not nodes:
        return ""
    for node in nodes:
        if is_trigger_type(node.type):
            return node.id
    targets = {edge.target for edge in edges}
    for node in nodes:
        if node.id not in targets:
            return node.id
    return nodes[0].id


# =============================================================================
# HELPERS
# =============================================================================


def _node_to_base(node: EditorNode) -> BaseNode:
    return BaseNode(
        id=node.id,
        type=to_canonical_type(node.data.type_id),
        type_version=node.data.version or 1,
        label=node.data.display_name or None,
        config=copy.deepcopy(node.data.config),
        ui=UIBox(x=node.position.x, y=node.position.y, w=node.width, h=node.height),
    )


def _edge_to_canonical(edge: EditorEdge) -> CanonicalEdge:
    return CanonicalEdge(
        id=edge.id,
        source=edge.source,
        target=edge.target,
        source_handle=edge.source_handle,
        target_handle=edge.target_handle,
        label=edge.label,
    )


def _base_to_node(base: BaseNode) -> EditorNode:
    type_id = to_type_id(base.type)
    return EditorNode(
        id=base.id,
        type=component_name(base.type),
        position=Position(x=base.ui.x, y=base.ui.y),
        width=base.ui.w,
        height=base.ui.h,
        data=NodeData(
            type_id=type_id,
            version=base.type_version or 1,
            display_name=base.label or type_id,
            config=copy.deepcopy(base.config),
            status=NodeStatus.IDLE,
        ),
    )


def _canonical_to_edge(edge: CanonicalEdge) -> EditorEdge:
    return EditorEdge(
        id=edge.id,
        source=edge.source,
        target=edge.target,
        source_handle=edge.source_handle or DEFAULT_SOURCE_HANDLE,
        target_handle=edge.target_handle or DEFAULT_TARGET_HANDLE,
        label=edge.label,
    )


__all__ = ["find_start", "from_canonical", "to_canonical"]
