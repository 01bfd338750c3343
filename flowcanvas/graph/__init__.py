"""Workflow graph model, canonical conversion, validation and import."""

from flowcanvas.graph.converter import find_start, from_canonical, to_canonical
from flowcanvas.graph.ids import new_edge_id, new_node_id
from flowcanvas.graph.importer import ImportResult, export_graph, import_graph, load_graph
from flowcanvas.graph.instances import (
    can_connect,
    create_node_instance,
    migrate_node_if_needed,
)
from flowcanvas.graph.models import (
    BaseNode,
    CanonicalEdge,
    EditorEdge,
    EditorNode,
    GraphDefinition,
    NodeData,
    Position,
    Size,
    UIBox,
)
from flowcanvas.graph.validation import GraphValidation, validate_graph

__all__ = [
    "BaseNode",
    "CanonicalEdge",
    "EditorEdge",
    "EditorNode",
    "GraphDefinition",
    "GraphValidation",
    "ImportResult",
    "NodeData",
    "Position",
    "Size",
    "UIBox",
    "can_connect",
    "create_node_instance",
    "export_graph",
    "find_start",
    "from_canonical",
    "import_graph",
    "load_graph",
    "migrate_node_if_needed",
    "new_edge_id",
    "new_node_id",
    "to_canonical",
    "validate_graph",
]
