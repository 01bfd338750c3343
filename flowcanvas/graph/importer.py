"""Graph import and export.

``import_graph`` never raises and never partially succeeds: it returns
either the full converted collections or the complete list of reasons
the text was rejected.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from flowcanvas.catalog.registry import NodeRegistry
from flowcanvas.graph.converter import from_canonical, to_canonical
from flowcanvas.graph.models import EditorEdge, EditorNode, GraphDefinition
from flowcanvas.graph.validation import validate_graph

logger = logging.getLogger(__name__)


class ImportResult(BaseModel):
    """Outcome of importing a canonical graph.

    On failure ``nodes`` and ``edges`` are empty and ``errors`` lists every
    problem found.
    """

    success: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    graph_id: str = "default"
    nodes: list[EditorNode] = Field(default_factory=list)
    edges: list[EditorEdge] = Field(default_factory=list)


def import_graph(text: str, registry: NodeRegistry | None = None) -> ImportResult:
    """Parse, validate and convert canonical graph JSON.

    Args:
        text: JSON document holding a GraphDefinition.
        registry: Optional node registry enabling version and port checks.

    Returns:
        ImportResult with the editor collections, or the errors.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        return _failed([f"JSON inválido: {exc}"])

    if not isinstance(data, dict):
        return _failed(["El JSON no es un objeto válido"])

    try:
        return _import_data(data, registry)
    except Exception as exc:
        logger.warning("Unexpected error importing graph: %s", exc)
        return _failed([f"Error al importar: {exc}"])


def load_graph(graph: GraphDefinition, registry: NodeRegistry | None = None) -> ImportResult:
    """Convert a stored graph back into editor collections.

    Stored flows are drafts: config contract or registry findings do not
    block loading and come back as warnings. Only edges pointing at
    missing nodes reject the graph. An empty graph loads as an empty
    canvas.
    """
    nodes, edges = from_canonical(graph)

    node_ids = {node.id for node in nodes}
    dangling = [edge.id for edge in edges if edge.source not in node_ids or edge.target not in node_ids]
    if dangling:
        return _failed([f"Edges con referencias inválidas: {', '.join(dangling)}"])

    warnings: list[str] = []
    if nodes:
        validation = validate_graph(graph, registry)
        warnings = [*validation.errors, *validation.warnings]

    return ImportResult(
        success=True,
        warnings=warnings,
        graph_id=graph.id or "default",
        nodes=nodes,
        edges=edges,
    )


def export_graph(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
    graph_id: str = "default",
    *,
    indent: int | None = 2,
) -> str:
    """Serialize editor collections as canonical graph JSON."""
    graph = to_canonical(nodes, edges, graph_id)
    return json.dumps(graph.to_wire(), indent=indent, ensure_ascii=False)


def _import_data(data: dict[str, Any], registry: NodeRegistry | None) -> ImportResult:
    data = dict(data)
    if not isinstance(data.get("nodes"), list):
        data["nodes"] = []
    if not isinstance(data.get("edges"), list):
        data["edges"] = []

    validation = validate_graph(data, registry)
    if not validation.valid:
        return _failed(validation.errors, validation.warnings)

    nodes, edges = from_canonical(data)

    node_ids = {node.id for node in nodes}
    dangling = [edge.id for edge in edges if edge.source not in node_ids or edge.target not in node_ids]
    if dangling:
        return _failed([f"Edges con referencias inválidas: {', '.join(dangling)}"], validation.warnings)

    return ImportResult(
        success=True,
        warnings=validation.warnings,
        graph_id=data.get("id") or "default",
        nodes=nodes,
        edges=edges,
    )


def _failed(errors: list[str], warnings: list[str] | None = None) -> ImportResult:
    return ImportResult(success=False, errors=errors, warnings=warnings or [])


__all__ = ["ImportResult", "export_graph", "import_graph", "load_graph"]
