"""Editor session: owns the node/edge collections of one canvas.

Every operation builds new lists and swaps them in at once, so a failed
import or a stale async result never leaves the canvas half-updated.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from flowcanvas.catalog.registry import NodeRegistry
from flowcanvas.catalog.rules import RuleRegistry
from flowcanvas.editor.generation import GenerationGate
from flowcanvas.exceptions import GraphImportError, GraphStoreError
from flowcanvas.graph.converter import to_canonical
from flowcanvas.graph.ids import new_edge_id
from flowcanvas.graph.importer import ImportResult, export_graph, import_graph, load_graph
from flowcanvas.graph.instances import can_connect, create_node_instance, migrate_node_if_needed
from flowcanvas.graph.models import (
    DEFAULT_SOURCE_HANDLE,
    DEFAULT_TARGET_HANDLE,
    EditorEdge,
    EditorNode,
    GraphDefinition,
    Position,
)
from flowcanvas.graph.validation import GraphValidation, validate_graph
from flowcanvas.layout.engine import LayoutRunner, SizeLookup
from flowcanvas.layout.options import LayoutOptions
from flowcanvas.storage.base import GraphStore, StoredFlow

logger = logging.getLogger(__name__)

UNSAVED_FLOW_ID = "default"


class ConnectionResult(BaseModel):
    """Outcome of a connect request; ``edge`` is None when rejected."""

    edge: EditorEdge | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.edge is not None


class EditorSession:
    """State of one open flow in the editor.

    Args:
        registry: Node catalog used for creation, validation and migration.
        store: Optional persistence collaborator for load/save.
        layout_options: Defaults for ``auto_layout``.
        runner: Layout runner; one sharing this session's generation gate
            is created when omitted.
        rules: Migration rules (the default registry when omitted).
    """

    def __init__(
        self,
        registry: NodeRegistry,
        store: GraphStore | None = None,
        *,
        layout_options: LayoutOptions | None = None,
        runner: LayoutRunner | None = None,
        rules: RuleRegistry | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.rules = rules
        self.runner = runner or LayoutRunner(layout_options)
        self.gate = self.runner.gate
        self.load_gate = GenerationGate()
        self.flow_id: str = UNSAVED_FLOW_ID
        self.flow_name: str = ""
        self.flow_description: str = ""
        self.graph_id: str = UNSAVED_FLOW_ID
        self._nodes: list[EditorNode] = []
        self._edges: list[EditorEdge] = []

    # =========================================================================
    # Collections
    # =========================================================================

    @property
    def nodes(self) -> list[EditorNode]:
        return list(self._nodes)

    @property
    def edges(self) -> list[EditorEdge]:
        return list(self._edges)

    def get_node(self, node_id: str) -> EditorNode | None:
        return next((node for node in self._nodes if node.id == node_id), None)

    def replace(self, nodes: list[EditorNode], edges: list[EditorEdge]) -> None:
        """Swap both collections in one step.

        Pending layout results computed against the old collections become
        stale.
        """
        self._nodes = list(nodes)
        self._edges = list(edges)
        self.gate.invalidate()

    def clear(self) -> None:
        self.replace([], [])
        self.flow_id = UNSAVED_FLOW_ID
        self.graph_id = UNSAVED_FLOW_ID
        self.flow_name = ""
        self.flow_description = ""

    # =========================================================================
    # Editing
    # =========================================================================

    def add_node(
        self,
        type_id: str,
        position: Position | dict[str, float] | None = None,
        config: dict[str, Any] | None = None,
    ) -> EditorNode:
        """Create a node of ``type_id`` and append it to the canvas.

        Raises:
            NodeTypeNotFoundError: If ``type_id`` is not registered.
        """
        node = create_node_instance(self.registry, type_id, position, config)
        self.replace([*self._nodes, node], self._edges)
        return node

    def remove_node(self, node_id: str) -> bool:
        """Remove a node together with every edge touching it."""
        if self.get_node(node_id) is None:
            return False
        nodes = [node for node in self._nodes if node.id != node_id]
        edges = [edge for edge in self._edges if node_id not in (edge.source, edge.target)]
        self.replace(nodes, edges)
        return True

    def remove_edge(self, edge_id: str) -> bool:
        edges = [edge for edge in self._edges if edge.id != edge_id]
        if len(edges) == len(self._edges):
            return False
        self.replace(self._nodes, edges)
        return True

    def move_node(self, node_id: str, position: Position | dict[str, float]) -> EditorNode | None:
        if not isinstance(position, Position):
            position = Position.model_validate(position)
        moved: EditorNode | None = None
        nodes = []
        for node in self._nodes:
            if node.id == node_id:
                node = moved = node.model_copy(update={"position": position})
            nodes.append(node)
        if moved is not None:
            self.replace(nodes, self._edges)
        return moved

    def update_config(self, node_id: str, config: dict[str, Any]) -> EditorNode | None:
        """Merge ``config`` into a node's config."""
        updated: EditorNode | None = None
        nodes = []
        for node in self._nodes:
            if node.id == node_id:
                data = node.data.model_copy(update={"config": {**node.data.config, **config}})
                node = updated = node.model_copy(update={"data": data})
            nodes.append(node)
        if updated is not None:
            self.replace(nodes, self._edges)
        return updated

    def connect(
        self,
        source_id: str,
        target_id: str,
        source_handle: str = DEFAULT_SOURCE_HANDLE,
        target_handle: str = DEFAULT_TARGET_HANDLE,
    ) -> ConnectionResult:
        """Add an edge if the ports exist and are compatible."""
        source = self.get_node(source_id)
        target = self.get_node(target_id)
        if source is None or target is None:
            return ConnectionResult(reason="Nodo inexistente")
        if source_id == target_id:
            return ConnectionResult(reason="Self-loops no permitidos en v1")

        for edge in self._edges:
            if (edge.source, edge.target, edge.source_handle, edge.target_handle) == (
                source_id,
                target_id,
                source_handle,
                target_handle,
            ):
                return ConnectionResult(reason="La conexión ya existe")

        if not can_connect(source, source_handle, target, target_handle, self.registry):
            return ConnectionResult(
                reason=f"Puertos incompatibles ({source_id}.{source_handle} -> {target_id}.{target_handle})"
            )

        edge = EditorEdge(
            id=new_edge_id(),
            source=source_id,
            target=target_id,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        self.replace(self._nodes, [*self._edges, edge])
        return ConnectionResult(edge=edge)

    def migrate_all(self) -> int:
        """Migrate every outdated node to its definition's version.

        Returns:
            Number of nodes migrated.
        """
        migrated = [migrate_node_if_needed(node, self.registry, self.rules) for node in self._nodes]
        changed = sum(1 for old, new in zip(self._nodes, migrated) if old is not new)
        if changed:
            self.replace(migrated, self._edges)
            logger.info("Migrated %d node(s)", changed)
        return changed

    # =========================================================================
    # Import / export
    # =========================================================================

    def to_graph(self) -> GraphDefinition:
        return to_canonical(self._nodes, self._edges, self.graph_id)

    def export_json(self, *, indent: int | None = 2) -> str:
        return export_graph(self._nodes, self._edges, self.graph_id, indent=indent)

    def validate(self) -> GraphValidation:
        return validate_graph(self.to_graph(), self.registry)

    def import_json(self, text: str) -> ImportResult:
        """Replace the canvas with an imported graph.

        Nothing changes unless the import succeeds.
        """
        result = import_graph(text, self.registry)
        self._commit_import(result)
        return result

    def import_or_raise(self, text: str) -> ImportResult:
        """Like ``import_json`` but raises on failure.

        Raises:
            GraphImportError: With every error found.
        """
        result = self.import_json(text)
        if not result.success:
            raise GraphImportError(result.errors)
        return result

    def _commit_import(self, result: ImportResult) -> None:
        if not result.success:
            logger.info("Import rejected with %d error(s)", len(result.errors))
            return
        self.replace(result.nodes, result.edges)
        self.graph_id = result.graph_id
        for warning in result.warnings:
            logger.warning("Import: %s", warning)

    # =========================================================================
    # Async operations
    # =========================================================================

    async def auto_layout(
        self,
        size_lookup: SizeLookup | None = None,
        options: LayoutOptions | None = None,
    ) -> bool:
        """Lay out the canvas and commit the new positions.

        Returns:
            True if positions were committed; False when the request was
            ignored (a layout is already running) or went stale.
        """
        result = await self.runner.run(self._nodes, self._edges, size_lookup, options)
        if result is None:
            return False
        # Commit without invalidating: the runner's token is the current one
        self._nodes = result
        return True

    async def load_flow(self, flow_id: str) -> ImportResult | None:
        """Fetch a stored flow and replace the canvas with it.

        Only a newer ``load_flow`` call makes an in-flight load stale; edits
        and layouts made meanwhile are replaced by the loaded flow. Config
        problems in the stored graph are reported as warnings.

        Returns:
            The import result, or None if a newer load superseded this
            one while it was loading.

        Raises:
            GraphStoreError: If no store is configured or the fetch fails.
        """
        store = self._require_store()
        token = self.load_gate.next()
        flow = await store.get(flow_id)
        if not self.load_gate.is_current(token):
            logger.debug("Discarding stale load of flow %s", flow_id)
            return None

        if flow is None:
            return ImportResult(success=False, errors=[f"Flow '{flow_id}' no encontrado"])

        if flow.graph is None:
            result = ImportResult(success=True, graph_id=flow.id)
        else:
            result = load_graph(flow.graph, self.registry)
        if result.success:
            self._commit_import(result)
            self.flow_id = flow.id
            self.flow_name = flow.name
            self.flow_description = flow.description
        return result

    async def save_flow(self, name: str | None = None, description: str | None = None) -> StoredFlow:
        """Persist the canvas, creating the flow on first save.

        Raises:
            GraphStoreError: If no store is configured or the request fails.
        """
        store = self._require_store()
        name = name or self.flow_name or "Untitled flow"
        description = self.flow_description if description is None else description
        graph = self.to_graph()

        if self.flow_id and self.flow_id != UNSAVED_FLOW_ID:
            stored = await store.update(self.flow_id, name, graph, description)
        else:
            stored = await store.create(name, graph, description)
            logger.info("Created flow %s", stored.id)

        self.flow_id = stored.id
        self.flow_name = stored.name
        self.flow_description = stored.description
        return stored

    def _require_store(self) -> GraphStore:
        if self.store is None:
            raise GraphStoreError("No graph store configured")
        return self.store


__all__ = ["ConnectionResult", "EditorSession", "UNSAVED_FLOW_ID"]
