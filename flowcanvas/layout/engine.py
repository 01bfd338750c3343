"""Auto-layout engine.

``apply_layout`` turns editor collections into new node positions:
build an abstract graph of sized boxes with fixed-order ports, run the
layered pass, then the tidy pass. It is best effort: any failure is
logged and the original nodes come back unchanged.

``LayoutRunner`` drives it from async code with a re-entrancy guard, a
deadline, and stale-result discard through a ``GenerationGate``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from enum import StrEnum

from flowcanvas.editor.generation import GenerationGate
from flowcanvas.exceptions import LayoutError
from flowcanvas.graph.models import (
    DEFAULT_SOURCE_HANDLE,
    DEFAULT_TARGET_HANDLE,
    EditorEdge,
    EditorNode,
    Position,
    Size,
)
from flowcanvas.graph.type_map import is_trigger_type, to_canonical_type
from flowcanvas.layout.layered import (
    LayoutBox,
    LayoutEdge,
    LayoutGraph,
    LayoutPort,
    PortSide,
    layered_layout,
)
from flowcanvas.layout.options import LayoutOptions
from flowcanvas.layout.tidy import analyze_linear_path, snap_positions, tidy_linear
from flowcanvas.settings import get_settings

logger = logging.getLogger(__name__)

SizeLookup = Callable[[str], Size | None]

TRIGGER_COMPONENT = "trigger"


# =============================================================================
# LAYOUT GRAPH CONSTRUCTION
# =============================================================================


def port_id(node_id: str, handle: str) -> str:
    return f"{node_id}:{handle}"


def is_trigger_node(node: EditorNode) -> bool:
    """Trigger nodes have no incoming side."""
    return node.type == TRIGGER_COMPONENT or is_trigger_type(to_canonical_type(node.data.type_id))


def node_size(
    node: EditorNode,
    size_lookup: SizeLookup | None,
    options: LayoutOptions,
) -> tuple[float, float]:
    """Measured size of a node: its own fields, else the lookup, else the default."""
    if node.width and node.height:
        return node.width, node.height
    if size_lookup is not None:
        measured = size_lookup(node.id)
        if measured is not None:
            return measured.width, measured.height
    return options.default_width, options.default_height


def build_layout_graph(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
    size_lookup: SizeLookup | None = None,
    options: LayoutOptions | None = None,
) -> LayoutGraph:
    """Build the abstract layout graph.

    Each node gets ``in`` on the west side (index 0) and ``out`` on the
    east side (index 1); trigger nodes only get ``out``. Edge handles
    beyond those become extra ports appended on the matching side.

    Raises:
        LayoutError: If an edge references a missing node, enters a
            trigger node, or uses an incoming port as a source (or the
            reverse).
    """
    options = options or LayoutOptions()
    boxes: dict[str, LayoutBox] = {}
    triggers: set[str] = set()

    for node in nodes:
        width, height = node_size(node, size_lookup, options)
        if is_trigger_node(node):
            triggers.add(node.id)
            ports = [LayoutPort(port_id(node.id, DEFAULT_SOURCE_HANDLE), DEFAULT_SOURCE_HANDLE, PortSide.EAST, 0)]
        else:
            ports = [
                LayoutPort(port_id(node.id, DEFAULT_TARGET_HANDLE), DEFAULT_TARGET_HANDLE, PortSide.WEST, 0),
                LayoutPort(port_id(node.id, DEFAULT_SOURCE_HANDLE), DEFAULT_SOURCE_HANDLE, PortSide.EAST, 1),
            ]
        boxes[node.id] = LayoutBox(id=node.id, width=width, height=height, ports=ports)

    layout_edges: list[LayoutEdge] = []
    for edge in edges:
        source = boxes.get(edge.source)
        target = boxes.get(edge.target)
        if source is None or target is None:
            raise LayoutError(f"Edge {edge.id} references a missing node")
        if target.id in triggers:
            raise LayoutError(f"Edge {edge.id} enters trigger node {target.id}, which has no input port")
        source_port = _ensure_port(source, edge.source_handle or DEFAULT_SOURCE_HANDLE, PortSide.EAST, edge.id)
        target_port = _ensure_port(target, edge.target_handle or DEFAULT_TARGET_HANDLE, PortSide.WEST, edge.id)
        layout_edges.append(
            LayoutEdge(
                id=edge.id,
                source=source.id,
                target=target.id,
                source_port=source_port,
                target_port=target_port,
            )
        )

    return LayoutGraph(boxes=list(boxes.values()), edges=layout_edges)


def _ensure_port(box: LayoutBox, handle: str, side: PortSide, edge_id: str) -> LayoutPort:
    port = box.port(handle)
    if port is None:
        port = LayoutPort(port_id(box.id, handle), handle, side, len(box.ports))
        box.ports.append(port)
    elif port.side != side:
        raise LayoutError(f"Edge {edge_id} uses port {port.id} on the wrong side ({port.side})")
    return port


# =============================================================================
# APPLY
# =============================================================================


def apply_layout(
    nodes: Sequence[EditorNode],
    edges: Sequence[EditorEdge],
    options: LayoutOptions | None = None,
    size_lookup: SizeLookup | None = None,
) -> list[EditorNode]:
    """Compute new positions for ``nodes``.

    Returns:
        Nodes in the same order with only ``position`` replaced, or the
        original nodes if anything went wrong.
    """
    options = options or LayoutOptions()
    try:
        graph = build_layout_graph(nodes, edges, size_lookup, options)
        positions = layered_layout(graph, options)

        path = analyze_linear_path(nodes, edges)
        if options.tidy_linear and path.is_linear:
            sizes = {box.id: (box.width, box.height) for box in graph.boxes}
            positions = tidy_linear(positions, sizes, path.order, options)
        else:
            positions = snap_positions(positions, options.grid)

        return [
            node.model_copy(update={"position": Position(x=positions[node.id][0], y=positions[node.id][1])})
            for node in nodes
        ]
    except Exception as exc:
        logger.error("Auto-layout failed, keeping current positions: %s", exc, exc_info=True)
        return list(nodes)


# =============================================================================
# ASYNC RUNNER
# =============================================================================


class LayoutState(StrEnum):
    IDLE = "idle"
    COMPUTING = "computing"
    APPLIED = "applied"
    DISCARDED = "discarded"


class LayoutRunner:
    """Runs layouts off the event loop, one at a time.

    A request made while another is computing is ignored. A result whose
    generation token went stale while computing (for instance because the
    session loaded another flow) is discarded instead of returned.
    """

    def __init__(
        self,
        options: LayoutOptions | None = None,
        *,
        timeout: float | None = None,
        gate: GenerationGate | None = None,
    ) -> None:
        self.options = options or LayoutOptions()
        self.timeout = timeout if timeout is not None else get_settings().layout_timeout_seconds
        self.gate = gate or GenerationGate()
        self._state = LayoutState.IDLE

    @property
    def state(self) -> LayoutState:
        return self._state

    @property
    def is_computing(self) -> bool:
        return self._state == LayoutState.COMPUTING

    async def run(
        self,
        nodes: Sequence[EditorNode],
        edges: Sequence[EditorEdge],
        size_lookup: SizeLookup | None = None,
        options: LayoutOptions | None = None,
    ) -> list[EditorNode] | None:
        """Lay out the graph in a worker thread.

        Returns:
            The laid-out nodes (the originals on timeout), or None when the
            request was ignored or its result went stale.
        """
        if self._state == LayoutState.COMPUTING:
            logger.debug("Layout already in progress, ignoring request")
            return None

        token = self.gate.next()
        self._state = LayoutState.COMPUTING
        nodes = list(nodes)
        edges = list(edges)
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(apply_layout, nodes, edges, options or self.options, size_lookup),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.warning("Auto-layout exceeded %.1fs deadline, keeping current positions", self.timeout)
            result = nodes
        except BaseException:
            self._state = LayoutState.IDLE
            raise

        if not self.gate.is_current(token):
            logger.debug("Discarding stale layout result (token %d, current %d)", token, self.gate.current)
            self._state = LayoutState.DISCARDED
            return None

        self._state = LayoutState.APPLIED
        return result


__all__ = [
    "LayoutRunner",
    "LayoutState",
    "apply_layout",
    "build_layout_graph",
    "is_trigger_node",
    "node_size",
]
