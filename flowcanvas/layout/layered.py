"""Layered (Sugiyama-style) graph drawing.

Phases:
  1. Cycle removal (greedy-FAS ordering, back-edges reversed)
  2. Layer assignment (longest path from the sources)
  3. Dummy nodes for edges spanning more than one layer
  4. Crossing minimisation (barycenter sweeps)
  5. Coordinate assignment along the configured direction

Every phase seeds from and breaks ties by declaration order, so an
unchanged graph always lays out the same way and small edits do not
reshuffle unrelated branches. The result does not depend on the nodes'
current positions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

import networkx as nx

from flowcanvas.layout.options import LayoutOptions

DUMMY_PREFIX = "__dummy_"
MAX_CROSSING_PASSES = 24

Point = tuple[float, float]


# =============================================================================
# LAYOUT GRAPH
# =============================================================================


class PortSide(StrEnum):
    WEST = "WEST"  # incoming
    EAST = "EAST"  # outgoing


@dataclass(frozen=True)
class LayoutPort:
    """A fixed-order connection point on a box.

    ``id`` is ``<node id>:<handle>``, unique across the graph.
    """

    id: str
    handle: str
    side: PortSide
    index: int


@dataclass
class LayoutBox:
    """A node as the layout sees it: an id, a size and its ports."""

    id: str
    width: float
    height: float
    ports: list[LayoutPort] = field(default_factory=list)

    def port(self, handle: str) -> LayoutPort | None:
        return next((p for p in self.ports if p.handle == handle), None)

    def port_fraction(self, port: LayoutPort) -> float:
        """Relative position of ``port`` among the ports on its side, in [0, 1)."""
        same_side = sorted((p for p in self.ports if p.side == port.side), key=lambda p: p.index)
        return same_side.index(port) / len(same_side)


@dataclass(frozen=True)
class LayoutEdge:
    id: str
    source: str
    target: str
    source_port: LayoutPort
    target_port: LayoutPort


@dataclass
class LayoutGraph:
    """Abstract graph handed to the layered pass."""

    boxes: list[LayoutBox] = field(default_factory=list)
    edges: list[LayoutEdge] = field(default_factory=list)

    def box(self, box_id: str) -> LayoutBox | None:
        return next((b for b in self.boxes if b.id == box_id), None)


# =============================================================================
# CYCLE REMOVAL
# =============================================================================


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Order nodes so that few edges point backwards (Eades, Lin, Smyth 1993).

    Repeatedly moves sinks to the tail and sources to the head; when only
    cycles remain, the node with the largest out-in surplus goes to the
    head. Ties go to the earliest node in insertion order.
    """
    remaining = list(graph.nodes)
    out_deg = dict(graph.out_degree())
    in_deg = dict(graph.in_degree())
    head: list[str] = []
    tail: list[str] = []

    def remove(node: str) -> None:
        remaining.remove(node)
        for succ in graph.successors(node):
            in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            out_deg[pred] -= 1

    while remaining:
        sinks = [n for n in remaining if out_deg[n] == 0]
        if sinks:
            for sink in sinks:
                remove(sink)
                tail.append(sink)
            continue

        sources = [n for n in remaining if in_deg[n] == 0]
        if sources:
            for source in sources:
                remove(source)
                head.append(source)
            continue

        best = max(remaining, key=lambda n: out_deg[n] - in_deg[n])
        remove(best)
        head.append(best)

    return head + tail[::-1]


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Copy ``graph`` with its back-edges reversed.

    Returns:
        The acyclic copy and the set of original (source, target) pairs
        that were reversed.
    """
    position = {node: i for i, node in enumerate(greedy_fas_ordering(graph))}

    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(graph.nodes)
    reversed_edges: set[tuple[str, str]] = set()
    for src, tgt, attrs in graph.edges(data=True):
        if position[src] > position[tgt]:
            reversed_edges.add((src, tgt))
            dag.add_edge(tgt, src, src_offset=0.0, tgt_offset=0.0)
        else:
            dag.add_edge(src, tgt, **attrs)
    return dag, reversed_edges


# =============================================================================
# LAYERING
# =============================================================================


def assign_layers(dag: nx.DiGraph) -> dict[str, int]:
    """Longest-path layering: every node sits one layer after its deepest predecessor."""
    layers = {node: 0 for node in dag.nodes}
    for node in nx.topological_sort(dag):
        for succ in dag.successors(node):
            layers[succ] = max(layers[succ], layers[node] + 1)
    return layers


@dataclass
class AugmentedGraph:
    """DAG whose edges all connect adjacent layers, plus tie-break ranks."""

    graph: nx.DiGraph
    layers: dict[str, int]
    rank: dict[str, int]

    @property
    def layer_count(self) -> int:
        return max(self.layers.values()) + 1 if self.layers else 0


def insert_dummy_nodes(dag: nx.DiGraph, layers: dict[str, int]) -> AugmentedGraph:
    """Split every edge spanning more than one layer into a chain of dummies.

    Real nodes rank by insertion order; dummies rank after them, in edge
    order.
    """
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(dag.nodes)
    layers = dict(layers)
    rank = {node: i for i, node in enumerate(dag.nodes)}
    counter = 0

    for src, tgt, attrs in list(dag.edges(data=True)):
        span = layers[tgt] - layers[src]
        if span <= 1:
            graph.add_edge(src, tgt, **attrs)
            continue

        previous = src
        for step in range(1, span):
            dummy = f"{DUMMY_PREFIX}{counter}_{step}"
            graph.add_node(dummy)
            layers[dummy] = layers[src] + step
            rank[dummy] = len(rank)
            offsets = {"src_offset": attrs.get("src_offset", 0.0) if previous == src else 0.0}
            graph.add_edge(previous, dummy, tgt_offset=0.0, **offsets)
            previous = dummy
        graph.add_edge(previous, tgt, src_offset=0.0, tgt_offset=attrs.get("tgt_offset", 0.0))
        counter += 1

    return AugmentedGraph(graph=graph, layers=layers, rank=rank)


# =============================================================================
# CROSSING MINIMISATION
# =============================================================================


def minimise_crossings(aug: AugmentedGraph) -> list[list[str]]:
    """Order each layer to reduce edge crossings.

    Layers are seeded in declaration order. Each pass is a top-down then a
    bottom-up barycenter sweep; a pass is kept only if it strictly reduces
    the crossing count, otherwise the previous ordering stands.
    """
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node in sorted(aug.layers, key=aug.rank.__getitem__):
        ordering[aug.layers[node]].append(node)

    best = count_crossings(ordering, aug.graph)
    for _pass in range(MAX_CROSSING_PASSES):
        if best == 0:
            break
        candidate = [list(layer) for layer in ordering]

        for idx in range(1, len(candidate)):
            _sort_layer(candidate, idx, aug, upstream=True)
        for idx in range(len(candidate) - 2, -1, -1):
            _sort_layer(candidate, idx, aug, upstream=False)

        crossings = count_crossings(candidate, aug.graph)
        if crossings >= best:
            break
        ordering, best = candidate, crossings

    return ordering


def _sort_layer(ordering: list[list[str]], idx: int, aug: AugmentedGraph, *, upstream: bool) -> None:
    neighbour_layer = ordering[idx - 1] if upstream else ordering[idx + 1]
    neighbour_pos = {node: float(i) for i, node in enumerate(neighbour_layer)}
    current = {node: float(i) for i, node in enumerate(ordering[idx])}

    def key(node: str) -> tuple[float, int]:
        bary = _barycenter(node, aug.graph, neighbour_pos, upstream=upstream)
        return (current[node] if bary is None else bary, aug.rank[node])

    ordering[idx].sort(key=key)


def _barycenter(
    node: str,
    graph: nx.DiGraph,
    neighbour_pos: dict[str, float],
    *,
    upstream: bool,
) -> float | None:
    """Mean position of a node's neighbours in the adjacent layer.

    Port offsets nudge the position so edges leaving ports in order stay
    in order. Returns None when the node has no neighbour there.
    """
    positions: list[float] = []
    if upstream:
        for pred in graph.predecessors(node):
            if pred in neighbour_pos:
                positions.append(neighbour_pos[pred] + graph.edges[pred, node].get("src_offset", 0.0) / 2)
    else:
        for succ in graph.successors(node):
            if succ in neighbour_pos:
                positions.append(neighbour_pos[succ] + graph.edges[node, succ].get("tgt_offset", 0.0) / 2)
    if not positions:
        return None
    return sum(positions) / len(positions)


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Count pairwise edge crossings between consecutive layers."""
    total = 0
    for idx in range(len(ordering) - 1):
        target_pos = {node: i for i, node in enumerate(ordering[idx + 1])}
        segments: list[tuple[int, int]] = []
        for source_pos, node in enumerate(ordering[idx]):
            for succ in graph.successors(node):
                if succ in target_pos:
                    segments.append((source_pos, target_pos[succ]))
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (a0, a1), (b0, b1) = segments[i], segments[j]
                if (a0 - b0) * (a1 - b1) < 0:
                    total += 1
    return total


# =============================================================================
# COORDINATES
# =============================================================================


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    sizes: dict[str, tuple[float, float]],
    options: LayoutOptions,
) -> dict[str, Point]:
    """Place boxes: layers along the flow axis, layer members across it.

    Each layer is centred on the widest one and then shifted as a whole
    to line up with its parents. Dummy nodes take no space besides the
    node spacing around them.

    Args:
        ordering: Node ids per layer, in cross-axis order.
        aug: The augmented graph the ordering was computed on.
        sizes: (width, height) of every real node; anything else is a dummy.
        options: Direction and spacing.

    Returns:
        Top-left corner of every real node.
    """
    horizontal = options.direction.is_horizontal

    def extents(node: str) -> tuple[float, float]:
        width, height = sizes.get(node, (0.0, 0.0))
        return (width, height) if horizontal else (height, width)

    depth = [max((extents(n)[0] for n in layer), default=0.0) for layer in ordering]
    layer_start: list[float] = []
    offset = 0.0
    for layer_depth in depth:
        layer_start.append(offset)
        offset += layer_depth + options.layer_spacing
    total_depth = layer_start[-1] + depth[-1] if ordering else 0.0

    spans = [
        sum(extents(n)[1] for n in layer) + options.node_spacing * max(len(layer) - 1, 0)
        for layer in ordering
    ]
    widest = max(spans, default=0.0)

    cross: dict[str, float] = {}
    for layer, span in zip(ordering, spans):
        position = (widest - span) / 2
        for node in layer:
            cross[node] = position
            position += extents(node)[1] + options.node_spacing

    # Align each layer with its parents
    for idx in range(1, len(ordering)):
        child_centres: list[float] = []
        parent_centres: list[float] = []
        for node in ordering[idx]:
            for pred in aug.graph.predecessors(node):
                if aug.layers[pred] == idx - 1:
                    child_centres.append(cross[node] + extents(node)[1] / 2)
                    parent_centres.append(cross[pred] + extents(pred)[1] / 2)
        if not child_centres:
            continue
        shift = sum(parent_centres) / len(parent_centres) - sum(child_centres) / len(child_centres)
        for node in ordering[idx]:
            cross[node] += shift

    lowest = min(cross.values(), default=0.0)
    positions: dict[str, Point] = {}
    for idx, layer in enumerate(ordering):
        for node in layer:
            if node not in sizes:
                continue  # dummy
            primary = layer_start[idx]
            if options.direction.is_reversed:
                primary = total_depth - primary - extents(node)[0]
            secondary = cross[node] - lowest
            positions[node] = (primary, secondary) if horizontal else (secondary, primary)
    return positions


# =============================================================================
# ENTRY POINT
# =============================================================================


def layered_layout(graph: LayoutGraph, options: LayoutOptions) -> dict[str, Point]:
    """Run all phases on a layout graph.

    Self-loops are ignored; parallel edges count once.

    Returns:
        Top-left corner of every box, keyed by box id.
    """
    if not graph.boxes:
        return {}

    digraph: nx.DiGraph = nx.DiGraph()
    digraph.add_nodes_from(box.id for box in graph.boxes)
    boxes = {box.id: box for box in graph.boxes}
    for edge in graph.edges:
        if edge.source == edge.target:
            continue
        digraph.add_edge(
            edge.source,
            edge.target,
            src_offset=boxes[edge.source].port_fraction(edge.source_port),
            tgt_offset=boxes[edge.target].port_fraction(edge.target_port),
        )

    dag, _reversed = remove_cycles(digraph)
    aug = insert_dummy_nodes(dag, assign_layers(dag))
    ordering = minimise_crossings(aug)
    sizes = {box.id: (box.width, box.height) for box in graph.boxes}
    return assign_coordinates(ordering, aug, sizes, options)


__all__ = [
    "LayoutBox",
    "LayoutEdge",
    "LayoutGraph",
    "LayoutPort",
    "PortSide",
    "assign_layers",
    "count_crossings",
    "greedy_fas_ordering",
    "insert_dummy_nodes",
    "layered_layout",
    "minimise_crossings",
    "remove_cycles",
]
