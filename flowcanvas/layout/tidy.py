"""Tidy pass applied after the layered layout.

A graph that is one simple chain is laid out as a perfect row (or column):
nodes are placed from the first node's snapped position at fixed steps,
all sharing the cross-axis coordinate. Anything else keeps its layered
coordinates, snapped to the grid.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from flowcanvas.graph.models import EditorEdge, EditorNode
from flowcanvas.layout.options import LayoutOptions

Point = tuple[float, float]


@dataclass(frozen=True)
class LinearPath:
    is_linear: bool
    order: list[str] = field(default_factory=list)


NOT_LINEAR = LinearPath(is_linear=False)


def snap(value: float, grid: float = 20) -> float:
    """Round to the nearest multiple of ``grid``; halves round up."""
    return math.floor(value / grid + 0.5) * grid


def analyze_linear_path(nodes: Sequence[EditorNode], edges: Sequence[EditorEdge]) -> LinearPath:
    """Check whether the graph is a single simple chain.

    Linear means every node has in- and out-degree at most 1, exactly one
    node has in-degree 0, and following edges from it visits every node
    once.

    Returns:
        LinearPath with the chain order when linear.
    """
    indeg = {node.id: 0 for node in nodes}
    outdeg = {node.id: 0 for node in nodes}
    following: dict[str, str] = {}

    for edge in edges:
        if edge.source in following:
            return NOT_LINEAR
        following[edge.source] = edge.target
        outdeg[edge.source] = outdeg.get(edge.source, 0) + 1
        indeg[edge.target] = indeg.get(edge.target, 0) + 1

    if any(count > 1 for count in indeg.values()) or any(count > 1 for count in outdeg.values()):
        return NOT_LINEAR

    starts = [node.id for node in nodes if indeg[node.id] == 0]
    if len(starts) != 1:
        return NOT_LINEAR

    order: list[str] = []
    seen: set[str] = set()
    current: str | None = starts[0]
    while current is not None and current not in seen:
        seen.add(current)
        order.append(current)
        current = following.get(current)

    if len(order) != len(nodes):
        return NOT_LINEAR
    return LinearPath(is_linear=True, order=order)


def tidy_linear(
    positions: Mapping[str, Point],
    sizes: Mapping[str, tuple[float, float]],
    order: Sequence[str],
    options: LayoutOptions,
) -> dict[str, Point]:
    """Place a chain along the primary axis.

    Starts at the first node's snapped position and steps by the node's
    extent plus ``layer_spacing``; LEFT and UP step backwards.
    """
    if not order:
        return dict(positions)

    base_x, base_y = (snap(v, options.grid) for v in positions[order[0]])
    horizontal = options.direction.is_horizontal
    backwards = options.direction.is_reversed

    result = dict(positions)
    cursor = base_x if horizontal else base_y
    previous_extent = 0.0
    for i, node_id in enumerate(order):
        width, height = sizes[node_id]
        extent = width if horizontal else height
        if i > 0:
            step = (extent if backwards else previous_extent) + options.layer_spacing
            cursor += -step if backwards else step
        primary = snap(cursor, options.grid)
        result[node_id] = (primary, base_y) if horizontal else (base_x, primary)
        previous_extent = extent
    return result


def snap_positions(positions: Mapping[str, Point], grid: float) -> dict[str, Point]:
    return {node_id: (snap(x, grid), snap(y, grid)) for node_id, (x, y) in positions.items()}


__all__ = ["LinearPath", "analyze_linear_path", "snap", "snap_positions", "tidy_linear"]
