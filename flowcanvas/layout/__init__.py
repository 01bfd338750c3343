"""Automatic canvas layout for workflow graphs."""

from flowcanvas.layout.engine import (
    LayoutRunner,
    LayoutState,
    apply_layout,
    build_layout_graph,
)
from flowcanvas.layout.options import PRESETS, Direction, LayoutOptions, get_preset
from flowcanvas.layout.tidy import analyze_linear_path, snap

__all__ = [
    "PRESETS",
    "Direction",
    "LayoutOptions",
    "LayoutRunner",
    "LayoutState",
    "analyze_linear_path",
    "apply_layout",
    "build_layout_graph",
    "get_preset",
    "snap",
]
