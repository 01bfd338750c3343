"""Layout options and named presets."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from flowcanvas.settings import Settings, get_settings

DEFAULT_NODE_WIDTH = 200
DEFAULT_NODE_HEIGHT = 100


class Direction(StrEnum):
    """Primary flow direction of the layered layout."""

    RIGHT = "RIGHT"  # left-to-right, the workflow default
    LEFT = "LEFT"
    DOWN = "DOWN"
    UP = "UP"

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.RIGHT, Direction.LEFT)

    @property
    def is_reversed(self) -> bool:
        return self in (Direction.LEFT, Direction.UP)


class LayoutOptions(BaseModel):
    """Parameters of one auto-layout run.

    Attributes:
        direction: Flow direction of layers.
        node_spacing: Gap between siblings inside one layer.
        layer_spacing: Gap between consecutive layers.
        grid: Grid size positions are snapped to.
        tidy_linear: Force a single row/column for simple chains.
        default_width: Width used when a node has no measured size.
        default_height: Height used when a node has no measured size.
    """

    model_config = ConfigDict(frozen=True)

    direction: Direction = Direction.RIGHT
    node_spacing: float = Field(default=120, ge=0)
    layer_spacing: float = Field(default=200, ge=0)
    grid: float = Field(default=20, gt=0)
    tidy_linear: bool = True
    default_width: float = Field(default=DEFAULT_NODE_WIDTH, gt=0)
    default_height: float = Field(default=DEFAULT_NODE_HEIGHT, gt=0)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> LayoutOptions:
        """Build options from the ``FLOWCANVAS_LAYOUT_*`` settings."""
        settings = settings or get_settings()
        return cls(
            direction=Direction(settings.layout_direction),
            node_spacing=settings.layout_node_spacing,
            layer_spacing=settings.layout_layer_spacing,
            grid=settings.layout_grid,
            tidy_linear=settings.layout_tidy_linear,
        )


PRESETS: dict[str, LayoutOptions] = {
    # n8n-style DAG, left to right
    "n8n_workflow": LayoutOptions(),
    "pipeline": LayoutOptions(node_spacing=150, layer_spacing=250),
    "tree": LayoutOptions(direction=Direction.DOWN, node_spacing=100, layer_spacing=150),
    "fan_out_in": LayoutOptions(node_spacing=100, layer_spacing=180),
}


def get_preset(name: str) -> LayoutOptions:
    """Look up a preset by name.

    Raises:
        KeyError: If no preset has that name.
    """
    key = name.lower().replace("-", "_")
    if key not in PRESETS:
        raise KeyError(f"Unknown layout preset '{name}'. Available: {', '.join(PRESETS)}")
    return PRESETS[key]
