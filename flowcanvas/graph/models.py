"""Graph models.

Two shapes of the same workflow graph live here:

- the editor side (``EditorNode`` / ``EditorEdge``): what the canvas works
  with, including measured sizes and the ephemeral execution status;
- the canonical side (``GraphDefinition`` / ``BaseNode`` / ``CanonicalEdge``):
  the persisted wire format, with camelCase aliases on the wire.

Both accept either snake_case field names or the wire aliases on input.
Serialize canonical models with ``model_dump(by_alias=True, exclude_none=True)``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from flowcanvas.catalog.types import NodeStatus

DEFAULT_SOURCE_HANDLE = "out"
DEFAULT_TARGET_HANDLE = "in"
CONTRACT_VERSION = 1


# =============================================================================
# EDITOR MODELS
# =============================================================================


class Position(BaseModel):
    """Top-left corner of a node on the canvas."""

    x: float = 0
    y: float = 0


class Size(BaseModel):
    """Measured size of a rendered node."""

    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class NodeData(BaseModel):
    """Payload carried by an editor node.

    Attributes:
        type_id: Node type in the registry (e.g. ``ap.agent.core``).
        version: Schema version ``config`` conforms to; may lag the
            definition's current version until migrated.
        display_name: Label shown on the canvas.
        config: Property values keyed by property name.
        status: Execution-derived state. Never persisted.
    """

    model_config = ConfigDict(populate_by_name=True)

    type_id: str = Field(..., alias="typeId")
    version: int = Field(default=1, ge=1)
    display_name: str = Field(default="", alias="displayName")
    config: dict[str, Any] = Field(default_factory=dict)
    status: NodeStatus = NodeStatus.IDLE


class EditorNode(BaseModel):
    """A node instance on the canvas."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: str = Field(default="", description="Rendering component name (e.g. 'agent_core')")
    position: Position = Field(default_factory=Position)
    width: float | None = None
    height: float | None = None
    data: NodeData


class EditorEdge(BaseModel):
    """A connection between two node ports on the canvas."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    source: str
    target: str
    source_handle: str = Field(default=DEFAULT_SOURCE_HANDLE, alias="sourceHandle")
    target_handle: str = Field(default=DEFAULT_TARGET_HANDLE, alias="targetHandle")
    label: str | None = None


# =============================================================================
# CANONICAL MODELS
# =============================================================================


class UIBox(BaseModel):
    """Persisted canvas geometry of a node."""

    x: float = 0
    y: float = 0
    w: float | None = None
    h: float | None = None


class BaseNode(BaseModel):
    """A node in the canonical graph."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str = Field(..., description="Canonical dotted type (e.g. 'trigger.manual')")
    type_version: int = Field(default=1, alias="typeVersion")
    label: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    ui: UIBox = Field(default_factory=UIBox)


class CanonicalEdge(BaseModel):
    """An edge in the canonical graph."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    label: str | None = None


class GraphDefinition(BaseModel):
    """Canonical, persisted workflow graph.

    ``version`` is the wire-format contract version, independent of the
    per-node ``typeVersion``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = "default"
    version: int = CONTRACT_VERSION
    start: str = ""
    nodes: list[BaseNode] = Field(default_factory=list)
    edges: list[CanonicalEdge] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "CONTRACT_VERSION",
    "DEFAULT_SOURCE_HANDLE",
    "DEFAULT_TARGET_HANDLE",
    "BaseNode",
    "CanonicalEdge",
    "EditorEdge",
    "EditorNode",
    "GraphDefinition",
    "NodeData",
    "Position",
    "Size",
    "UIBox",
]
