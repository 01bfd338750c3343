"""Port (connector) definitions for node types."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from flowcanvas.catalog.types import ANY_DATA_TYPE, EXCLUSIVE_PORT_TYPES, PortType


class PortDef(BaseModel):
    """One connector of a node type.

    Attributes:
        id: Handle id the editor uses for edges ("in", "out", "error", ...).
        type: Connectivity class; error/control ports are exclusive.
        label: Display label.
        multiple: Whether more than one connection may attach to this port.
        required: Whether the node needs this port connected to run.
        data_type: Payload tag; ``"any"`` accepts everything.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: PortType = PortType.MAIN
    label: str = ""
    multiple: bool = False
    required: bool = False
    data_type: str = Field(default=ANY_DATA_TYPE, alias="dataType")

    def can_connect_to(self, other: PortDef) -> bool:
        """Check whether a connection from this port to ``other`` is allowed."""
        if self.type in EXCLUSIVE_PORT_TYPES or other.type in EXCLUSIVE_PORT_TYPES:
            if self.type != other.type:
                return False
        if self.data_type != ANY_DATA_TYPE and other.data_type != ANY_DATA_TYPE:
            return self.data_type == other.data_type
        return True
