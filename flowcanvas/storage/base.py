"""Graph persistence interface.

The persistence API stores opaque ``GraphDefinition`` blobs by flow id.
Nothing here re-validates graphs; callers validate before saving.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flowcanvas.graph.models import GraphDefinition


class StoredFlow(BaseModel):
    """A persisted flow: metadata plus its canonical graph."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    description: str = ""
    graph: GraphDefinition | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_flow_id(cls, data: Any) -> Any:
        # Some API versions return ``flow_id`` instead of ``id``
        if isinstance(data, dict) and "id" not in data and "flow_id" in data:
            data = {**data, "id": data["flow_id"]}
        return data


class FlowPayload(BaseModel):
    """Body sent to create or update a flow."""

    name: str = Field(..., min_length=1)
    description: str = ""
    graph: GraphDefinition


@runtime_checkable
class GraphStore(Protocol):
    """Create/get/update of flows by id."""

    async def create(
        self,
        name: str,
        graph: GraphDefinition,
        description: str = "",
    ) -> StoredFlow: ...

    async def get(self, flow_id: str) -> StoredFlow | None: ...

    async def update(
        self,
        flow_id: str,
        name: str,
        graph: GraphDefinition,
        description: str = "",
    ) -> StoredFlow: ...
