"""In-process graph store, for tests and offline use."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from ulid import ULID

from flowcanvas.exceptions import GraphStoreError
from flowcanvas.graph.models import GraphDefinition
from flowcanvas.storage.base import StoredFlow

logger = logging.getLogger(__name__)


class InMemoryGraphStore:
    """Dict-backed ``GraphStore``. Graphs are copied on the way in and out."""

    def __init__(self) -> None:
        self._flows: dict[str, StoredFlow] = {}

    async def create(self, name: str, graph: GraphDefinition, description: str = "") -> StoredFlow:
        now = _now()
        flow = StoredFlow(
            id=f"flow_{ULID()}",
            name=name,
            description=description,
            graph=graph.model_copy(deep=True),
            created_at=now,
            updated_at=now,
        )
        self._flows[flow.id] = flow
        logger.debug("Created flow %s (%s)", flow.id, name)
        return flow.model_copy(deep=True)

    async def get(self, flow_id: str) -> StoredFlow | None:
        flow = self._flows.get(flow_id)
        return flow.model_copy(deep=True) if flow is not None else None

    async def update(
        self,
        flow_id: str,
        name: str,
        graph: GraphDefinition,
        description: str = "",
    ) -> StoredFlow:
        existing = self._flows.get(flow_id)
        if existing is None:
            raise GraphStoreError(f"Flow '{flow_id}' not found", status_code=404)
        flow = existing.model_copy(
            update={
                "name": name,
                "description": description,
                "graph": graph.model_copy(deep=True),
                "updated_at": _now(),
            }
        )
        self._flows[flow_id] = flow
        return flow.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._flows)


def _now() -> str:
    return datetime.now(UTC).isoformat()
