"""HTTP graph store backed by the flows API.

Endpoints (under ``/api/v1``):
    POST /flows          create
    GET  /flows/{id}     fetch (404 -> None)
    PUT  /flows/{id}     update
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field

from flowcanvas.exceptions import GraphStoreError
from flowcanvas.graph.models import GraphDefinition
from flowcanvas.settings import get_settings
from flowcanvas.storage.base import FlowPayload, StoredFlow

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class GraphStoreConfig(BaseModel):
    """Configuration for the HTTP graph store."""

    base_url: str = Field(..., description="Flows API base URL (without /api/v1)")
    token: str | None = Field(default=None, description="Bearer token, if the API needs one")
    timeout: int = Field(default=30, description="Request timeout in seconds")


class HttpGraphStore:
    """``GraphStore`` talking to the flows REST API."""

    def __init__(self, config: GraphStoreConfig | None = None):
        """Initialize the store.

        Args:
            config: Optional configuration (uses settings if not provided)
        """
        if config is None:
            settings = get_settings()
            config = GraphStoreConfig(
                base_url=settings.store_url,
                timeout=settings.store_timeout_seconds,
            )
        self.config = config
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared client (created lazily on first use)."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release connections."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> HttpGraphStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        if self.config.token:
            return {"Authorization": f"Bearer {self.config.token}"}
        return {}

    async def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        """Make a request to the flows API.

        Returns:
            Response JSON, or None on 404.

        Raises:
            GraphStoreError: On connection failures, timeouts and any
                other non-success status.
        """
        url = f"{self.config.base_url.rstrip('/')}{API_PREFIX}{path}"
        client = self._get_http_client()
        try:
            response = await client.request(method, url, headers=self._headers(), json=json)
        except httpx.ConnectError as exc:
            raise GraphStoreError(f"{method} {path}: connection failed") from exc
        except httpx.TimeoutException as exc:
            raise GraphStoreError(f"{method} {path}: timeout") from exc

        if response.status_code in (200, 201):
            return response.json() if response.content else {}
        if response.status_code == 404:
            return None
        raise GraphStoreError(
            f"{method} {path}: HTTP {response.status_code}",
            status_code=response.status_code,
        )

    async def create(self, name: str, graph: GraphDefinition, description: str = "") -> StoredFlow:
        payload = FlowPayload(name=name, description=description, graph=graph)
        data = await self._request("POST", "/flows", json=_payload_json(payload))
        if not data:
            raise GraphStoreError("POST /flows: empty response")
        return StoredFlow.model_validate(data)

    async def get(self, flow_id: str) -> StoredFlow | None:
        data = await self._request("GET", f"/flows/{flow_id}")
        if data is None:
            logger.debug("Flow %s not found", flow_id)
            return None
        return StoredFlow.model_validate(data)

    async def update(
        self,
        flow_id: str,
        name: str,
        graph: GraphDefinition,
        description: str = "",
    ) -> StoredFlow:
        payload = FlowPayload(name=name, description=description, graph=graph)
        data = await self._request("PUT", f"/flows/{flow_id}", json=_payload_json(payload))
        if data is None:
            raise GraphStoreError(f"Flow '{flow_id}' not found", status_code=404)
        return StoredFlow.model_validate(data)


def _payload_json(payload: FlowPayload) -> dict[str, Any]:
    return {
        "name": payload.name,
        "description": payload.description,
        "graph": payload.graph.to_wire(),
    }
