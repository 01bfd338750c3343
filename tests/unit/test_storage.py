"""Unit tests for the graph stores."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from flowcanvas.exceptions import GraphStoreError
from flowcanvas.graph.models import GraphDefinition
from flowcanvas.storage.base import GraphStore, StoredFlow
from flowcanvas.storage.http import GraphStoreConfig, HttpGraphStore
from flowcanvas.storage.memory import InMemoryGraphStore


def _response(status_code: int, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = b"{}" if payload is not None else b""
    response.json.return_value = payload
    return response


def _store_with_response(response) -> tuple[HttpGraphStore, MagicMock]:
    store = HttpGraphStore(GraphStoreConfig(base_url="http://flows.local/", token="tok"))
    client = MagicMock()
    client.request = AsyncMock(return_value=response)
    store._http_client = client
    return store, client


class TestStoredFlow:
    def test_accepts_flow_id(self):
        flow = StoredFlow.model_validate({"flow_id": "f1", "name": "Demo"})
        assert flow.id == "f1"
        assert flow.graph is None

    def test_parses_graph(self, graph_dict):
        flow = StoredFlow.model_validate({"id": "f1", "name": "Demo", "graph": graph_dict})
        assert flow.graph.start == "t1"


class TestInMemoryGraphStore:
    def test_satisfies_protocol(self, memory_store):
        assert isinstance(memory_store, GraphStore)

    @pytest.mark.asyncio
    async def test_create_and_get(self, memory_store, graph_dict):
        graph = GraphDefinition.model_validate(graph_dict)
        created = await memory_store.create("Demo", graph, "desc")

        assert created.id.startswith("flow_")
        fetched = await memory_store.get(created.id)
        assert fetched.name == "Demo"
        assert fetched.description == "desc"
        assert fetched.graph == graph

    @pytest.mark.asyncio
    async def test_get_missing(self, memory_store):
        assert await memory_store.get("nope") is None

    @pytest.mark.asyncio
    async def test_stored_graph_is_isolated(self, memory_store, graph_dict):
        graph = GraphDefinition.model_validate(graph_dict)
        created = await memory_store.create("Demo", graph)
        graph.nodes[0].config["message"] = "changed"
        created.graph.nodes[0].config["message"] = "changed too"

        fetched = await memory_store.get(created.id)
        assert fetched.graph.nodes[0].config["message"] == "hola"

    @pytest.mark.asyncio
    async def test_update(self, memory_store, graph_dict):
        graph = GraphDefinition.model_validate(graph_dict)
        created = await memory_store.create("Demo", graph)

        updated = await memory_store.update(created.id, "Renamed", GraphDefinition(id="g2"))

        assert updated.name == "Renamed"
        assert updated.graph.id == "g2"
        assert updated.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_update_missing(self, memory_store):
        with pytest.raises(GraphStoreError) as exc_info:
            await memory_store.update("nope", "x", GraphDefinition())
        assert exc_info.value.status_code == 404


class TestHttpGraphStoreInit:
    def test_init_with_config(self):
        config = GraphStoreConfig(base_url="http://flows.local")
        store = HttpGraphStore(config)
        assert store.config is config
        assert store._http_client is None

    def test_init_without_config_uses_settings(self, mock_settings):
        store = HttpGraphStore()
        assert store.config.base_url == "http://flows.test"
        assert store.config.timeout == mock_settings.store_timeout_seconds

    def test_client_created_lazily_and_reused(self):
        store = HttpGraphStore(GraphStoreConfig(base_url="http://flows.local"))
        with patch("flowcanvas.storage.http.httpx.AsyncClient") as client_cls:
            first = store._get_http_client()
            second = store._get_http_client()
        assert first is second
        client_cls.assert_called_once_with(timeout=30)

    @pytest.mark.asyncio
    async def test_close(self):
        store = HttpGraphStore(GraphStoreConfig(base_url="http://flows.local"))
        client = MagicMock()
        client.aclose = AsyncMock()
        store._http_client = client

        await store.close()

        client.aclose.assert_awaited_once()
        assert store._http_client is None


class TestHttpGraphStoreRequests:
    @pytest.mark.asyncio
    async def test_get(self, graph_dict):
        store, client = _store_with_response(
            _response(200, {"id": "f1", "name": "Demo", "graph": graph_dict})
        )

        flow = await store.get("f1")

        assert flow.id == "f1"
        assert flow.graph.nodes[0].id == "t1"
        client.request.assert_awaited_once_with(
            "GET",
            "http://flows.local/api/v1/flows/f1",
            headers={"Authorization": "Bearer tok"},
            json=None,
        )

    @pytest.mark.asyncio
    async def test_get_not_found(self):
        store, _client = _store_with_response(_response(404))
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_create_posts_wire_graph(self, graph_dict):
        store, client = _store_with_response(_response(201, {"id": "f9", "name": "Demo"}))
        graph = GraphDefinition.model_validate(graph_dict)

        flow = await store.create("Demo", graph, "desc")

        assert flow.id == "f9"
        method, url = client.request.await_args.args
        body = client.request.await_args.kwargs["json"]
        assert (method, url) == ("POST", "http://flows.local/api/v1/flows")
        assert body["name"] == "Demo"
        assert body["description"] == "desc"
        assert body["graph"]["nodes"][0]["typeVersion"] == 1

    @pytest.mark.asyncio
    async def test_create_with_empty_body_fails(self, graph_dict):
        store, _client = _store_with_response(_response(201))
        with pytest.raises(GraphStoreError, match="empty response"):
            await store.create("Demo", GraphDefinition.model_validate(graph_dict))

    @pytest.mark.asyncio
    async def test_update_puts(self, graph_dict):
        store, client = _store_with_response(_response(200, {"id": "f1", "name": "New"}))
        flow = await store.update("f1", "New", GraphDefinition.model_validate(graph_dict))
        assert flow.name == "New"
        assert client.request.await_args.args == ("PUT", "http://flows.local/api/v1/flows/f1")

    @pytest.mark.asyncio
    async def test_update_missing(self):
        store, _client = _store_with_response(_response(404))
        with pytest.raises(GraphStoreError) as exc_info:
            await store.update("f1", "New", GraphDefinition())
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_server_error(self):
        store, _client = _store_with_response(_response(500))
        with pytest.raises(GraphStoreError) as exc_info:
            await store.get("f1")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [httpx.ConnectError("refused"), httpx.ReadTimeout("slow")],
    )
    async def test_transport_errors(self, error):
        store, client = _store_with_response(None)
        client.request.side_effect = error
        with pytest.raises(GraphStoreError) as exc_info:
            await store.get("f1")
        assert exc_info.value.status_code is None
        assert exc_info.value.__cause__ is error

    def test_no_auth_header_without_token(self):
        store = HttpGraphStore(GraphStoreConfig(base_url="http://flows.local"))
        assert store._headers() == {}
