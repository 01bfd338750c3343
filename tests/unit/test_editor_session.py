"""Unit tests for the editor session and the generation gate."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from flowcanvas.editor.generation import GenerationGate
from flowcanvas.editor.session import UNSAVED_FLOW_ID, EditorSession
from flowcanvas.exceptions import GraphImportError, GraphStoreError, NodeTypeNotFoundError
from flowcanvas.graph.models import GraphDefinition
from flowcanvas.layout.engine import LayoutRunner
from flowcanvas.storage.base import StoredFlow


class TestGenerationGate:
    def test_tokens_increase(self):
        gate = GenerationGate()
        first = gate.next()
        second = gate.next()
        assert second > first
        assert gate.current == second

    def test_only_latest_token_is_current(self):
        gate = GenerationGate()
        token = gate.next()
        assert gate.is_current(token)
        gate.next()
        assert not gate.is_current(token)

    def test_invalidate(self):
        gate = GenerationGate()
        token = gate.next()
        gate.invalidate()
        assert not gate.is_current(token)


@pytest.fixture
def session(registry, memory_store):
    return EditorSession(registry, memory_store, runner=LayoutRunner(timeout=5))


class TestEditing:
    def test_add_and_connect(self, session):
        trigger = session.add_node("ap.trigger.manual")
        agent = session.add_node("ap.agent.core", {"x": 400, "y": 0})

        result = session.connect(trigger.id, agent.id)

        assert result.ok
        assert result.edge.id.startswith("e_")
        assert [n.id for n in session.nodes] == [trigger.id, agent.id]
        assert session.edges == [result.edge]

    def test_add_unknown_type(self, session):
        with pytest.raises(NodeTypeNotFoundError):
            session.add_node("ap.nope")
        assert session.nodes == []

    def test_connect_rejections(self, session):
        trigger = session.add_node("ap.trigger.manual")
        http = session.add_node("ap.tool.http")
        end = session.add_node("ap.response.end")

        assert session.connect(http.id, "ghost").reason == "Nodo inexistente"
        assert session.connect(http.id, http.id).reason == "Self-loops no permitidos en v1"
        assert "incompatibles" in session.connect(http.id, trigger.id).reason
        assert "incompatibles" in session.connect(http.id, end.id, source_handle="error").reason

        assert session.connect(http.id, end.id).ok
        assert session.connect(http.id, end.id).reason == "La conexión ya existe"
        assert len(session.edges) == 1

    def test_remove_node_drops_its_edges(self, session):
        a = session.add_node("ap.trigger.manual")
        b = session.add_node("ap.agent.core")
        c = session.add_node("ap.response.chat")
        session.connect(a.id, b.id)
        session.connect(b.id, c.id)

        assert session.remove_node(b.id)
        assert [n.id for n in session.nodes] == [a.id, c.id]
        assert session.edges == []
        assert not session.remove_node("ghost")

    def test_remove_edge(self, session):
        a = session.add_node("ap.trigger.manual")
        b = session.add_node("ap.agent.core")
        edge = session.connect(a.id, b.id).edge
        assert session.remove_edge(edge.id)
        assert not session.remove_edge(edge.id)

    def test_move_and_update_config(self, session):
        node = session.add_node("ap.memory.kv")
        moved = session.move_node(node.id, {"x": 40, "y": 60})
        updated = session.update_config(node.id, {"mode": "save"})

        assert (moved.position.x, moved.position.y) == (40, 60)
        assert updated.data.config["mode"] == "save"
        assert updated.data.config["scope"] == "conversation"
        assert session.get_node(node.id).data.config["mode"] == "save"
        assert session.move_node("ghost", {"x": 0, "y": 0}) is None

    def test_collections_are_copies(self, session):
        session.add_node("ap.response.end")
        session.nodes.clear()
        assert len(session.nodes) == 1

    def test_edits_invalidate_pending_results(self, session):
        token = session.gate.next()
        session.add_node("ap.response.end")
        assert not session.gate.is_current(token)


class TestImportExport:
    def test_import_replaces_canvas(self, session, graph_dict):
        session.add_node("ap.response.end")

        result = session.import_json(json.dumps(graph_dict))

        assert result.success
        assert [n.id for n in session.nodes] == ["t1", "a1", "r1"]
        assert session.graph_id == "flow_demo"

    def test_failed_import_leaves_canvas_untouched(self, session, graph_dict):
        existing = session.add_node("ap.response.end")
        graph_dict["edges"].append({"id": "bad", "source": "t1", "target": "ghost"})

        result = session.import_json(json.dumps(graph_dict))

        assert not result.success
        assert [n.id for n in session.nodes] == [existing.id]

    def test_import_or_raise(self, session):
        with pytest.raises(GraphImportError) as exc_info:
            session.import_or_raise("nope")
        assert exc_info.value.errors[0].startswith("JSON inválido")

    def test_export_round_trip(self, session, graph_dict):
        session.import_json(json.dumps(graph_dict))
        exported = json.loads(session.export_json())
        assert [n["id"] for n in exported["nodes"]] == ["t1", "a1", "r1"]
        assert exported["nodes"][1]["config"] == graph_dict["nodes"][1]["config"]
        assert exported["start"] == "t1"

    def test_validate(self, session, graph_dict):
        session.import_json(json.dumps(graph_dict))
        assert session.validate().valid

    def test_clear(self, session, graph_dict):
        session.import_json(json.dumps(graph_dict))
        session.clear()
        assert session.nodes == []
        assert session.graph_id == UNSAVED_FLOW_ID


class TestMigrateAll:
    def test_counts_migrated_nodes(self):
        from flowcanvas.catalog.definition import NodeDefinition
        from flowcanvas.catalog.registry import NodeRegistry

        v2 = NodeRegistry(
            [
                NodeDefinition(
                    type_id="ap.x.thing",
                    version=2,
                    display_name="Thing",
                    migrate={2: {"kind": "set", "key": "added", "value": 1}},
                ),
                NodeDefinition(type_id="ap.x.other", display_name="Other"),
            ]
        )
        session = EditorSession(v2, runner=LayoutRunner(timeout=5))
        session.import_json(
            json.dumps(
                {
                    "id": "g",
                    "version": 1,
                    "start": "a",
                    "nodes": [
                        {"id": "a", "type": "x.thing", "typeVersion": 1, "config": {}, "ui": {"x": 0, "y": 0}},
                        {"id": "b", "type": "x.other", "typeVersion": 1, "config": {}, "ui": {"x": 0, "y": 0}},
                    ],
                    "edges": [],
                }
            )
        )

        assert session.migrate_all() == 1
        assert session.get_node("a").data.version == 2
        assert session.get_node("a").data.config == {"added": 1}
        assert session.migrate_all() == 0


class TestAutoLayout:
    @pytest.mark.asyncio
    async def test_commits_positions(self, session, graph_dict):
        session.import_json(json.dumps(graph_dict))

        assert await session.auto_layout()

        xs = [n.position.x for n in session.nodes]
        assert xs == sorted(xs)
        assert len({n.position.y for n in session.nodes}) == 1

    @pytest.mark.asyncio
    async def test_runner_shares_session_gate(self, session):
        assert session.runner.gate is session.gate


class TestPersistence:
    @pytest.mark.asyncio
    async def test_first_save_creates_then_updates(self, session, memory_store, graph_dict):
        session.import_json(json.dumps(graph_dict))

        created = await session.save_flow("Demo", "primera versión")
        assert session.flow_id == created.id
        assert len(memory_store) == 1

        session.remove_node("r1")
        updated = await session.save_flow()
        assert updated.id == created.id
        assert updated.name == "Demo"
        assert updated.description == "primera versión"
        assert len(memory_store) == 1
        assert [n.id for n in (await memory_store.get(created.id)).graph.nodes] == ["t1", "a1"]

    @pytest.mark.asyncio
    async def test_load_flow(self, session, memory_store, graph_dict):
        stored = await memory_store.create("Demo", GraphDefinition.model_validate(graph_dict))

        result = await session.load_flow(stored.id)

        assert result.success
        assert session.flow_id == stored.id
        assert session.flow_name == "Demo"
        assert [n.id for n in session.nodes] == ["t1", "a1", "r1"]

    @pytest.mark.asyncio
    async def test_load_missing_flow(self, session):
        result = await session.load_flow("flow_missing")
        assert not result.success
        assert session.flow_id == UNSAVED_FLOW_ID

    @pytest.mark.asyncio
    async def test_save_then_load_node_with_default_config(self, registry, memory_store):
        editor = EditorSession(registry, memory_store, runner=LayoutRunner(timeout=5))
        trigger = editor.add_node("ap.trigger.manual")
        http = editor.add_node("ap.tool.http", {"x": 400, "y": 0})
        assert editor.connect(trigger.id, http.id).ok
        stored = await editor.save_flow("Borrador")

        reopened = EditorSession(registry, memory_store, runner=LayoutRunner(timeout=5))
        result = await reopened.load_flow(stored.id)

        assert result.success
        assert result.warnings
        assert [n.id for n in reopened.nodes] == [trigger.id, http.id]
        assert reopened.get_node(http.id).data.config == http.data.config
        assert len(reopened.edges) == 1
        assert reopened.flow_id == stored.id

    @pytest.mark.asyncio
    async def test_save_then_load_empty_canvas(self, registry, memory_store):
        editor = EditorSession(registry, memory_store, runner=LayoutRunner(timeout=5))
        stored = await editor.save_flow("Vacío")

        reopened = EditorSession(registry, memory_store, runner=LayoutRunner(timeout=5))
        reopened.add_node("ap.response.end")
        result = await reopened.load_flow(stored.id)

        assert result.success
        assert result.errors == []
        assert reopened.nodes == []
        assert reopened.edges == []
        assert reopened.flow_name == "Vacío"

    @pytest.mark.asyncio
    async def test_newer_load_supersedes_older(self, registry, graph_dict):
        release = asyncio.Event()
        flows = {
            "flow_old": StoredFlow(id="flow_old", name="Old", graph=GraphDefinition(id="g_old")),
            "flow_new": StoredFlow(id="flow_new", name="New", graph=GraphDefinition.model_validate(graph_dict)),
        }

        async def get(flow_id):
            if flow_id == "flow_old":
                await release.wait()
            return flows[flow_id]

        store = MagicMock()
        store.get = AsyncMock(side_effect=get)
        session = EditorSession(registry, store, runner=LayoutRunner(timeout=5))

        older = asyncio.create_task(session.load_flow("flow_old"))
        await asyncio.sleep(0)
        assert (await session.load_flow("flow_new")).success
        release.set()

        assert await older is None
        assert session.flow_id == "flow_new"
        assert [n.id for n in session.nodes] == ["t1", "a1", "r1"]

    @pytest.mark.asyncio
    async def test_layout_and_edits_during_load_keep_the_load(self, registry, graph_dict):
        release = asyncio.Event()
        stored = StoredFlow(id="flow_1", name="Demo", graph=GraphDefinition.model_validate(graph_dict))

        async def slow_get(flow_id):
            await release.wait()
            return stored

        store = MagicMock()
        store.get = AsyncMock(side_effect=slow_get)
        session = EditorSession(registry, store, runner=LayoutRunner(timeout=5))
        session.add_node("ap.response.end")

        task = asyncio.create_task(session.load_flow("flow_1"))
        await asyncio.sleep(0)
        assert await session.auto_layout()
        session.add_node("ap.response.end")
        release.set()

        result = await task
        assert result is not None and result.success
        assert session.flow_id == "flow_1"
        assert [n.id for n in session.nodes] == ["t1", "a1", "r1"]

    @pytest.mark.asyncio
    async def test_load_invalidates_pending_layout(self, session, memory_store, graph_dict):
        stored = await memory_store.create("Demo", GraphDefinition.model_validate(graph_dict))
        token = session.gate.next()

        await session.load_flow(stored.id)

        assert not session.gate.is_current(token)

    @pytest.mark.asyncio
    async def test_no_store_configured(self, registry):
        session = EditorSession(registry, runner=LayoutRunner(timeout=5))
        with pytest.raises(GraphStoreError):
            await session.save_flow("x")
        with pytest.raises(GraphStoreError):
            await session.load_flow("x")
