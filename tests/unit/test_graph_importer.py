"""Unit tests for importing and exporting canonical graph JSON."""

import json

from flowcanvas.graph.importer import export_graph, import_graph, load_graph
from flowcanvas.graph.models import GraphDefinition
from tests.helpers.graphs import AGENT_CONFIG, make_chain


class TestImportGraph:
    def test_valid_graph(self, graph_dict, registry):
        result = import_graph(json.dumps(graph_dict), registry)

        assert result.success, result.errors
        assert result.graph_id == "flow_demo"
        assert [n.id for n in result.nodes] == ["t1", "a1", "r1"]
        assert [e.id for e in result.edges] == ["e1", "e2"]

    def test_invalid_json(self):
        result = import_graph("{not json")
        assert not result.success
        assert result.errors[0].startswith("JSON inválido:")
        assert result.nodes == []

    def test_non_object_json(self):
        result = import_graph("[1, 2]")
        assert result.errors == ["El JSON no es un objeto válido"]

    def test_rejects_every_bad_edge_at_once(self):
        graph = {
            "id": "g",
            "version": 1,
            "start": "A",
            "nodes": [
                {"id": "A", "type": "agent.core", "config": AGENT_CONFIG, "ui": {"x": 0, "y": 0}},
                {"id": "B", "type": "agent.core", "config": AGENT_CONFIG, "ui": {"x": 0, "y": 0}},
            ],
            "edges": [
                {"id": "e1", "source": "A", "target": "X"},
                {"id": "e2", "source": "B", "target": "Y"},
            ],
        }
        result = import_graph(json.dumps(graph))

        assert not result.success
        offending = " ".join(result.errors)
        assert "e1" in offending
        assert "e2" in offending
        assert result.nodes == []
        assert result.edges == []

    def test_non_list_collections_are_coerced(self, graph_dict):
        graph_dict["edges"] = "oops"
        result = import_graph(json.dumps(graph_dict))
        assert result.success
        assert result.edges == []

    def test_missing_nodes_fail_envelope(self):
        result = import_graph(json.dumps({"id": "g", "version": 1, "start": "x", "nodes": None}))
        assert not result.success
        assert any(error.startswith("nodes") for error in result.errors)

    def test_unknown_types_import_with_warnings(self, graph_dict, registry):
        graph_dict["nodes"][2]["type"] = "custom.thing"
        result = import_graph(json.dumps(graph_dict), registry)
        assert result.success
        assert len(result.warnings) == 2
        assert result.nodes[2].data.type_id == "ap.custom.thing"


class TestLoadGraph:
    def test_valid_graph(self, graph_dict, registry):
        result = load_graph(GraphDefinition.model_validate(graph_dict), registry)
        assert result.success
        assert result.warnings == []
        assert result.graph_id == "flow_demo"
        assert [n.id for n in result.nodes] == ["t1", "a1", "r1"]

    def test_config_problems_become_warnings(self, graph_dict, registry):
        graph_dict["nodes"].append(
            {"id": "h1", "type": "tool.http", "typeVersion": 1, "config": {"url": ""}, "ui": {"x": 0, "y": 0}}
        )
        result = load_graph(GraphDefinition.model_validate(graph_dict), registry)

        assert result.success
        assert result.errors == []
        assert any(warning.startswith("Nodo h1") for warning in result.warnings)
        assert result.nodes[3].data.config["url"] == ""

    def test_empty_graph_is_empty_canvas(self):
        result = load_graph(GraphDefinition(id="flow_empty"))
        assert result.success
        assert result.warnings == []
        assert (result.nodes, result.edges) == ([], [])
        assert result.graph_id == "flow_empty"

    def test_dangling_edges_rejected(self, graph_dict):
        graph_dict["edges"].append({"id": "bad", "source": "t1", "target": "ghost"})
        result = load_graph(GraphDefinition.model_validate(graph_dict))
        assert not result.success
        assert result.errors == ["Edges con referencias inválidas: bad"]
        assert result.nodes == []


class TestExportGraph:
    def test_export_then_import(self):
        nodes, edges = make_chain("a", "b", "c")
        text = export_graph(nodes, edges, "flow_x")

        data = json.loads(text)
        assert data["id"] == "flow_x"
        assert data["start"] == "a"
        assert data["nodes"][0]["type"] == "agent.core"

        result = import_graph(text)
        assert result.success, result.errors
        assert [n.id for n in result.nodes] == ["a", "b", "c"]

    def test_non_ascii_kept(self):
        nodes, edges = make_chain("a")
        nodes[0].data.config["instructions"] = "Decisión"
        assert "Decisión" in export_graph(nodes, edges)

    def test_compact_output(self):
        nodes, edges = make_chain("a")
        assert "\n" not in export_graph(nodes, edges, indent=None)
