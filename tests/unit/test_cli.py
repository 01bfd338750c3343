"""Unit tests for the CLI commands."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from flowcanvas.cli.main import app
from tests.helpers.graphs import canonical_graph_dict


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("flowcanvas.cli.main.configure_logging"):
        yield


@pytest.fixture
def graph_file(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(canonical_graph_dict()), encoding="utf-8")
    return path


class TestCatalogCommand:
    def test_lists_all_types(self, runner):
        result = runner.invoke(app, ["catalog"])
        assert result.exit_code == 0
        assert "ap.trigger.manual" in result.stdout
        assert "ap.response.end" in result.stdout

    def test_filter_by_category(self, runner):
        result = runner.invoke(app, ["catalog", "--category", "Trigger"])
        assert result.exit_code == 0
        assert "ap.trigger.webhook" in result.stdout
        assert "ap.agent.core" not in result.stdout

    def test_search_without_results(self, runner):
        result = runner.invoke(app, ["catalog", "--search", "zzz-nothing"])
        assert result.exit_code == 0
        assert "No node types found" in result.stdout


class TestValidateCommand:
    def test_valid_file(self, runner, graph_file):
        result = runner.invoke(app, ["validate", str(graph_file)])
        assert result.exit_code == 0
        assert "Nodes: 3" in result.stdout

    def test_invalid_file(self, runner, tmp_path):
        data = canonical_graph_dict()
        data["edges"].append({"id": "e9", "source": "t1", "target": "ghost"})
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Edge e9" in result.stdout

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


class TestLayoutCommand:
    def test_writes_output_file(self, runner, graph_file, tmp_path):
        output = tmp_path / "out.json"

        result = runner.invoke(app, ["layout", str(graph_file), "--output", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        xs = [node["ui"]["x"] for node in data["nodes"]]
        assert xs == sorted(xs)
        assert len({node["ui"]["y"] for node in data["nodes"]}) == 1

    def test_prints_to_stdout_with_direction(self, runner, graph_file):
        result = runner.invoke(app, ["layout", str(graph_file), "--direction", "DOWN"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        ys = [node["ui"]["y"] for node in data["nodes"]]
        assert ys == sorted(ys)
        assert len({node["ui"]["x"] for node in data["nodes"]}) == 1

    def test_unknown_preset(self, runner, graph_file):
        result = runner.invoke(app, ["layout", str(graph_file), "--preset", "radial"])
        assert result.exit_code == 2

    def test_invalid_graph(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        result = runner.invoke(app, ["layout", str(path)])
        assert result.exit_code == 1


class TestNewIdCommand:
    def test_node_id(self, runner):
        result = runner.invoke(app, ["new-id", "node"])
        assert result.exit_code == 0
        assert result.stdout.strip().startswith("n_")

    def test_edge_id(self, runner):
        result = runner.invoke(app, ["new-id", "edge"])
        assert result.stdout.strip().startswith("e_")
