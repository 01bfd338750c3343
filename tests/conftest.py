"""Shared test fixtures for flowcanvas.

Every test gets its own registry; nothing shares a process-wide catalog.
"""

from __future__ import annotations

from typing import Any

import pytest

from flowcanvas.catalog.builtin import build_default_registry
from flowcanvas.catalog.definition import NodeDefinition
from flowcanvas.catalog.registry import NodeRegistry
from flowcanvas.settings import Settings
from flowcanvas.storage.memory import InMemoryGraphStore
from tests.helpers.graphs import canonical_graph_dict

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings with test-friendly values."""
    return Settings(
        environment="testing",
        log_level="DEBUG",
        layout_timeout_seconds=5,
        store_url="http://flows.test",
    )


@pytest.fixture
def mock_settings(test_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Patch get_settings() everywhere it was imported."""
    from flowcanvas import logging_config, settings
    from flowcanvas.layout import engine, options
    from flowcanvas.storage import http

    for module in (settings, logging_config, engine, options, http):
        monkeypatch.setattr(module, "get_settings", lambda: test_settings)
    return test_settings


# =============================================================================
# REGISTRIES
# =============================================================================


@pytest.fixture
def registry() -> NodeRegistry:
    """Fresh, frozen registry loaded from the built-in catalog."""
    return build_default_registry()


@pytest.fixture
def echo_definition() -> NodeDefinition:
    return NodeDefinition(
        type_id="test.echo",
        version=1,
        display_name="Echo",
        inputs=[{"id": "in"}],
        outputs=[{"id": "out"}],
        properties=[{"name": "x", "type": "number", "required": True}],
    )


@pytest.fixture
def echo_registry(echo_definition: NodeDefinition) -> NodeRegistry:
    """Unfrozen registry holding only ``test.echo``."""
    return NodeRegistry([echo_definition])


# =============================================================================
# GRAPHS & STORES
# =============================================================================


@pytest.fixture
def graph_dict() -> dict[str, Any]:
    """Valid canonical graph: trigger -> agent -> response."""
    return canonical_graph_dict()


@pytest.fixture
def memory_store() -> InMemoryGraphStore:
    return InMemoryGraphStore()
