"""Graph persistence collaborators.

Exports:
    - GraphStore: protocol the editor session saves and loads through
    - InMemoryGraphStore: dict-backed store
    - HttpGraphStore: client for the flows REST API
"""

from flowcanvas.storage.base import FlowPayload, GraphStore, StoredFlow
from flowcanvas.storage.http import GraphStoreConfig, HttpGraphStore
from flowcanvas.storage.memory import InMemoryGraphStore

__all__ = [
    "FlowPayload",
    "GraphStore",
    "GraphStoreConfig",
    "HttpGraphStore",
    "InMemoryGraphStore",
    "StoredFlow",
]
