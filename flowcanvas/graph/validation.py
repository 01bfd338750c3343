"""Structural validation of canonical graphs.

``validate_graph`` runs the checks an import must pass before anything is
committed to an editor session: the envelope contract, per-type config
contracts, reference integrity, id uniqueness, self-loops and condition
routing targets. Given a node registry it also checks node versions and
port compatibility of every edge.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from flowcanvas.catalog.registry import NodeRegistry
from flowcanvas.graph.contracts import (
    ENVELOPE_SCHEMA,
    ContractRegistry,
    config_schema_name,
    contracts,
)
from flowcanvas.graph.models import DEFAULT_SOURCE_HANDLE, DEFAULT_TARGET_HANDLE, GraphDefinition
from flowcanvas.graph.type_map import to_type_id

logger = logging.getLogger(__name__)

CONDITION_TYPE = "condition.expr"


class GraphValidation(BaseModel):
    """Outcome of validating a canonical graph.

    Attributes:
        valid: Whether no errors were found.
        errors: Every problem found, in check order.
        warnings: Non-fatal findings (e.g. node types without a contract).
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def validate_graph(
    graph: GraphDefinition | dict[str, Any],
    registry: NodeRegistry | None = None,
    *,
    contract_registry: ContractRegistry | None = None,
) -> GraphValidation:
    """Validate a canonical graph.

    A broken envelope is reported on its own, since the remaining checks
    need well-formed nodes and edges to run.

    Args:
        graph: GraphDefinition or its wire dict.
        registry: Optional node registry for version and port checks.
        contract_registry: Contracts to check against (defaults to the
            module-level contracts).

    Returns:
        GraphValidation listing every error found.
    """
    reg = contract_registry or contracts
    data = graph.to_wire() if isinstance(graph, GraphDefinition) else graph

    envelope = reg.validate(ENVELOPE_SCHEMA, data)
    if not envelope.valid:
        return GraphValidation(valid=False, errors=[str(v) for v in envelope.violations])

    errors: list[str] = []
    warnings: list[str] = []
    nodes: list[dict[str, Any]] = data["nodes"]
    edges: list[dict[str, Any]] = data["edges"]

    # Per-type config contracts
    for node in nodes:
        schema_name = config_schema_name(node["type"])
        if schema_name not in reg:
            warnings.append(
                f"Nodo {node['id']}: tipo de nodo desconocido '{node['type']}', "
                "configuración no validada"
            )
            continue
        result = reg.validate(schema_name, node.get("config"))
        errors.extend(f"Nodo {node['id']}: {violation}" for violation in result.violations)

    node_ids = {node["id"] for node in nodes}

    for edge in edges:
        if edge["source"] not in node_ids or edge["target"] not in node_ids:
            errors.append(f"Edge {edge['id']}: referencia a nodo inexistente")

    if data["start"] not in node_ids:
        errors.append(f"Start node '{data['start']}' no existe en el grafo")

    duplicate_nodes = _duplicates(node["id"] for node in nodes)
    if duplicate_nodes:
        errors.append(f"IDs de nodos duplicados: {', '.join(duplicate_nodes)}")

    duplicate_edges = _duplicates(edge["id"] for edge in edges)
    if duplicate_edges:
        errors.append(f"IDs de edges duplicados: {', '.join(duplicate_edges)}")

    self_loops = [edge["id"] for edge in edges if edge["source"] == edge["target"]]
    if self_loops:
        errors.append(f"Self-loops no permitidos en v1: {', '.join(self_loops)}")

    for node in nodes:
        if node["type"] != CONDITION_TYPE or not isinstance(node.get("config"), dict):
            continue
        for rule in node["config"].get("rules") or []:
            target = rule.get("to") if isinstance(rule, dict) else None
            if target and target not in node_ids:
                errors.append(f"Condition node {node['id']}: rule.to '{target}' no existe")

    if registry is not None:
        _check_against_registry(nodes, edges, registry, errors, warnings)

    if errors:
        logger.debug("Graph '%s' failed validation with %d errors", data["id"], len(errors))
    return GraphValidation(valid=not errors, errors=errors, warnings=warnings)


def _check_against_registry(
    nodes: list[dict[str, Any]],
    edges: list[dict[str, Any]],
    registry: NodeRegistry,
    errors: list[str],
    warnings: list[str],
) -> None:
    """Check node versions and edge port compatibility against definitions."""
    definitions = {}
    for node in nodes:
        definition = registry.get(to_type_id(node["type"]))
        if definition is None:
            warnings.append(f"Nodo {node['id']}: tipo '{node['type']}' no registrado")
            continue
        definitions[node["id"]] = definition
        version = node.get("typeVersion", 1)
        if version > definition.version:
            errors.append(
                f"Nodo {node['id']}: typeVersion {version} es mayor que la versión "
                f"registrada {definition.version}"
            )

    for edge in edges:
        source_def = definitions.get(edge["source"])
        target_def = definitions.get(edge["target"])
        if source_def is None or target_def is None:
            continue
        source_handle = edge.get("sourceHandle") or DEFAULT_SOURCE_HANDLE
        target_handle = edge.get("targetHandle") or DEFAULT_TARGET_HANDLE
        source_port = source_def.get_output(source_handle)
        target_port = target_def.get_input(target_handle)
        if source_port is None:
            errors.append(
                f"Edge {edge['id']}: puerto de salida '{source_handle}' no existe en {edge['source']}"
            )
        if target_port is None:
            errors.append(
                f"Edge {edge['id']}: puerto de entrada '{target_handle}' no existe en {edge['target']}"
            )
        if source_port is not None and target_port is not None:
            if not source_port.can_connect_to(target_port):
                errors.append(
                    f"Edge {edge['id']}: puertos incompatibles "
                    f"({source_port.type}/{source_port.data_type} -> "
                    f"{target_port.type}/{target_port.data_type})"
                )


def _duplicates(ids: Any) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for item in ids:
        if item in seen:
            duplicates.append(item)
        seen.add(item)
    return duplicates


__all__ = ["GraphValidation", "validate_graph"]
