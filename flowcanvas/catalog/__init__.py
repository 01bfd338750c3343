"""Versioned node-type catalog.

Exports:
    - NodeDefinition, PortDef, PropertyDef: schema of a node type
    - NodeRegistry: type_id -> definition lookup
    - build_default_registry: registry loaded from the built-in catalog
"""

from flowcanvas.catalog.builtin import build_default_registry, load_catalog, parse_catalog
from flowcanvas.catalog.definition import (
    ConfigValidation,
    CredentialDef,
    NodeDefinition,
    RuntimePolicy,
)
from flowcanvas.catalog.ports import PortDef
from flowcanvas.catalog.properties import PropertyDef, UIHints
from flowcanvas.catalog.registry import NodeRegistry
from flowcanvas.catalog.rules import RuleRegistry, default_rules
from flowcanvas.catalog.types import (
    NodeCategory,
    NodeStatus,
    PortType,
    PropertyType,
    PropertyWidget,
)

__all__ = [
    "ConfigValidation",
    "CredentialDef",
    "NodeCategory",
    "NodeDefinition",
    "NodeRegistry",
    "NodeStatus",
    "PortDef",
    "PortType",
    "PropertyDef",
    "PropertyType",
    "PropertyWidget",
    "RuleRegistry",
    "RuntimePolicy",
    "UIHints",
    "build_default_registry",
    "default_rules",
    "load_catalog",
    "parse_catalog",
]
