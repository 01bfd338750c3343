"""Enums shared by the node-type catalog and the editor graph model."""

from enum import StrEnum


class PortType(StrEnum):
    """Connectivity class of a port."""

    MAIN = "main"  # primary data flow
    TOOL = "tool"
    CONTROL = "control"
    ERROR = "error"


class NodeCategory(StrEnum):
    """Palette category of a node type."""

    TRIGGER = "Trigger"
    AGENT = "Agent"
    TOOL = "Tool"
    MEMORY = "Memory"
    ROUTER = "Router"
    ACTION = "Action"
    TRANSFORM = "Transform"
    OUTPUT = "Output"


class PropertyType(StrEnum):
    """Value type of a configuration property."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    JSON = "json"
    CODE = "code"


class PropertyWidget(StrEnum):
    """Input control the property editor renders for a property."""

    TEXTAREA = "textarea"
    SELECT = "select"
    CODE = "code"
    PASSWORD = "password"
    NUMBER = "number"
    CHECKBOX = "checkbox"


class NodeStatus(StrEnum):
    """Execution-derived status of a node on the canvas. Never persisted."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


# Port types that may only connect to a port of the same type.
EXCLUSIVE_PORT_TYPES = frozenset({PortType.ERROR, PortType.CONTROL})

ANY_DATA_TYPE = "any"

DEFAULT_WIDGETS: dict[PropertyType, PropertyWidget] = {
    PropertyType.STRING: PropertyWidget.TEXTAREA,
    PropertyType.NUMBER: PropertyWidget.NUMBER,
    PropertyType.BOOLEAN: PropertyWidget.CHECKBOX,
    PropertyType.ENUM: PropertyWidget.SELECT,
    PropertyType.JSON: PropertyWidget.CODE,
    PropertyType.CODE: PropertyWidget.CODE,
}
