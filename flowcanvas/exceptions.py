"""flowcanvas exception hierarchy.

Base exceptions for the catalog, graph, layout and storage layers with
correlation ID support.

Usage:
    from flowcanvas.exceptions import GraphImportError, LayoutError

    try:
        session.import_or_raise(text)
    except GraphImportError as e:
        logger.error("Import failed [%s]: %s", e.correlation_id, e.errors)
"""

import uuid


class FlowCanvasError(Exception):
    """Base exception for all flowcanvas errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class RegistryFrozenError(FlowCanvasError):
    """Raised when registering into a registry that was frozen after boot."""

    def __init__(self, type_id: str, **kwargs):
        self.type_id = type_id
        super().__init__(
            f"Registry is frozen; cannot register '{type_id}'",
            **kwargs,
        )


class NodeTypeNotFoundError(FlowCanvasError):
    """Raised when a node type id is not in the registry."""

    def __init__(self, type_id: str, **kwargs):
        self.type_id = type_id
        super().__init__(f"Tipo de nodo no encontrado: {type_id}", **kwargs)


class MigrationError(FlowCanvasError):
    """Errors from config migration (unresolvable migration steps)."""

    def __init__(self, message: str, *, type_id: str | None = None, **kwargs):
        self.type_id = type_id
        super().__init__(message, **kwargs)


class GraphImportError(FlowCanvasError):
    """A graph import was rejected. ``errors`` holds every problem found."""

    def __init__(self, errors: list[str], **kwargs):
        self.errors = errors
        super().__init__(f"Graph import failed: {'; '.join(errors)}", **kwargs)


class LayoutError(FlowCanvasError):
    """Errors raised inside the layout pipeline.

    Never escapes ``apply_layout``; the engine logs it and hands back
    the original node list.
    """

    pass


class GraphStoreError(FlowCanvasError):
    """Errors from the graph persistence collaborator."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs):
        self.status_code = status_code
        super().__init__(message, **kwargs)


class ConfigurationError(FlowCanvasError):
    """Errors from application configuration."""

    pass
