"""Built-in node catalog loader.

The catalog lives in ``builtin.yaml`` next to this module. Each entry is
validated into a ``NodeDefinition``; a malformed entry fails loudly at
startup rather than producing a half-populated palette.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from flowcanvas.catalog.definition import NodeDefinition
from flowcanvas.catalog.registry import NodeRegistry
from flowcanvas.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CATALOG_DIR = Path(__file__).parent
BUILTIN_CATALOG = CATALOG_DIR / "builtin.yaml"


def parse_catalog(content: str, *, source: str = "<string>") -> list[NodeDefinition]:
    """Parse catalog YAML into node definitions.

    Args:
        content: YAML text holding a list of definition mappings.
        source: Name used in error messages.

    Returns:
        Definitions in file order.

    Raises:
        ConfigurationError: On YAML syntax errors, a non-list document,
            or an entry that does not validate.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid catalog YAML in {source}: {exc}") from exc

    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigurationError(
            f"Catalog {source} must be a YAML list, got {type(data).__name__}"
        )

    definitions: list[NodeDefinition] = []
    for index, entry in enumerate(data):
        try:
            definitions.append(NodeDefinition.model_validate(entry))
        except ValidationError as exc:
            type_id = entry.get("type_id", f"#{index}") if isinstance(entry, dict) else f"#{index}"
            raise ConfigurationError(f"Invalid node definition {type_id} in {source}: {exc}") from exc
    return definitions


def load_catalog(path: Path | str = BUILTIN_CATALOG) -> list[NodeDefinition]:
    """Load node definitions from a catalog file.

    Raises:
        ConfigurationError: If the file is missing or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Catalog file not found: {path}")
    return parse_catalog(path.read_text(encoding="utf-8"), source=path.name)


def build_default_registry(extra: list[NodeDefinition] | None = None) -> NodeRegistry:
    """Build the startup registry from the built-in catalog and freeze it.

    Args:
        extra: Additional definitions registered after the built-ins
            (same type id replaces the built-in one).

    Returns:
        A frozen NodeRegistry.
    """
    registry = NodeRegistry(load_catalog())
    for definition in extra or []:
        registry.register(definition)
    registry.freeze()
    logger.debug("Loaded %d node definitions", len(registry))
    return registry
