"""Node-type registry.

In-memory catalog of ``NodeDefinition``s keyed by ``type_id``. A registry
is built once at startup (see ``flowcanvas.catalog.builtin``), frozen, and
then handed to the converter, validator and editor session that need it.
Tests construct fresh registries instead of sharing a process singleton.
"""

from __future__ import annotations

import logging

from flowcanvas.catalog.definition import NodeDefinition
from flowcanvas.catalog.types import NodeCategory
from flowcanvas.exceptions import RegistryFrozenError

logger = logging.getLogger(__name__)


class NodeRegistry:
    """Catalog of node definitions available to the editor."""

    def __init__(self, definitions: list[NodeDefinition] | None = None) -> None:
        self._definitions: dict[str, NodeDefinition] = {}
        self._frozen = False
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: NodeDefinition) -> None:
        """Register a definition under its ``type_id``.

        Re-registering an existing ``type_id`` replaces the previous
        definition (last write wins).

        Args:
            definition: A constructed NodeDefinition.

        Raises:
            TypeError: If ``definition`` is not a NodeDefinition.
            RegistryFrozenError: If the registry has been frozen.
        """
        if not isinstance(definition, NodeDefinition):
            raise TypeError(f"Expected NodeDefinition, got {type(definition).__name__}")
        if self._frozen:
            raise RegistryFrozenError(definition.type_id)

        previous = self._definitions.get(definition.type_id)
        if previous is not None:
            logger.warning(
                "Replacing node definition '%s' (v%d -> v%d)",
                definition.type_id,
                previous.version,
                definition.version,
            )
        self._definitions[definition.type_id] = definition

    def freeze(self) -> None:
        """Make the registry read-only. Called once startup registration is done."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, type_id: str) -> NodeDefinition | None:
        """Look up a definition by type id."""
        return self._definitions.get(type_id)

    def get_all(self) -> list[NodeDefinition]:
        """Return all registered definitions."""
        return list(self._definitions.values())

    def list_type_ids(self) -> list[str]:
        return list(self._definitions.keys())

    def get_by_category(self, category: NodeCategory | str) -> list[NodeDefinition]:
        """Return definitions in a palette category."""
        return [d for d in self._definitions.values() if d.category == category]

    def search_by_tags(self, tags: list[str]) -> list[NodeDefinition]:
        """Return definitions carrying at least one of ``tags``."""
        wanted = set(tags)
        return [d for d in self._definitions.values() if wanted.intersection(d.tags)]

    def search(self, query: str) -> list[NodeDefinition]:
        """Case-insensitive substring search over display name, description and tags."""
        needle = query.lower()
        return [
            d
            for d in self._definitions.values()
            if needle in d.display_name.lower()
            or needle in d.description.lower()
            or any(needle in tag.lower() for tag in d.tags)
        ]

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
