"""In-memory registry of entity and relationship type definitions per peer."""

from __future__ import annotations

import threading

from coggo.model import EntityTypeDefinition, RelationshipTypeDefinition


class SchemaError(LookupError):
    """Raised when a type definition is not registered for a peer."""


class Resolver:
    """Cache of type definitions keyed by peer DID and type name."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entity_types: dict[str, dict[str, EntityTypeDefinition]] = {}
        self._relation_types: dict[str, dict[str, RelationshipTypeDefinition]] = {}

    def register_entity_type(self, peer_did: str, definition: EntityTypeDefinition) -> None:
        """Add or replace an entity-type definition for a peer."""
        with self._lock:
            self._entity_types.setdefault(peer_did, {})[definition.name] = definition

    def register_relation_type(
        self, peer_did: str, definition: RelationshipTypeDefinition
    ) -> None:
        """Add or replace a relationship-type definition for a peer."""
        with self._lock:
            self._relation_types.setdefault(peer_did, {})[definition.name] = definition

    def entity_type(self, peer_did: str, name: str) -> EntityTypeDefinition:
        """Return the named entity type; raise SchemaError if not defined."""
        with self._lock:
            definition = self._entity_types.get(peer_did, {}).get(name)
        if definition is None:
            raise SchemaError(f"schema: entity type {name!r} not defined for peer {peer_did}")
        return definition

    def relation_type(self, peer_did: str, name: str) -> RelationshipTypeDefinition:
        """Return the named relationship type; raise SchemaError if not defined."""
        with self._lock:
            definition = self._relation_types.get(peer_did, {}).get(name)
        if definition is None:
            raise SchemaError(
                f"schema: relationship type {name!r} not defined for peer {peer_did}"
            )
        return definition

    def entity_types(self, peer_did: str) -> list[EntityTypeDefinition]:
        """Return all entity types of a peer, ordered by name."""
        with self._lock:
            definitions = list(self._entity_types.get(peer_did, {}).values())
        return sorted(definitions, key=lambda d: d.name)

    def relation_types(self, peer_did: str) -> list[RelationshipTypeDefinition]:
        """Return all relationship types of a peer, ordered by name."""
        with self._lock:
            definitions = list(self._relation_types.get(peer_did, {}).values())
        return sorted(definitions, key=lambda d: d.name)