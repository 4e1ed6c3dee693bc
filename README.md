# coggo

Building blocks for keeping structured personal knowledge: projects,
decisions, goals, observations and the relations between them.

Knowledge is partitioned by *peer*, a unit of identity backed by an ed25519
`did:key` identifier. Changes are described as events, and entity state can be
rebuilt as it stood at any earlier moment by replaying those events.

## What is in the package

| Module | Purpose |
| --- | --- |
| `coggo.model` | Core data types: `Event`, `Entity`, `Relation`, `FieldDef`, `EntityTypeDefinition`, `RelationshipTypeDefinition`, `Peer`, `PeerSettings`, `Token`, `EntityQuery`, `SemanticHit`, `FederationMessage`; the enums `EventType`, `FieldType`, `FederationMessageType`; and `format_time` / `parse_time` for RFC 3339 timestamps. |
| `coggo.did` | `did:key` identities: `new_did()`, `decode_public_key()`, `new_peer()`, and the base58btc helpers `base58_encode()` / `base58_decode()`. |
| `coggo.seed` | Starter entity and relationship types and loose validation (`validate_entity`, `has_errors`, `ValidationIssue`). |
| `coggo.resolver` | `Resolver`, an in-memory registry of type definitions per peer. |
| `coggo.registry` | `Registry`, the on-disk directory of peers (`peers.json`, written atomically). |
| `coggo.timetravel` | Replaying events into entity state: `fold_events`, `decode_entity_payload`, `matches_filters`. |
| `coggo.projection` | GraphQL-style field selection over responses: `project`, `project_json`. |

## Data model

The records are dataclasses. Most have `to_dict()` and a `from_dict()`
classmethod that use the JSON field names (`peer_did`, `created_at`, `from`,
`to`, ...). Timestamps are aware UTC datetimes; `format_time` writes them as
RFC 3339 in UTC, and `parse_time` reads them back, returning `None` for an
empty string or the zero time and raising `ValueError` for anything it cannot
parse. `Event.payload` and `FederationMessage.payload` hold raw JSON text.

## Identities

```python
from coggo.did import decode_public_key, new_did

did, public_key, private_key = new_did()
assert did.startswith("did:key:z6Mk")
assert decode_public_key(did) == public_key
```

`new_peer(name, description)` wraps a fresh identity in a `Peer` with default
settings. Malformed identifiers and invalid base58 raise `coggo.did.DIDError`.

## Types and validation

Each fresh peer starts with six entity types (`Project`, `Domain`, `Decision`,
`Goal`, `Observation`, `Setting`) and three relationship types (`depends_on`,
`supersedes`, `affects`). The type system is open: new types are ordinary data
registered with a `Resolver`.

```python
from coggo.resolver import Resolver
from coggo.seed import has_errors, seed_entity_types, validate_entity

peer_did = "did:key:z6MkExamplePeer"
resolver = Resolver()
for definition in seed_entity_types(peer_did):
    resolver.register_entity_type(peer_did, definition)

project = resolver.entity_type(peer_did, "Project")
fields = {"title": "Garden plan"}
issues = validate_entity(project, fields)
assert not has_errors(issues)
assert fields["status"] == "active"   # defaults are filled in place
```

Validation is deliberately loose: a missing required field is an error, while
type mismatches and unknown fields are warnings. Looking up a type that was
never registered raises `coggo.resolver.SchemaError`. `entity_types()` and
`relation_types()` list a peer's definitions ordered by name.

## Peer registry

```python
from coggo.did import new_peer
from coggo.registry import Registry

registry = Registry("data")          # creates the directory if needed
peer = new_peer("alpha", "personal notes")
registry.add(peer)
assert registry.resolve("alpha") is peer
assert registry.resolve(peer.did) is peer
```

Every change rewrites `peers.json` (mode 0600) through a temporary file. The
file holds each peer's keys base64-encoded, the private key included. Name or
DID clashes, unknown names and unreadable files raise
`coggo.registry.RegistryError`. `rename`, `update_settings`, `by_name`,
`by_did` and `list` (ordered by name) complete the interface.

## Time travel

`fold_events` replays `EntityCreated`, `EntityUpdated` and `EntityArchived`
events in the order given and applies an `EntityQuery` to the result.

```python
import json
from datetime import datetime, timezone

from coggo.model import EntityQuery, Event, EventType
from coggo.timetravel import fold_events

peer_did = "did:key:z6MkExamplePeer"
events = [
    Event(id="e1", peer_did=peer_did, type=EventType.ENTITY_CREATED,
          payload=json.dumps({"id": "p1", "type": "Project", "data": {"status": "draft"}}),
          timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc)),
    Event(id="e2", peer_did=peer_did, type=EventType.ENTITY_UPDATED,
          payload=json.dumps({"id": "p1", "type": "Project", "data": {"status": "active"}}),
          timestamp=datetime(2024, 2, 1, tzinfo=timezone.utc)),
]
as_of = datetime(2024, 1, 15, tzinfo=timezone.utc)
before = fold_events([e for e in events if e.timestamp <= as_of], peer_did,
                     EntityQuery(type="Project"))
assert before[0].data == {"status": "draft"}
```

Archived entities are left out unless `include_archived` is set; filters
compare JSON values for equality; results are ordered newest-created first and
cut to the query limit (50 when unset). Events with undecodable payloads are
logged and skipped.

## Trimming responses

```python
from coggo.projection import project

entities = [{
    "id": "e1",
    "type": "Decision",
    "data": {"title": "T", "rationale": "a very long rationale"},
}]
assert project(entities, ["id", "rationale:10"]) == [
    {"id": "e1", "data": {"rationale": "a very lon…"}}
]
```

Names select top-level keys or keys inside `data`; a `:N` suffix shortens a
string to N characters and adds an ellipsis. Wrapper objects such as search
hits or type listings are walked so the selection applies to what they hold.
`project_json` does the same on a JSON document (`str` or `bytes`) and hands
back the input unchanged when it cannot be parsed.

## What the package does not do

The package has no persistence for events, entities or relations: there is no
database layer, no event log on disk, and no vector or substring search. It
has no identifier generator for events and entities. It does not deliver
`FederationMessage` values between peers, and nothing turns requests into
changes of state. It has no server and no command-line program. Callers
provide their own storage and transport on top of these building blocks.

## Running the tests

Install the package with its `test` extra, then run pytest from the project
directory.