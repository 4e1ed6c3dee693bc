"""Rebuild entity state by folding the event log up to a point in time."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from coggo.model import Entity, EntityQuery, Event, EventType, parse_time

log = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
_MIN_TIME = datetime.min.replace(tzinfo=timezone.utc)


def decode_entity_payload(event: Event) -> Entity:
    """Decode an entity snapshot carried by an event.

    Missing creation/update times are taken from the event timestamp and a
    missing peer DID from the event. Raises ValueError on an empty payload,
    malformed JSON or a snapshot without an id.
    """
    if not event.payload:
        raise ValueError("empty payload")
    decoded = json.loads(event.payload)
    entity = Entity() if decoded is None else Entity.from_dict(decoded)
    if not entity.id:
        raise ValueError("payload missing id")
    if entity.created_at is None:
        entity.created_at = event.timestamp
    if entity.updated_at is None:
        entity.updated_at = event.timestamp
    if not entity.peer_did:
        entity.peer_did = event.peer_did
    return entity


def _decode_archive(event: Event) -> tuple[str, datetime | None]:
    if not event.payload:
        raise ValueError("empty payload")
    decoded = json.loads(event.payload)
    if decoded is None:
        decoded = {}
    if not isinstance(decoded, dict):
        raise ValueError("expected a JSON object")
    entity_id = decoded.get("id") or ""
    if not isinstance(entity_id, str):
        raise ValueError("id: expected string")
    archived = decoded.get("archived_at")
    if archived is None:
        return entity_id, None
    if not isinstance(archived, str):
        raise ValueError("archived_at: expected timestamp string")
    return entity_id, parse_time(archived)


def _canonical(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {key: _canonical(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


def _canonical_json(value: Any) -> str:
    return json.dumps(
        _canonical(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )


def matches_filters(data: dict[str, Any] | None, filters: dict[str, Any] | None) -> bool:
    """Report whether every filter key is present in data with an equal JSON value."""
    data = data or {}
    for key, wanted in (filters or {}).items():
        if key not in data:
            return False
        if _canonical_json(data[key]) != _canonical_json(wanted):
            return False
    return True


def _apply_update(state: dict[str, Entity], event: Event) -> None:
    snapshot = decode_entity_payload(event)
    current = state.get(snapshot.id)
    if current is None:
        state[snapshot.id] = snapshot
        return
    if snapshot.data is not None:
        current.data = snapshot.data
    if snapshot.type:
        current.type = snapshot.type
    if event.timestamp is not None:
        current.updated_at = event.timestamp
    elif snapshot.updated_at is not None:
        current.updated_at = snapshot.updated_at


def fold_events(
    events: Iterable[Event], peer_did: str, query: EntityQuery
) -> list[Entity]:
    """Replay events in the order given and return the entities matching query.

    Results are ordered newest-created first (ties by id, descending) and cut
    to the query limit, 50 when unset. Events with undecodable payloads are
    logged and skipped.
    """
    state: dict[str, Entity] = {}
    for event in events:
        try:
            if event.type == EventType.ENTITY_CREATED:
                entity = decode_entity_payload(event)
                state[entity.id] = entity
            elif event.type == EventType.ENTITY_UPDATED:
                _apply_update(state, event)
            elif event.type == EventType.ENTITY_ARCHIVED:
                entity_id, archived_at = _decode_archive(event)
                current = state.get(entity_id)
                if current is not None:
                    current.archived_at = archived_at or event.timestamp
        except ValueError as exc:
            log.warning("timetravel: bad %s payload in event %s: %s", event.type, event.id, exc)

    selected = []
    for entity in state.values():
        if not entity.peer_did:
            entity.peer_did = peer_did
        if entity.peer_did != peer_did:
            continue
        if not query.include_archived and entity.archived_at is not None:
            continue
        if query.type and entity.type != query.type:
            continue
        if not matches_filters(entity.data, query.filters):
            continue
        selected.append(entity)

    selected.sort(key=lambda e: (e.created_at or _MIN_TIME, e.id), reverse=True)
    limit = query.limit if query.limit > 0 else DEFAULT_LIMIT
    return selected[:limit]