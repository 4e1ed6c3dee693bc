"""Core data model: events, entities, relations, type definitions, peers, messages."""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, StrEnum
from typing import Any


class EventType(StrEnum):
    """Closed vocabulary of events that may appear in the log."""

    ENTITY_CREATED = "EntityCreated"
    ENTITY_UPDATED = "EntityUpdated"
    ENTITY_ARCHIVED = "EntityArchived"
    RELATION_CREATED = "RelationCreated"
    RELATION_DISSOLVED = "RelationDissolved"
    ENTITY_TYPE_DEFINED = "EntityTypeDefined"
    ENTITY_TYPE_UPDATED = "EntityTypeUpdated"
    RELATIONSHIP_TYPE_DEFINED = "RelationshipTypeDefined"
    RELATIONSHIP_TYPE_UPDATED = "RelationshipTypeUpdated"
    SETTING_CHANGED = "SettingChanged"


class FieldType(StrEnum):
    """Supported field types of entity and relationship definitions."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    REFERENCE = "reference"
    LIST_OF = "list_of"


class FederationMessageType(StrEnum):
    """Kinds of federation message."""

    QUERY = "Query"
    WRITE = "Write"
    RESPONSE = "Response"
    ERROR = "Error"
    PING = "Ping"


# ---- time handling ----

_ZERO_TIME_TEXT = "0001-01-01T00:00:00Z"
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def format_time(value: datetime) -> str:
    """Format a datetime as RFC 3339 in UTC, trimming trailing fraction zeros."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_time(text: str) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    An empty string or the zero time yields None; anything unparseable raises
    ValueError.
    """
    if not text:
        return None
    match = _RFC3339.match(text)
    if match is None:
        raise ValueError(f"unrecognised time format: {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int(((fraction or "") + "000000")[:6])
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        value = datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
        ).astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError(f"time out of range: {text!r}") from exc
    if value == _ZERO_TIME:
        return None
    return value


def _time_text(value: datetime | None) -> str:
    return _ZERO_TIME_TEXT if value is None else format_time(value)


# ---- decoding helpers ----

def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{what}: expected a JSON object, got {type(data).__name__}")
    return data


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected string, got {type(value).__name__}")
    return value


def _bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected boolean, got {type(value).__name__}")
    return value


def _int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected integer, got boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"{key}: expected integer, got {value!r}")


def _float(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key}: expected number, got {value!r}")
    return float(value)


def _mapping(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"{key}: expected object, got {type(value).__name__}")
    return dict(value)


def _time(data: dict[str, Any], key: str) -> datetime | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected timestamp string, got {type(value).__name__}")
    return parse_time(value)


def _coerce(enum_cls: type[Enum], value: Any) -> Any:
    """Return the enum member for value, or the plain string if it is not one."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"expected string for {enum_cls.__name__}, got {value!r}")
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _raw_json(data: dict[str, Any], key: str) -> str:
    if key not in data:
        return ""
    return json.dumps(data[key], separators=(",", ":"))


def _loads_raw(raw: str) -> Any:
    return json.loads(raw) if raw else None


# ---- records ----

@dataclass
class Event:
    """An append-only record in the event log; payload holds raw JSON text."""

    id: str = ""
    peer_did: str = ""
    type: EventType | str = ""
    payload: str = ""
    timestamp: datetime | None = None
    author_did: str = ""
    client_id: str = ""
    signature: bytes = b""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "peer_did": self.peer_did,
            "type": str(self.type),
            "payload": _loads_raw(self.payload),
            "timestamp": _time_text(self.timestamp),
            "author_did": self.author_did,
            "client_id": self.client_id,
        }
        if self.signature:
            out["signature"] = base64.b64encode(self.signature).decode("ascii")
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        data = _require_mapping(data, "event")
        signature = _str(data, "signature")
        return cls(
            id=_str(data, "id"),
            peer_did=_str(data, "peer_did"),
            type=_coerce(EventType, data.get("type")),
            payload=_raw_json(data, "payload"),
            timestamp=_time(data, "timestamp"),
            author_did=_str(data, "author_did"),
            client_id=_str(data, "client_id"),
            signature=base64.b64decode(signature) if signature else b"",
        )


@dataclass
class Entity:
    """Materialised state of a single object."""

    id: str = ""
    type: str = ""
    peer_did: str = ""
    created_at: datetime | None = None
    created_by_did: str = ""
    created_by_client: str = ""
    updated_at: datetime | None = None
    archived_at: datetime | None = None
    data: dict[str, Any] | None = None
    embedding_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "peer_did": self.peer_did,
            "created_at": _time_text(self.created_at),
            "created_by_did": self.created_by_did,
            "created_by_client": self.created_by_client,
            "updated_at": _time_text(self.updated_at),
        }
        if self.archived_at is not None:
            out["archived_at"] = format_time(self.archived_at)
        out["data"] = self.data
        if self.embedding_id is not None:
            out["embedding_id"] = self.embedding_id
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entity:
        data = _require_mapping(data, "entity")
        embedding = data.get("embedding_id")
        if embedding is not None and not isinstance(embedding, str):
            raise ValueError("embedding_id: expected string")
        return cls(
            id=_str(data, "id"),
            type=_str(data, "type"),
            peer_did=_str(data, "peer_did"),
            created_at=_time(data, "created_at"),
            created_by_did=_str(data, "created_by_did"),
            created_by_client=_str(data, "created_by_client"),
            updated_at=_time(data, "updated_at"),
            archived_at=_time(data, "archived_at"),
            data=_mapping(data, "data"),
            embedding_id=embedding,
        )


@dataclass
class Relation:
    """Materialised state of a single edge between two entities."""

    id: str = ""
    from_id: str = ""
    to_id: str = ""
    type: str = ""
    peer_did: str = ""
    created_at: datetime | None = None
    created_by_did: str = ""
    created_by_client: str = ""
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from": self.from_id,
            "to": self.to_id,
            "type": self.type,
            "peer_did": self.peer_did,
            "created_at": _time_text(self.created_at),
            "created_by_did": self.created_by_did,
            "created_by_client": self.created_by_client,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Relation:
        data = _require_mapping(data, "relation")
        return cls(
            id=_str(data, "id"),
            from_id=_str(data, "from"),
            to_id=_str(data, "to"),
            type=_str(data, "type"),
            peer_did=_str(data, "peer_did"),
            created_at=_time(data, "created_at"),
            created_by_did=_str(data, "created_by_did"),
            created_by_client=_str(data, "created_by_client"),
            data=_mapping(data, "data"),
        )


@dataclass
class FieldDef:
    """A single field on an entity or relationship type."""

    name: str = ""
    type: FieldType | str = ""
    element_type: FieldType | str = ""
    required: bool = False
    default: Any = None
    validation: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "type": str(self.type)}
        if self.element_type:
            out["element_type"] = str(self.element_type)
        out["required"] = self.required
        if self.default is not None:
            out["default"] = self.default
        if self.validation:
            out["validation"] = self.validation
        if self.description:
            out["description"] = self.description
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldDef:
        data = _require_mapping(data, "field")
        return cls(
            name=_str(data, "name"),
            type=_coerce(FieldType, data.get("type")),
            element_type=_coerce(FieldType, data.get("element_type")),
            required=_bool(data, "required"),
            default=data.get("default"),
            validation=_str(data, "validation"),
            description=_str(data, "description"),
        )


def _field_list(data: dict[str, Any]) -> list[FieldDef]:
    value = data.get("fields")
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("fields: expected array")
    return [FieldDef.from_dict(item) for item in value]


@dataclass
class EntityTypeDefinition:
    """A user-extensible entity type."""

    name: str = ""
    peer_did: str = ""
    fields: list[FieldDef] = field(default_factory=list)
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "peer_did": self.peer_did,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.description:
            out["description"] = self.description
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntityTypeDefinition:
        data = _require_mapping(data, "entity type")
        return cls(
            name=_str(data, "name"),
            peer_did=_str(data, "peer_did"),
            fields=_field_list(data),
            description=_str(data, "description"),
        )


@dataclass
class RelationshipTypeDefinition:
    """A user-extensible relationship type."""

    name: str = ""
    peer_did: str = ""
    fields: list[FieldDef] = field(default_factory=list)
    description: str = ""
    directional: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "peer_did": self.peer_did}
        if self.fields:
            out["fields"] = [f.to_dict() for f in self.fields]
        if self.description:
            out["description"] = self.description
        out["directional"] = self.directional
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelationshipTypeDefinition:
        data = _require_mapping(data, "relationship type")
        return cls(
            name=_str(data, "name"),
            peer_did=_str(data, "peer_did"),
            fields=_field_list(data),
            description=_str(data, "description"),
            directional=_bool(data, "directional"),
        )


@dataclass
class PeerSettings:
    """Per-peer behavioural configuration."""

    default_clarification_threshold: str = ""
    briefing_frequency: str = ""
    briefing_time: str = ""
    capture_confirmation: str = ""

    def to_dict(self) -> dict[str, Any]:
        items = {
            "default_clarification_threshold": self.default_clarification_threshold,
            "briefing_frequency": self.briefing_frequency,
            "briefing_time": self.briefing_time,
            "capture_confirmation": self.capture_confirmation,
        }
        return {key: value for key, value in items.items() if value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PeerSettings:
        data = _require_mapping(data, "settings")
        return cls(
            default_clarification_threshold=_str(data, "default_clarification_threshold"),
            briefing_frequency=_str(data, "briefing_frequency"),
            briefing_time=_str(data, "briefing_time"),
            capture_confirmation=_str(data, "capture_confirmation"),
        )


@dataclass
class Peer:
    """A unit of identity hosted by this process. The private key is never exposed."""

    did: str
    name: str
    description: str = ""
    private_key: bytes = field(default=b"", repr=False)
    public_key: bytes = b""
    created_at: datetime | None = None
    settings: PeerSettings = field(default_factory=PeerSettings)


@dataclass
class Token:
    """A peer-scoped bearer token record."""

    id: str
    secret_hash: str
    peers: list[str] = field(default_factory=list)
    label: str = ""
    created_at: datetime | None = None
    last_used_at: datetime | None = None


@dataclass
class EntityQuery:
    """Parameters for listing entities."""

    type: str = ""
    filters: dict[str, Any] | None = None
    limit: int = 0
    include_archived: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.filters:
            out["filters"] = self.filters
        if self.limit:
            out["limit"] = self.limit
        if self.include_archived:
            out["include_archived"] = self.include_archived
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntityQuery:
        data = _require_mapping(data, "query")
        return cls(
            type=_str(data, "type"),
            filters=_mapping(data, "filters"),
            limit=_int(data, "limit"),
            include_archived=_bool(data, "include_archived"),
        )


@dataclass
class SemanticHit:
    """An entity paired with its similarity score."""

    entity: Entity | None
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity.to_dict() if self.entity is not None else None,
            "score": self.score,
        }


@dataclass
class FederationMessage:
    """The unit of cross-peer communication; payload holds raw JSON text."""

    version: str = ""
    source_did: str = ""
    target_did: str = ""
    type: FederationMessageType | str = ""
    payload: str = ""
    auth_token: str = ""
    message_id: str = ""
    timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "version": self.version,
            "source_did": self.source_did,
            "target_did": self.target_did,
            "type": str(self.type),
            "payload": _loads_raw(self.payload),
        }
        if self.auth_token:
            out["auth_token"] = self.auth_token
        out["message_id"] = self.message_id
        out["timestamp"] = _time_text(self.timestamp)
        return out