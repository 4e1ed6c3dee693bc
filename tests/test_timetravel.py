import json
from datetime import datetime, timedelta, timezone

import pytest

from coggo.model import Entity, EntityQuery, Event, EventType, format_time
from coggo.timetravel import decode_entity_payload, fold_events, matches_filters

PEER = "did:key:z6MkTestPeer"
T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=10)


def entity_event(kind, entity, when, event_id):
    return Event(
        id=event_id,
        peer_did=PEER,
        type=kind,
        payload=json.dumps(entity.to_dict()),
        timestamp=when,
        author_did=PEER,
        client_id="test",
    )


def create_and_update():
    create = entity_event(
        EventType.ENTITY_CREATED,
        Entity(id="ent1", type="Project", peer_did=PEER, data={"status": "draft"}),
        T0,
        "e1",
    )
    update = entity_event(
        EventType.ENTITY_UPDATED,
        Entity(id="ent1", type="Project", peer_did=PEER, data={"status": "active"}),
        T1,
        "e2",
    )
    return create, update


def test_state_as_of_create_is_draft():
    create, _ = create_and_update()
    result = fold_events([create], PEER, EntityQuery(type="Project"))
    assert len(result) == 1
    assert result[0].data["status"] == "draft"


def test_state_as_of_update_is_active():
    create, update = create_and_update()
    result = fold_events([create, update], PEER, EntityQuery(type="Project"))
    assert len(result) == 1
    assert result[0].data["status"] == "active"
    assert result[0].updated_at == T1
    assert result[0].created_at == T0


def test_update_preserves_creation_metadata():
    create = entity_event(
        EventType.ENTITY_CREATED,
        Entity(id="x", type="Project", created_by_did="did:key:author", data={"a": 1}),
        T0,
        "e1",
    )
    update = entity_event(
        EventType.ENTITY_UPDATED, Entity(id="x", data={"a": 2}), T1, "e2"
    )
    [entity] = fold_events([create, update], PEER, EntityQuery())
    assert entity.created_by_did == "did:key:author"
    assert entity.type == "Project"
    assert entity.data == {"a": 2}


def test_update_without_create_is_taken_as_snapshot():
    _, update = create_and_update()
    [entity] = fold_events([update], PEER, EntityQuery())
    assert entity.data == {"status": "active"}
    assert entity.created_at == T1


def test_archive_hides_entity_unless_requested():
    create, _ = create_and_update()
    archived_at = T0 + timedelta(minutes=5)
    archive = Event(
        id="e3",
        peer_did=PEER,
        type=EventType.ENTITY_ARCHIVED,
        payload=json.dumps({"id": "ent1", "archived_at": format_time(archived_at)}),
        timestamp=T1,
    )
    assert fold_events([create, archive], PEER, EntityQuery()) == []
    [entity] = fold_events([create, archive], PEER, EntityQuery(include_archived=True))
    assert entity.archived_at == archived_at


def test_archive_without_time_uses_event_timestamp():
    create, _ = create_and_update()
    archive = Event(
        id="e3", peer_did=PEER, type=EventType.ENTITY_ARCHIVED,
        payload=json.dumps({"id": "ent1"}), timestamp=T1,
    )
    [entity] = fold_events([create, archive], PEER, EntityQuery(include_archived=True))
    assert entity.archived_at == T1


def test_bad_payloads_are_skipped():
    create, _ = create_and_update()
    broken = Event(id="b", peer_did=PEER, type=EventType.ENTITY_CREATED, payload="{not json", timestamp=T0)
    no_id = Event(id="c", peer_did=PEER, type=EventType.ENTITY_CREATED, payload="{}", timestamp=T0)
    result = fold_events([broken, no_id, create], PEER, EntityQuery())
    assert [e.id for e in result] == ["ent1"]


def test_other_peers_and_types_are_excluded():
    mine = entity_event(EventType.ENTITY_CREATED, Entity(id="a", type="Project", data={}), T0, "1")
    other_type = entity_event(EventType.ENTITY_CREATED, Entity(id="b", type="Goal", data={}), T0, "2")
    foreign = entity_event(
        EventType.ENTITY_CREATED, Entity(id="c", type="Project", peer_did="did:key:other", data={}), T0, "3"
    )
    result = fold_events([mine, other_type, foreign], PEER, EntityQuery(type="Project"))
    assert [e.id for e in result] == ["a"]
    assert result[0].peer_did == PEER


def test_filters_order_and_limit():
    events = [
        entity_event(
            EventType.ENTITY_CREATED,
            Entity(id=f"n{i}", type="Note", data={"status": "open" if i != 2 else "done"}),
            T0 + timedelta(seconds=i),
            f"e{i}",
        )
        for i in range(5)
    ]
    result = fold_events(events, PEER, EntityQuery(filters={"status": "open"}))
    assert [e.id for e in result] == ["n4", "n3", "n1", "n0"]
    limited = fold_events(events, PEER, EntityQuery(limit=2))
    assert [e.id for e in limited] == ["n4", "n3"]


def test_default_limit_is_fifty():
    events = [
        entity_event(EventType.ENTITY_CREATED, Entity(id=f"id{i:03d}", data={}), T0, f"e{i}")
        for i in range(60)
    ]
    result = fold_events(events, PEER, EntityQuery())
    assert len(result) == 50
    assert result[0].id == "id059"


def test_decode_entity_payload_fills_from_event():
    event = Event(id="e", peer_did=PEER, type=EventType.ENTITY_CREATED,
                  payload=json.dumps({"id": "z", "data": {"k": "v"}}), timestamp=T0)
    entity = decode_entity_payload(event)
    assert entity.peer_did == PEER
    assert entity.created_at == T0
    assert entity.updated_at == T0
    assert entity.data == {"k": "v"}


@pytest.mark.parametrize("payload", ["", "null", "{}", "[1,2]", "{broken"])
def test_decode_entity_payload_rejects(payload):
    event = Event(id="e", peer_did=PEER, type=EventType.ENTITY_CREATED, payload=payload, timestamp=T0)
    with pytest.raises(ValueError):
        decode_entity_payload(event)


def test_matches_filters():
    data = {"status": "active", "n": 1, "tags": ["a", "b"]}
    assert matches_filters(data, {"status": "active"}) is True
    assert matches_filters(data, {"n": 1.0}) is True
    assert matches_filters(data, {"tags": ["a", "b"]}) is True
    assert matches_filters(data, {"status": "paused"}) is False
    assert matches_filters(data, {"missing": None}) is False
    assert matches_filters(None, {"status": "active"}) is False
    assert matches_filters(data, None) is True