import json

from coggo.projection import ELLIPSIS, project, project_json


def test_project_entity_array():
    raw = (
        '[{"id":"e1","type":"Decision","peer_did":"did:key:p1","data":'
        '{"title":"T","rationale":"a very long rationale that should be truncated"}}]'
    )
    out = json.loads(project_json(raw, ["id", "title", "rationale:10"]))
    assert len(out) == 1
    entity = out[0]
    assert entity["id"] == "e1"
    assert "type" not in entity
    assert "peer_did" not in entity
    assert entity["data"]["title"] == "T"
    rationale = entity["data"]["rationale"]
    assert rationale.endswith(ELLIPSIS)
    assert len(rationale) == 11
    assert rationale == "a very lon" + ELLIPSIS


def test_no_fields_passthrough():
    raw = '[{"id":"e1","data":{"title":"T"}}]'
    assert project_json(raw, None) == raw
    assert project_json(raw, []) == raw


def test_type_list_wrapper():
    raw = (
        '{"entity_types":[{"name":"Decision","peer_did":"did:key:p1","fields":[],'
        '"description":"discrete reasoned choices"}],"relationship_types":[]}'
    )
    out = json.loads(project_json(raw, ["name", "description:10"]))
    types = out["entity_types"]
    assert len(types) == 1
    definition = types[0]
    assert definition["name"] == "Decision"
    assert "peer_did" not in definition
    assert definition["description"].endswith(ELLIPSIS)
    assert out["relationship_types"] == []


def test_semantic_search_wrapper():
    raw = '[{"entity":{"id":"e1","type":"Decision","data":{"title":"T","rationale":"R"}},"score":0.9}]'
    out = json.loads(project_json(raw, ["id", "title"]))
    hit = out[0]
    assert hit["score"] == 0.9
    assert hit["entity"]["id"] == "e1"
    assert hit["entity"]["data"] == {"title": "T"}


def test_invalid_json_returns_original():
    assert project_json("not json", ["id"]) == "not json"


def test_truncate_non_string_is_noop():
    raw = '[{"id":"e1","data":{"completion_estimate":42.5}}]'
    out = json.loads(project_json(raw, ["id", "completion_estimate:5"]))
    assert out[0]["data"]["completion_estimate"] == 42.5


def test_blank_selections_passthrough():
    raw = '{"id":"e1","data":{"title":"T"}}'
    assert project_json(raw, ["", "  "]) == raw


def test_bytes_in_bytes_out():
    raw = b'{"id":"e1","type":"Note","data":{"title":"T"}}'
    out = project_json(raw, ["id"])
    assert isinstance(out, bytes)
    assert json.loads(out) == {"id": "e1"}


def test_non_positive_truncation_keeps_field_whole():
    value = {"id": "e1", "data": {"title": "abcdef"}}
    assert project(value, ["title:0"]) == {"data": {"title": "abcdef"}}
    assert project(value, ["title:x"]) == {"data": {"title": "abcdef"}}


def test_short_string_not_truncated():
    value = {"id": "abc", "data": {}}
    assert project(value, ["id:3"]) == {"id": "abc"}


def test_unicode_truncation_counts_characters():
    value = {"id": "e1", "data": {"title": "żółćgęś"}}
    assert project(value, ["title:3"]) == {"data": {"title": "żół" + ELLIPSIS}}


def test_unknown_selection_dropped_and_entity_empty():
    value = [{"id": "e1", "data": {"title": "T"}}]
    assert project(value, ["missing"]) == [{}]


def test_plain_object_walked_recursively():
    value = {"count": 2, "nested": {"inner": [{"id": "x", "data": {"a": 1, "b": 2}}]}}
    assert project(value, ["b"]) == {"count": 2, "nested": {"inner": [{"data": {"b": 2}}]}}


def test_project_without_fields_returns_same_value():
    value = {"id": "e1", "data": {"title": "T"}}
    assert project(value, None) == {"id": "e1", "data": {"title": "T"}}


def test_colon_at_start_is_literal_name():
    value = {"name": "X", "fields": [], ":5": "kept"}
    assert project(value, [":5"]) == {":5": "kept"}