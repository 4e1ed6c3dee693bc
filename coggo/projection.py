"""GraphQL-style field projection of federation response payloads."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

ELLIPSIS = "\u2026"

_COUNT = re.compile(r"[+-]?\d+")


@dataclass
class _Selection:
    keep: dict[str, None] = field(default_factory=dict)
    truncate: dict[str, int] = field(default_factory=dict)


def _parse_selections(fields: Iterable[str]) -> _Selection:
    selection = _Selection()
    for entry in fields:
        entry = entry.strip()
        if not entry:
            continue
        name = entry
        colon = entry.find(":")
        if colon > 0:
            name = entry[:colon]
            count = entry[colon + 1:]
            if _COUNT.fullmatch(count) and int(count) > 0:
                selection.truncate[name] = int(count)
        selection.keep[name] = None
    return selection


def _truncate(value: Any, name: str, selection: _Selection) -> Any:
    limit = selection.truncate.get(name)
    if limit is None or not isinstance(value, str) or len(value) <= limit:
        return value
    return value[:limit] + ELLIPSIS


def _is_entity_like(obj: dict[str, Any]) -> bool:
    return isinstance(obj.get("data"), dict)


def _is_type_def_like(obj: dict[str, Any]) -> bool:
    return isinstance(obj.get("name"), str) and isinstance(obj.get("fields"), list)


def _project_entity(obj: dict[str, Any], selection: _Selection) -> dict[str, Any]:
    out: dict[str, Any] = {}
    data = obj.get("data")
    if not isinstance(data, dict):
        data = {}
    for name in selection.keep:
        if name != "data" and name in obj:
            out[name] = _truncate(obj[name], name, selection)
        elif name in data:
            out.setdefault("data", {})[name] = _truncate(data[name], name, selection)
    return out


def _project_flat(obj: dict[str, Any], selection: _Selection) -> dict[str, Any]:
    return {
        name: _truncate(obj[name], name, selection)
        for name in selection.keep
        if name in obj
    }


def _walk(value: Any, selection: _Selection) -> Any:
    if isinstance(value, list):
        return [_walk(item, selection) for item in value]
    if isinstance(value, dict):
        if _is_entity_like(value):
            return _project_entity(value, selection)
        if _is_type_def_like(value):
            return _project_flat(value, selection)
        return {key: _walk(item, selection) for key, item in value.items()}
    return value


def project(value: Any, fields: Iterable[str] | None) -> Any:
    """Apply a field allowlist to a decoded JSON value.

    Each field name may end in ``:N`` to cut string values to N characters,
    with an ellipsis appended when cut. Entity-shaped objects (with a ``data``
    object) keep the selected top-level keys and selected ``data`` keys;
    type definitions (``name`` plus a ``fields`` array) keep selected top-level
    keys; other objects and arrays are walked recursively. With no usable
    selections the value is returned unchanged.
    """
    selection = _parse_selections(fields or ())
    if not selection.keep:
        return value
    return _walk(value, selection)


def project_json(raw: str | bytes, fields: Iterable[str] | None) -> str | bytes:
    """Apply project() to a JSON document; return the input untouched if it cannot be parsed."""
    fields = list(fields or ())
    if not fields or not raw:
        return raw
    selection = _parse_selections(fields)
    if not selection.keep:
        return raw
    try:
        decoded = json.loads(raw)
    except ValueError:
        return raw
    encoded = json.dumps(_walk(decoded, selection), separators=(",", ":"), ensure_ascii=False)
    if isinstance(raw, (bytes, bytearray)):
        return encoded.encode("utf-8")
    return encoded