"""Directory of peers hosted by this process, persisted to peers.json."""

from __future__ import annotations

import base64
import binascii
import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from coggo.model import Peer, PeerSettings, format_time, parse_time

_ZERO_TIME_TEXT = "0001-01-01T00:00:00Z"


class RegistryError(Exception):
    """Raised for registry conflicts, missing peers and unreadable files."""


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return b""


def _peer_to_disk(peer: Peer) -> dict[str, Any]:
    out: dict[str, Any] = {"did": peer.did, "name": peer.name}
    if peer.description:
        out["description"] = peer.description
    out["private_key"] = _b64encode(peer.private_key)
    out["public_key"] = _b64encode(peer.public_key)
    out["created_at"] = (
        format_time(peer.created_at) if peer.created_at is not None else _ZERO_TIME_TEXT
    )
    out["settings"] = peer.settings.to_dict()
    return out


def _peer_from_disk(data: Any) -> Peer:
    if not isinstance(data, dict):
        raise ValueError("expected a peer object")
    created = data.get("created_at")
    settings = data.get("settings")
    return Peer(
        did=str(data.get("did", "")),
        name=str(data.get("name", "")),
        description=str(data.get("description", "")),
        private_key=_b64decode(str(data.get("private_key", ""))),
        public_key=_b64decode(str(data.get("public_key", ""))),
        created_at=parse_time(created) if isinstance(created, str) else None,
        settings=PeerSettings.from_dict(settings) if settings is not None else PeerSettings(),
    )


class Registry:
    """In-memory index of peers, rewritten atomically to disk on every change."""

    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        directory = Path(data_dir)
        directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        self._path = directory / "peers.json"
        self._lock = threading.RLock()
        self._by_did: dict[str, Peer] = {}
        self._by_name: dict[str, Peer] = {}
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return
        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise ValueError("expected a JSON array")
            peers = [_peer_from_disk(record) for record in records]
        except ValueError as exc:
            raise RegistryError(f"peers.json: {exc}") from exc
        for peer in peers:
            self._by_did[peer.did] = peer
            self._by_name[peer.name] = peer

    @property
    def path(self) -> Path:
        """Location of the backing peers.json file."""
        return self._path

    def add(self, peer: Peer) -> None:
        """Register a new peer; raise RegistryError if its name or DID is taken."""
        with self._lock:
            if peer.name in self._by_name:
                raise RegistryError(f"peer name {peer.name!r} already exists")
            if peer.did in self._by_did:
                raise RegistryError(f"peer DID {peer.did!r} already exists")
            if peer.created_at is None:
                peer.created_at = datetime.now(timezone.utc)
            self._by_did[peer.did] = peer
            self._by_name[peer.name] = peer
            self._flush()

    def rename(self, old_name: str, new_name: str) -> None:
        """Change a peer's human-readable name."""
        with self._lock:
            peer = self._by_name.get(old_name)
            if peer is None:
                raise RegistryError(f"no peer named {old_name!r}")
            if new_name in self._by_name:
                raise RegistryError(f"peer name {new_name!r} already exists")
            del self._by_name[old_name]
            peer.name = new_name
            self._by_name[new_name] = peer
            self._flush()

    def update_settings(self, name: str, settings: PeerSettings) -> None:
        """Replace the settings of the peer with the given name."""
        with self._lock:
            peer = self._by_name.get(name)
            if peer is None:
                raise RegistryError(f"no peer named {name!r}")
            peer.settings = settings
            self._flush()

    def by_name(self, name: str) -> Peer | None:
        """Return the peer registered under name, or None."""
        with self._lock:
            return self._by_name.get(name)

    def by_did(self, did: str) -> Peer | None:
        """Return the peer with the given DID, or None."""
        with self._lock:
            return self._by_did.get(did)

    def list(self) -> list[Peer]:
        """Return all peers ordered by name."""
        with self._lock:
            return sorted(self._by_name.values(), key=lambda p: p.name)

    def resolve(self, name_or_did: str) -> Peer:
        """Look a peer up by name, then by DID; raise RegistryError if neither matches."""
        peer = self.by_name(name_or_did) or self.by_did(name_or_did)
        if peer is None:
            raise RegistryError(f"no peer matches {name_or_did!r}")
        return peer

    def _flush(self) -> None:
        records = [_peer_to_disk(peer) for peer in self.list()]
        text = json.dumps(records, indent=2)
        tmp = self._path.with_name(self._path.name + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp, self._path)