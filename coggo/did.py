"""Peer identity using did:key with ed25519 keys."""

from __future__ import annotations

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from coggo.model import Peer, PeerSettings

_ED25519_MULTICODEC_PREFIX = b"\xed\x01"
_DID_KEY_PREFIX = "did:key:"
_MULTIBASE_BASE58 = "z"
_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_PUBLIC_KEY_SIZE = 32


class DIDError(ValueError):
    """Raised when a DID or base58 string cannot be decoded."""


def new_did() -> tuple[str, bytes, bytes]:
    """Generate an ed25519 keypair and its did:key DID.

    Returns (did, public_key, private_key); the private key is the 64-byte
    seed-plus-public-key form.
    """
    key = Ed25519PrivateKey.generate()
    public = key.public_key().public_bytes(
        serialization.Encoding.Raw, serialization.PublicFormat.Raw
    )
    seed = key.private_bytes(
        serialization.Encoding.Raw,
        serialization.PrivateFormat.Raw,
        serialization.NoEncryption(),
    )
    body = _ED25519_MULTICODEC_PREFIX + public
    did = _DID_KEY_PREFIX + _MULTIBASE_BASE58 + base58_encode(body)
    return did, public, seed + public


def decode_public_key(did: str) -> bytes:
    """Return the 32-byte ed25519 public key encoded in a did:key DID."""
    if not did.startswith(_DID_KEY_PREFIX):
        raise DIDError("not a did:key")
    body = did[len(_DID_KEY_PREFIX):]
    if not body or body[0] != _MULTIBASE_BASE58:
        raise DIDError("did:key: only multibase base58btc ('z') supported")
    try:
        raw = base58_decode(body[1:])
    except DIDError as exc:
        raise DIDError(f"did:key: base58: {exc}") from exc
    if len(raw) < len(_ED25519_MULTICODEC_PREFIX) + _PUBLIC_KEY_SIZE:
        raise DIDError("did:key: payload too short")
    if not raw.startswith(_ED25519_MULTICODEC_PREFIX):
        raise DIDError("did:key: not an ed25519-pub multicodec")
    public = raw[len(_ED25519_MULTICODEC_PREFIX):]
    if len(public) != _PUBLIC_KEY_SIZE:
        raise DIDError(
            f"did:key: expected {_PUBLIC_KEY_SIZE}-byte ed25519 pubkey, got {len(public)}"
        )
    return public


def new_peer(name: str, description: str) -> Peer:
    """Create a fresh peer with a new identity and default settings."""
    did, public, private = new_did()
    return Peer(
        did=did,
        name=name,
        description=description,
        private_key=private,
        public_key=public,
        settings=PeerSettings(
            default_clarification_threshold="ask_when_ambiguous",
            briefing_frequency="on_demand",
            capture_confirmation="log_and_tell",
        ),
    )


def base58_encode(data: bytes) -> str:
    """Encode bytes as base58btc, keeping leading zero bytes as '1'."""
    zeros = len(data) - len(data.lstrip(b"\x00"))
    number = int.from_bytes(data, "big")
    digits = []
    while number > 0:
        number, remainder = divmod(number, 58)
        digits.append(_BASE58_ALPHABET[remainder])
    return _BASE58_ALPHABET[0] * zeros + "".join(reversed(digits))


def base58_decode(text: str) -> bytes:
    """Decode a base58btc string; raises DIDError on invalid characters."""
    zeros = len(text) - len(text.lstrip(_BASE58_ALPHABET[0]))
    number = 0
    for char in text:
        index = _BASE58_ALPHABET.find(char)
        if index < 0:
            raise DIDError(f"invalid base58 character {char!r}")
        number = number * 58 + index
    body = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return b"\x00" * zeros + body