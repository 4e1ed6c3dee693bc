import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from coggo.did import (
    DIDError,
    base58_decode,
    base58_encode,
    decode_public_key,
    new_did,
    new_peer,
)

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def test_new_did_format():
    for _ in range(50):
        did, public, _private = new_did()
        assert did.startswith("did:key:z6Mk")
        body = did[len("did:key:z"):]
        assert all(ch in BASE58_ALPHABET for ch in body)
        decoded = decode_public_key(did)
        assert decoded == public
        assert len(decoded) == 32


@pytest.mark.parametrize(
    "did",
    [
        "",
        "did:key:",
        "did:key:abc",
        "did:key:zABC",
        "did:web:example.com",
        "did:key:z6Mk-invalid-base58-XXX",
    ],
)
def test_decode_public_key_rejects_malformed(did):
    with pytest.raises(DIDError):
        decode_public_key(did)


def test_decode_rejects_wrong_multicodec():
    did = "did:key:z" + base58_encode(b"\x12\x00" + bytes(range(32)))
    with pytest.raises(DIDError):
        decode_public_key(did)


def test_decode_rejects_extra_bytes():
    did = "did:key:z" + base58_encode(b"\xed\x01" + bytes(range(33)))
    with pytest.raises(DIDError):
        decode_public_key(did)


@pytest.mark.parametrize(
    "data",
    [b"", b"\x00", b"\x00\x00\x01", bytes([0xED, 0x01, 0xDE, 0xAD, 0xBE, 0xEF])],
)
def test_base58_round_trip(data):
    assert base58_decode(base58_encode(data)) == data


def test_base58_leading_zero_bytes_become_ones():
    encoded = base58_encode(b"\x00\x00\x01")
    assert encoded.startswith("11")
    assert base58_encode(b"") == ""


def test_base58_decode_invalid_character():
    with pytest.raises(DIDError):
        base58_decode("0OIl")


def test_private_key_signs_for_public_key():
    _did, public, private = new_did()
    assert len(private) == 64
    assert private[32:] == public
    signer = Ed25519PrivateKey.from_private_bytes(private[:32])
    signature = signer.sign(b"message")
    Ed25519PublicKey.from_public_bytes(public).verify(signature, b"message")
    with pytest.raises(Exception):
        Ed25519PublicKey.from_public_bytes(public).verify(signature, b"other")


def test_new_peer_defaults():
    peer = new_peer("alpha", "alpha test peer")
    assert peer.name == "alpha"
    assert peer.description == "alpha test peer"
    assert decode_public_key(peer.did) == peer.public_key
    assert peer.settings.default_clarification_threshold == "ask_when_ambiguous"
    assert peer.settings.briefing_frequency == "on_demand"
    assert peer.settings.capture_confirmation == "log_and_tell"
    assert peer.settings.briefing_time == ""
    assert peer.created_at is None


def test_new_peers_are_distinct():
    a = new_peer("a", "")
    b = new_peer("b", "")
    assert a.did != b.did
    assert a.public_key != b.public_key