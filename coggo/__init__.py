"""Data model, did:key identities, type schemas, peer registry, event replay and projection."""

__version__ = "0.1.0"