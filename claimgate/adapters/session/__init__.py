"""Session adapters - Claim session registry."""

from .memory import InMemorySessionStore

__all__ = ["InMemorySessionStore"]
