"""Built-in storage implementations."""

from .memory_store import InMemorySpanStore

__all__ = ["InMemorySpanStore"]
