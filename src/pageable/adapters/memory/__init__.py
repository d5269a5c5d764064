"""In-memory adapter – list-query execution over Python sequences."""
from pageable.adapters.memory.source import InMemoryQuerySource

__all__ = ["InMemoryQuerySource"]
