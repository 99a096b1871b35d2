"""Repository layer - persistent cache abstractions and implementations."""

from lookthrough.repositories.protocols import ReferenceCacheRepository

__all__ = [
    "ReferenceCacheRepository",
]
