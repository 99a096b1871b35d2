"""Repository protocol definitions (interfaces)."""

from lookthrough.repositories.protocols.cache_repo import ReferenceCacheRepository

__all__ = [
    "ReferenceCacheRepository",
]
