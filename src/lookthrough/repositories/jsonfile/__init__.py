"""JSON-file repository implementations."""

from lookthrough.repositories.jsonfile.json_cache_repo import JsonFileReferenceCacheRepository

__all__ = [
    "JsonFileReferenceCacheRepository",
]
