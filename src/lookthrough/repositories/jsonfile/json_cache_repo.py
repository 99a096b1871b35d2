"""JSON-file implementation of ReferenceCacheRepository.

Layout: ``<root>/<kind>/<SYMBOL>.json``, one file per symbol holding the
record payload plus ``fetchedAt`` and ``sourceTag``.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

from lookthrough.core.exceptions import CacheWriteError
from lookthrough.core.timezone import now_utc, parse_datetime_utc, to_utc
from lookthrough.domain.models import RecordKind, SourceTag, StoredRecord

logger = logging.getLogger(__name__)

_META_KEYS = ("fetchedAt", "sourceTag")


class JsonFileReferenceCacheRepository:
    """File-per-symbol persistent cache tier."""

    def __init__(self, root_dir: Path):
        self._root_dir = Path(root_dir)
        self._write_lock = threading.Lock()

    def _kind_dir(self, kind: RecordKind) -> Path:
        return self._root_dir / kind.value

    def _path_for(self, kind: RecordKind, symbol: str) -> Path:
        return self._kind_dir(kind) / f"{quote(symbol, safe='')}.json"

    def get(self, kind: RecordKind, symbol: str) -> Optional[StoredRecord]:
        """Retrieve the stored record for a symbol, if any."""
        path = self._path_for(kind, symbol)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache file %s: %s", path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed cache file %s", path)
            return None

        fetched_at = parse_datetime_utc(data.get("fetchedAt")) or now_utc()
        try:
            source_tag = SourceTag(data.get("sourceTag") or SourceTag.API.value)
        except ValueError:
            source_tag = SourceTag.CACHE
        payload = {k: v for k, v in data.items() if k not in _META_KEYS}
        return StoredRecord(
            kind=kind,
            symbol=symbol,
            payload=payload,
            fetched_at=fetched_at,
            source_tag=source_tag,
        )

    def put(self, record: StoredRecord) -> None:
        """Write a record atomically (temp file then rename)."""
        data = dict(record.payload)
        data["fetchedAt"] = to_utc(record.fetched_at).isoformat()
        data["sourceTag"] = record.source_tag.value

        path = self._path_for(record.kind, record.symbol)
        with self._write_lock:
            tmp_name = None
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, path)
            except OSError as e:
                if tmp_name and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise CacheWriteError(record.kind.value, record.symbol, str(e)) from e

    def delete(self, kind: RecordKind, symbol: str) -> bool:
        """Remove a record. Returns True if something was deleted."""
        path = self._path_for(kind, symbol)
        with self._write_lock:
            if not path.exists():
                return False
            path.unlink()
            return True

    def list_symbols(self, kind: RecordKind) -> list[str]:
        """List cached symbols of a kind, sorted."""
        kind_dir = self._kind_dir(kind)
        if not kind_dir.is_dir():
            return []
        return sorted(unquote(p.stem) for p in kind_dir.glob("*.json"))

    def clear(self, kind: Optional[RecordKind] = None) -> int:
        """Remove all records (of one kind, or all kinds). Returns the count removed."""
        kinds = [kind] if kind is not None else list(RecordKind)
        removed = 0
        with self._write_lock:
            for k in kinds:
                kind_dir = self._kind_dir(k)
                if not kind_dir.is_dir():
                    continue
                for path in kind_dir.glob("*.json"):
                    path.unlink()
                    removed += 1
        return removed
