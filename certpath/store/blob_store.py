"""
Blob stores for engine state.

The engine treats persistence as an opaque string-keyed map of JSON text:
every write replaces a whole document, there are no transactions and no
partial updates. Three backends:

- MemoryBlobStore: dict in memory (tests, throwaway sessions)
- FileBlobStore: one ``<key>.json`` file per key in a directory
- SqlBlobStore: a single ``blobs`` table through SQLAlchemy (SQLite by default)

``open_store(url)`` picks the backend from a URL:

    memory://                    -> MemoryBlobStore
    file://~/.certpath/store     -> FileBlobStore
    sqlite:///certpath.db        -> SqlBlobStore (any SQLAlchemy URL works)
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import Column, DateTime, MetaData, String, Table, Text, create_engine, delete, insert, select, update


class BlobStore(ABC):
    """String-keyed map of JSON documents."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Raw text stored under ``key``, None when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Overwrite the document under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; True when something was removed."""

    @abstractmethod
    def keys(self) -> list[str]:
        ...

    def get_json(self, key: str) -> Any:
        """
        Parsed document under ``key``.

        Returns None when absent; raises ``json.JSONDecodeError`` when the
        stored text is not valid JSON (a file store raises
        ``UnicodeDecodeError`` for bytes that are not UTF-8).
        """
        text = self.get(key)
        if text is None:
            return None
        return json.loads(text)

    def set_json(self, key: str, document: Any) -> None:
        self.set(key, json.dumps(document, ensure_ascii=False))


# =============================================================================
# Backends
# =============================================================================


class MemoryBlobStore(BlobStore):
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)


class FileBlobStore(BlobStore):
    """
    One JSON file per key.

    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash mid-write never leaves a truncated document.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, self._path(key))
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self.directory.glob("*.json"))


class SqlBlobStore(BlobStore):
    """Blob table in any SQLAlchemy-supported database."""

    metadata = MetaData()
    blobs = Table(
        "blobs",
        metadata,
        Column("key", String(128), primary_key=True),
        Column("value", Text, nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
    )

    def __init__(self, url: str):
        self.engine = create_engine(url, pool_pre_ping=True)
        self.metadata.create_all(self.engine)
        logger.debug("SqlBlobStore initialized at {}", self.engine.url.render_as_string(hide_password=True))

    def get(self, key: str) -> str | None:
        with self.engine.connect() as conn:
            return conn.execute(select(self.blobs.c.value).where(self.blobs.c.key == key)).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc)
        with self.engine.begin() as conn:
            result = conn.execute(
                update(self.blobs).where(self.blobs.c.key == key).values(value=value, updated_at=now)
            )
            if result.rowcount == 0:
                conn.execute(insert(self.blobs).values(key=key, value=value, updated_at=now))

    def delete(self, key: str) -> bool:
        with self.engine.begin() as conn:
            return conn.execute(delete(self.blobs).where(self.blobs.c.key == key)).rowcount > 0

    def keys(self) -> list[str]:
        with self.engine.connect() as conn:
            return list(conn.execute(select(self.blobs.c.key).order_by(self.blobs.c.key)).scalars())


def open_store(url: str) -> BlobStore:
    """Create the blob store described by ``url``."""
    if url.startswith("memory://"):
        return MemoryBlobStore()
    if url.startswith("file://"):
        return FileBlobStore(url[len("file://"):])
    if "://" not in url:
        return FileBlobStore(url)
    return SqlBlobStore(url)
