"""
Key-Value Store Implementations

InMemoryKeyValueStore  - a dict; used by tests and the 'memory' backend
JsonFileKeyValueStore  - one JSON document on disk holding every key

Both serialize values through json so that whatever is written can be
read back by any other backend. A value json cannot encode is rejected
at write time rather than at the next restart.

The JSON file is rewritten as a whole on every write: the new content goes
to a temporary file in the same directory which then replaces the old one,
so a crash never leaves a half-written document behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
    StorageUnavailableError,
)


logger = structlog.get_logger(__name__)


def _roundtrip(key: str, value: Any) -> Any:
    """Copy a value through json, rejecting anything json can't hold."""
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as e:
        raise StorageError(f"Value for key '{key}' is not JSON-serializable: {e}") from e


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self._data[key] = _roundtrip(key, value)

    async def get(self, key: str) -> Optional[Any]:
        if key not in self._data:
            return None
        return _roundtrip(key, self._data[key])

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = _roundtrip(key, value)

    async def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    File-backed store.

    Transient OS errors (a locked file, a busy network drive) are retried;
    a document that is not valid JSON is reported immediately.
    """

    def __init__(self, path: str):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        reraise=True,
    )
    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        with open(self._path, "r", encoding="utf-8") as f:
            content = f.read()
        if not content.strip():
            return {}
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageUnavailableError(
                f"Data file {self._path} is not valid JSON: {e}"
            ) from e
        if not isinstance(document, dict):
            raise StorageUnavailableError(
                f"Data file {self._path} does not hold a JSON object"
            )
        return document

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        reraise=True,
    )
    def _write_document(self, document: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _load(self) -> dict[str, Any]:
        try:
            return self._read_document()
        except OSError as e:
            logger.error("storage_read_failed", path=str(self._path), error=str(e))
            raise StorageUnavailableError(f"Failed to read {self._path}: {e}") from e

    def _store(self, document: dict[str, Any]) -> None:
        try:
            self._write_document(document)
        except OSError as e:
            logger.error("storage_write_failed", path=str(self._path), error=str(e))
            raise StorageError(f"Failed to write {self._path}: {e}") from e

    async def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    async def set(self, key: str, value: Any) -> None:
        document = self._load()
        document[key] = _roundtrip(key, value)
        self._store(document)

    async def delete(self, key: str) -> bool:
        document = self._load()
        if key not in document:
            return False
        del document[key]
        self._store(document)
        return True
