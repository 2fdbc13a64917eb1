"""
JSON file key/value store.

All keys live in one JSON document on local disk. Writes go to a temporary
file first and are moved into place with os.replace, so a crash mid-write
leaves the previous document intact.

Example:
    >>> store = JsonFileStore("data/pricewatch.json")
    >>> await store.connect()
    >>> await store.set("pricewatch:watch_list", [])
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from pricewatch.storage.base import (
    KeyValueStore,
    StorageConnectionError,
    StorageOperationError,
)
from pricewatch.storage.serialization import json_default

logger = structlog.get_logger(__name__)


class JsonFileStore(KeyValueStore):
    """
    Durable store backed by a single JSON document.

    File IO runs in a worker thread so the event loop is never blocked.
    A lock serializes read-modify-write cycles.

    Attributes:
        path: Location of the JSON document.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self._connected = False

    @property
    def backend_name(self) -> str:
        return "file"

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """
        Make sure the parent directory exists.

        Raises:
            StorageConnectionError: If the directory cannot be created or
                the path is not a regular file.
        """
        try:
            await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageConnectionError(
                f"Cannot prepare storage directory {self.path.parent}: {e}"
            ) from e

        if self.path.exists() and not self.path.is_file():
            raise StorageConnectionError(f"Storage path is not a file: {self.path}")

        self._connected = True
        logger.info("file_store_connected", path=str(self.path))

    async def disconnect(self) -> None:
        self._connected = False

    def _require_connection(self) -> None:
        if not self._connected:
            raise StorageConnectionError("File store is not connected")

    def _read_document(self) -> Dict[str, Any]:
        """Read the whole document. Missing file is an empty document."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageOperationError(f"Error reading {self.path}: {e}") from e

        if not text.strip():
            return {}

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageOperationError(f"Corrupt storage file {self.path}: {e}") from e

        if not isinstance(document, dict):
            raise StorageOperationError(
                f"Corrupt storage file {self.path}: top level must be an object"
            )
        return document

    def _write_document(self, document: Dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            payload = json.dumps(document, default=json_default, indent=2)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except (OSError, TypeError) as e:
            raise StorageOperationError(f"Error writing {self.path}: {e}") from e

    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        self._require_connection()
        async with self._lock:
            document = await asyncio.to_thread(self._read_document)
        return document.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        self._require_connection()
        async with self._lock:
            try:
                document = await asyncio.to_thread(self._read_document)
            except StorageOperationError as e:
                # Unreadable keys are lost already; keep the one being written.
                logger.warning(
                    "file_store_document_replaced",
                    path=str(self.path),
                    error=str(e),
                )
                document = {}
            document[key] = value
            await asyncio.to_thread(self._write_document, document)
