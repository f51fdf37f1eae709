"""
JsonFileKeyStore - issued API keys kept in a single JSON file.

The file holds an array of {name, key, expiresAt} records. Writes replace the
whole document atomically and are serialized by a per-store lock, so
concurrent issuance requests cannot lose each other's records.
"""
import asyncio
import json
import logging
import os
from pathlib import Path
from typing import List, Optional

import aiofiles
import aiofiles.os
from pydantic import TypeAdapter, ValidationError

from relay.core.exceptions import KeyStoreError
from relay.models.api_key import ApiKeyRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[ApiKeyRecord])


class JsonFileKeyStore:
    """Append-only collection of API key records backed by one JSON file."""

    def __init__(self, keys_file: str = "apiKeys.json"):
        self._path = Path(keys_file)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def _read(self) -> List[ApiKeyRecord]:
        try:
            async with aiofiles.open(self._path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except OSError as e:
            raise KeyStoreError(f"Could not read API key file {self._path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise KeyStoreError(f"API key file {self._path} is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise KeyStoreError(f"API key file {self._path} must contain a JSON array")

        try:
            return _records_adapter.validate_python(data)
        except ValidationError as e:
            raise KeyStoreError(
                f"API key file {self._path} holds malformed records: {e.error_count()} error(s)"
            ) from e

    async def _write(self, records: List[ApiKeyRecord]) -> None:
        payload = json.dumps([record.to_document() for record in records], indent=2)
        tmp_path = self._path.with_name(f".{self._path.name}.{os.getpid()}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self._path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise KeyStoreError(f"Could not write API key file {self._path}: {e}") from e

    async def _ensure_exists(self) -> bool:
        """Create an empty key file if none exists. Returns True when one was created."""
        if await aiofiles.os.path.exists(self._path):
            return False
        await aiofiles.os.makedirs(self._path.parent, exist_ok=True)
        await self._write([])
        logger.info(f"Created empty API key file at {self._path}")
        return True

    async def load(self) -> List[ApiKeyRecord]:
        """
        Return every persisted record.

        A missing file is initialized to an empty collection and persisted.

        Raises:
            KeyStoreError if the file exists but is unreadable or malformed
        """
        async with self._lock:
            if await self._ensure_exists():
                return []
        return await self._read()

    async def append(self, record: ApiKeyRecord) -> None:
        """Add a record and write the full collection back."""
        async with self._lock:
            await self._ensure_exists()
            records = await self._read()
            records.append(record)
            await self._write(records)
        logger.debug(f"Stored API key record for '{record.name}' ({len(records)} total)")

    async def get(self, key: str) -> Optional[ApiKeyRecord]:
        """Exact token lookup."""
        for record in await self.load():
            if record.key == key:
                return record
        return None

    async def count(self) -> int:
        return len(await self.load())
