"""
Local file-based character storage.

Keeps every record for every owner in one JSON array stored under a
single storage key (one file). Every operation reads the whole
collection, and writes serialize it back atomically.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError
from ..records import (
    ID_FIELD,
    OWNER_FIELD,
    build_document,
    is_complete_record,
    shallow_merge,
    validate_changes,
    validate_owner_id,
    validate_record_id,
)
from .base import CharacterStore, StorageConfig

logger = logging.getLogger(__name__)


class LocalCharacterStore(CharacterStore):
    """Local single-file character storage.

    File layout:
    {local_path}/
      {local_storage_key}.json   # [ {"id": ..., "ownerId": ..., ...}, ... ]

    Ids are millisecond timestamps. A corrupt or missing file reads as an
    empty collection; write failures raise StorageIOError. There is no
    locking: concurrent read-modify-write cycles resolve as last writer wins.
    """

    def __init__(self, config: StorageConfig) -> None:
        """Initialize local storage.

        Args:
            config: Storage configuration
        """
        self.config = config
        self.path: Path = config.local_file
        self._last_id = 0

    async def create(self, owner_id: str, payload: Mapping[str, Any]) -> str:
        document = build_document(owner_id, payload)
        records = await self._load()

        record_id = self._mint_id({r[ID_FIELD] for r in records})
        document[ID_FIELD] = record_id
        records.append(document)

        await self._save(records)
        logger.debug(f"Created local character {record_id} for owner {owner_id}")
        return record_id

    async def list_by_owner(self, owner_id: str) -> list[dict[str, Any]]:
        validate_owner_id(owner_id)
        records = await self._load()
        return [r for r in records if r[OWNER_FIELD] == owner_id]

    async def get(self, record_id: str) -> dict[str, Any] | None:
        validate_record_id(record_id)
        for record in await self._load():
            if record[ID_FIELD] == record_id:
                return record
        return None

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> None:
        validate_record_id(record_id)
        validate_changes(changes)
        records = await self._load()

        for index, record in enumerate(records):
            if record[ID_FIELD] == record_id:
                records[index] = shallow_merge(record, changes)
                await self._save(records)
                return

        logger.debug(f"Update skipped, local character {record_id} not found")

    async def delete(self, record_id: str) -> None:
        validate_record_id(record_id)
        records = await self._load()
        remaining = [r for r in records if r[ID_FIELD] != record_id]
        if len(remaining) == len(records):
            return
        await self._save(remaining)

    async def close(self) -> None:
        """Close storage (no-op for local storage)."""
        pass

    def _mint_id(self, taken: set[str]) -> str:
        """Millisecond timestamp id, bumped past ids already used."""
        candidate = max(int(time.time() * 1000), self._last_id + 1)
        while str(candidate) in taken:
            candidate += 1
        self._last_id = candidate
        return str(candidate)

    async def _load(self) -> list[dict[str, Any]]:
        """Read the collection; anything unreadable counts as empty."""
        try:
            if not await aiofiles.os.path.exists(self.path):
                return []
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                content = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read local characters from {self.path}: {e}")
            return []

        if not content.strip():
            return []

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Local character collection {self.path} is corrupt, ignoring: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Local character collection {self.path} is not a list, ignoring")
            return []

        records = [dict(item) for item in data if is_complete_record(item)]
        if len(records) != len(data):
            logger.warning(
                f"Dropped {len(data) - len(records)} malformed entries from {self.path}"
            )
        return records

    async def _save(self, records: list[dict[str, Any]]) -> None:
        """Write the collection atomically using temp file + rename."""
        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
        except OSError as e:
            raise StorageIOError("create_directory", str(self.path.parent), e) from e

        temp_path: str | None = None
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=".tmp_",
                suffix=".json",
            )
            os.close(fd)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(records, ensure_ascii=False))
                await f.flush()
                os.fsync(f.fileno())

            await aiofiles.os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if temp_path is not None:
                try:
                    await aiofiles.os.remove(temp_path)
                except OSError:
                    pass
            raise StorageIOError("write_json", str(self.path), e) from e
