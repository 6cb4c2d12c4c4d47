"""
Hybrid character storage with automatic local fallback.

Callers get one store; which backend served them is invisible.

Routing:
- Remote not configured: every operation goes straight to local storage.
- Remote configured: the operation runs against Cosmos DB. If it raises,
  the failure is logged and the same operation, with the same arguments,
  runs against local storage instead.

Nothing is ever written to both backends and results are never merged.
A record updated through a different backend than the one that created
it silently diverges; there is no reconciliation.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import TracebackType
from typing import Any

from ..catalog import ReferenceCatalog
from ..logging_utils import StorageLoggerAdapter, get_storage_logger
from ..records import validate_changes, validate_owner_id, validate_record_id
from .base import CharacterStore, StorageConfig
from .cosmos import CosmosCharacterStore, connect_cosmos
from .local import LocalCharacterStore

logger = StorageLoggerAdapter(get_storage_logger("hybrid"), {"store": "characters"})


class HybridCharacterStore(CharacterStore):
    """Cosmos DB first, local file on failure.

    Remote errors are absorbed here and never reach the caller. Errors
    raised by the local store, whether it was called directly or as a
    fallback, propagate unmodified since no backend is left to try.
    """

    def __init__(
        self,
        local: LocalCharacterStore,
        remote: CosmosCharacterStore | None = None,
    ) -> None:
        """Initialize hybrid storage.

        Args:
            local: Local store, always used when remote is unavailable or fails
            remote: Cosmos store; None disables remote access entirely
        """
        self._local = local
        self._remote = remote
        self._fallback_count = 0

    @property
    def remote_available(self) -> bool:
        """Whether operations are attempted against Cosmos DB first."""
        return self._remote is not None and self._remote.available

    @property
    def fallback_count(self) -> int:
        """Number of remote failures absorbed by falling back to local."""
        return self._fallback_count

    async def create(self, owner_id: str, payload: Mapping[str, Any]) -> str:
        validate_owner_id(owner_id)
        validate_changes(payload)
        return await self._dispatch("create", owner_id, payload)

    async def list_by_owner(self, owner_id: str) -> list[dict[str, Any]]:
        validate_owner_id(owner_id)
        return await self._dispatch("list_by_owner", owner_id)

    async def get(self, record_id: str) -> dict[str, Any] | None:
        validate_record_id(record_id)
        return await self._dispatch("get", record_id)

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> None:
        validate_record_id(record_id)
        validate_changes(changes)
        await self._dispatch("update", record_id, changes)

    async def delete(self, record_id: str) -> None:
        validate_record_id(record_id)
        await self._dispatch("delete", record_id)

    async def _dispatch(self, operation: str, *args: Any) -> Any:
        """Run ``operation`` remotely, retrying it locally if that fails."""
        if not self.remote_available:
            return await getattr(self._local, operation)(*args)

        try:
            return await getattr(self._remote, operation)(*args)
        except Exception as e:
            self._fallback_count += 1
            logger.warning(
                f"Remote {operation} failed, falling back to local storage: {e}",
                extra={"operation": operation, "error_type": type(e).__name__},
            )

        return await getattr(self._local, operation)(*args)

    def catalog(self, name: str, seed: list[Any]) -> ReferenceCatalog:
        """Reference catalog stored next to the character records.

        Bound to the catalogs container when the remote store is available,
        otherwise it serves ``seed`` only.
        """
        container = None
        if self.remote_available:
            container = self._remote.handles.catalog_container  # type: ignore[union-attr]
        return ReferenceCatalog(name, seed, container)

    async def provision(self) -> None:
        """Create the remote database and container if needed.

        Best effort: failures are logged and the store keeps working.
        """
        if not self.remote_available:
            return
        try:
            await self._remote.provision()  # type: ignore[union-attr]
        except Exception as e:
            logger.warning(
                f"Could not provision Cosmos DB container: {e}",
                extra={"operation": "provision", "error_type": type(e).__name__},
            )

    async def close(self) -> None:
        """Close all connections."""
        await self._local.close()
        if self._remote is not None:
            await self._remote.close()

    async def __aenter__(self) -> HybridCharacterStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


def open_character_store(config: StorageConfig | None = None) -> HybridCharacterStore:
    """Build the hybrid store, with its backends, from configuration.

    Args:
        config: Storage configuration; read from the environment when omitted

    Example:
        >>> async with open_character_store() as store:
        ...     character_id = await store.create(user_id, new_character_sheet())
    """
    config = config or StorageConfig.from_environment()
    local = LocalCharacterStore(config)
    remote = CosmosCharacterStore(connect_cosmos(config))
    return HybridCharacterStore(local, remote)
