"""
Reference catalogs (spell schools, heroic abilities).

Each catalog is a single document in the catalogs container:

    {"id": "spells", "entries": [...]}

The bundled seed list is the fallback for every failure: reads never
raise, they return the seed when Cosmos DB is missing, empty or failing.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml
from azure.cosmos.aio import ContainerProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError

logger = logging.getLogger(__name__)


class ReferenceCatalog:
    """Read-mostly game reference data, Cosmos first with a bundled seed."""

    def __init__(
        self,
        name: str,
        seed: list[Any],
        container: ContainerProxy | None = None,
    ) -> None:
        """Initialize a catalog.

        Args:
            name: Catalog name, also the document id
            seed: Bundled entries, used to initialize Cosmos and as fallback
            container: Catalogs container handle; None means seed only
        """
        self.name = name
        self._seed = list(seed)
        self._container = container

    @classmethod
    def from_file(
        cls,
        name: str,
        path: str | Path,
        container: ContainerProxy | None = None,
        key: str | None = None,
    ) -> ReferenceCatalog:
        """Load the seed from a YAML (or JSON) file.

        Args:
            name: Catalog name
            path: Seed file
            container: Catalogs container handle
            key: Top-level key holding the entry list, when the file is a mapping
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if key is not None:
            data = data[key]
        if not isinstance(data, list):
            raise ValueError(f"Catalog seed {path} must contain a list of entries")
        return cls(name, data, container)

    def local_entries(self) -> list[Any]:
        """The bundled entries, without touching Cosmos DB."""
        return copy.deepcopy(self._seed)

    async def initialize(self) -> None:
        """Write the seed document if the catalog does not exist yet.

        Errors are logged, never raised.
        """
        if self._container is None:
            return
        try:
            if await self._read_document() is None:
                await self._write_seed()
        except Exception as e:
            logger.error(f"Error initializing catalog {self.name}: {e}")

    async def get_entries(self) -> list[Any]:
        """Catalog entries from Cosmos DB, seeding it when empty.

        Falls back to the bundled entries on any error.
        """
        if self._container is None:
            return self.local_entries()

        try:
            doc = await self._read_document()
            if doc is None:
                await self._write_seed()
                return self.local_entries()
            return list(doc.get("entries", []))
        except Exception as e:
            logger.error(f"Error fetching catalog {self.name}: {e}")
            return self.local_entries()

    async def _read_document(self) -> dict[str, Any] | None:
        try:
            return await self._container.read_item(  # type: ignore[union-attr]
                item=self.name, partition_key=self.name
            )
        except CosmosResourceNotFoundError:
            return None

    async def _write_seed(self) -> None:
        await self._container.upsert_item(  # type: ignore[union-attr]
            {"id": self.name, "entries": self.local_entries()}
        )
        logger.info(f"Catalog {self.name} initialized in Cosmos DB")
