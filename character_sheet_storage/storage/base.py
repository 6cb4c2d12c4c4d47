"""
Abstract character store interface.

Defines the contract that all storage backends must implement,
plus the configuration shared by them.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

DEFAULT_LOCAL_PATH = Path.home() / ".character-sheets"
DEFAULT_STORAGE_KEY = "dragonbane_characters"


class CosmosAuthMethod(Enum):
    """Authentication method for Cosmos DB.

    KEY: Use the account key (the default for a single-app deployment)
    DEFAULT_CREDENTIAL: Use Azure DefaultAzureCredential
        - Works with Azure CLI, Managed Identity, Environment variables, etc.
    MANAGED_IDENTITY: Use Azure Managed Identity explicitly
    SERVICE_PRINCIPAL: Use Service Principal with client_id/client_secret
    """

    KEY = "key"
    DEFAULT_CREDENTIAL = "default_credential"
    MANAGED_IDENTITY = "managed_identity"
    SERVICE_PRINCIPAL = "service_principal"


@dataclass
class StorageConfig:
    """Configuration for character storage.

    Leaving ``cosmos_endpoint`` unset disables the remote store entirely;
    every operation is then served by the local store.

    Environment Variables:
        CHARACTER_COSMOS_ENDPOINT: Cosmos DB endpoint URL
        CHARACTER_COSMOS_KEY: Cosmos DB key (if using key auth)
        CHARACTER_COSMOS_AUTH_METHOD: Auth method (default: key)
        CHARACTER_COSMOS_DATABASE: Database name (default: character-sheets)
        CHARACTER_COSMOS_CONTAINER: Records container (default: characters)
        CHARACTER_COSMOS_CATALOG_CONTAINER: Reference data container (default: catalogs)
        AZURE_TENANT_ID: Azure tenant ID (for service principal)
        AZURE_CLIENT_ID: Azure client ID (for service principal/managed identity)
        AZURE_CLIENT_SECRET: Azure client secret (for service principal)
        CHARACTER_LOCAL_STORAGE_PATH: Directory holding the local collection
        CHARACTER_LOCAL_STORAGE_KEY: Storage key (file stem) of the local collection
    """

    # Cosmos DB connection settings
    cosmos_endpoint: str | None = None
    cosmos_auth_method: CosmosAuthMethod = CosmosAuthMethod.KEY
    cosmos_key: str | None = None  # Only used if auth_method is KEY
    cosmos_database: str = "character-sheets"
    cosmos_container: str = "characters"
    cosmos_catalog_container: str = "catalogs"

    # Azure AD authentication settings
    azure_tenant_id: str | None = None
    azure_client_id: str | None = None
    azure_client_secret: str | None = None

    # Local storage settings
    local_path: str | Path | None = None
    local_storage_key: str = DEFAULT_STORAGE_KEY

    # Additional options
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def local_file(self) -> Path:
        """Path of the JSON file backing the local store."""
        base = Path(self.local_path) if self.local_path else DEFAULT_LOCAL_PATH
        return base / f"{self.local_storage_key}.json"

    @classmethod
    def from_environment(cls) -> StorageConfig:
        """Create configuration from environment variables."""
        return cls(
            cosmos_endpoint=os.environ.get("CHARACTER_COSMOS_ENDPOINT") or None,
            cosmos_auth_method=_parse_auth_method(
                os.environ.get("CHARACTER_COSMOS_AUTH_METHOD", "key")
            ),
            cosmos_key=os.environ.get("CHARACTER_COSMOS_KEY") or None,
            cosmos_database=os.environ.get("CHARACTER_COSMOS_DATABASE", "character-sheets"),
            cosmos_container=os.environ.get("CHARACTER_COSMOS_CONTAINER", "characters"),
            cosmos_catalog_container=os.environ.get(
                "CHARACTER_COSMOS_CATALOG_CONTAINER", "catalogs"
            ),
            azure_tenant_id=os.environ.get("AZURE_TENANT_ID"),
            azure_client_id=os.environ.get("AZURE_CLIENT_ID"),
            azure_client_secret=os.environ.get("AZURE_CLIENT_SECRET"),
            local_path=os.environ.get("CHARACTER_LOCAL_STORAGE_PATH"),
            local_storage_key=os.environ.get("CHARACTER_LOCAL_STORAGE_KEY", DEFAULT_STORAGE_KEY),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> StorageConfig:
        """Create configuration from a YAML settings file.

        Settings live under a ``storage`` section:

        ```yaml
        storage:
          cosmos_endpoint: "https://example.documents.azure.com:443/"
          cosmos_key: "..."
          local_path: "~/.character-sheets"
        ```

        Keys that are not config fields are kept in ``options``.
        A missing file yields the defaults.
        """
        path = Path(path).expanduser()
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, Mapping):
            raise ValueError(f"Settings file {path} must contain a mapping")

        section = data.get("storage") or {}
        if not isinstance(section, Mapping):
            raise ValueError(f"'storage' section in {path} must be a mapping")

        known = {f.name for f in fields(cls)} - {"options"}
        kwargs: dict[str, Any] = {}
        options: dict[str, Any] = {}
        for key, value in section.items():
            if key in known:
                kwargs[key] = value
            else:
                options[key] = value

        if "cosmos_auth_method" in kwargs:
            kwargs["cosmos_auth_method"] = _parse_auth_method(str(kwargs["cosmos_auth_method"]))
        if kwargs.get("local_path"):
            kwargs["local_path"] = Path(str(kwargs["local_path"])).expanduser()

        return cls(options=options, **kwargs)


def _parse_auth_method(value: str) -> CosmosAuthMethod:
    try:
        return CosmosAuthMethod(value.lower())
    except ValueError:
        return CosmosAuthMethod.KEY


class CharacterStore(ABC):
    """Abstract interface for character record storage.

    All storage implementations (local, cosmos, hybrid) must
    implement this interface. Records are plain dicts carrying
    ``id`` and ``ownerId`` alongside their payload fields.
    """

    @abstractmethod
    async def create(self, owner_id: str, payload: Mapping[str, Any]) -> str:
        """Store a new record.

        Args:
            owner_id: Identity of the owning user
            payload: Character fields; ``id``/``ownerId`` keys are ignored

        Returns:
            The id assigned by the backend
        """
        ...

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> list[dict[str, Any]]:
        """Return every record whose ``ownerId`` equals ``owner_id``."""
        ...

    @abstractmethod
    async def get(self, record_id: str) -> dict[str, Any] | None:
        """Return the record, or None if it does not exist."""
        ...

    @abstractmethod
    async def update(self, record_id: str, changes: Mapping[str, Any]) -> None:
        """Shallow-merge ``changes`` onto the record.

        Only the top-level keys present in ``changes`` are written;
        nested values replace the stored value wholesale.
        """
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Remove the record. Deleting a missing id is not an error."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the storage connection and cleanup resources."""
        ...
