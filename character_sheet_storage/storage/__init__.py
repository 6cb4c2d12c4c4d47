"""
Character storage backends.

Provides local file storage and Cosmos DB storage for character
records with consistent interfaces, plus the hybrid store that
falls back from one to the other.

Example:
    >>> from character_sheet_storage.storage import StorageConfig, open_character_store
    >>> config = StorageConfig(
    ...     cosmos_endpoint="https://example.documents.azure.com:443/",
    ...     cosmos_key="...",
    ... )
    >>> store = open_character_store(config)
"""

from .base import CharacterStore, CosmosAuthMethod, StorageConfig
from .cosmos import (
    CosmosCharacterStore,
    CosmosHandles,
    connect_cosmos,
    remote_available,
)
from .hybrid import HybridCharacterStore, open_character_store
from .local import LocalCharacterStore

__all__ = [
    # Configuration
    "StorageConfig",
    "CosmosAuthMethod",
    # Storage implementations
    "CharacterStore",
    "LocalCharacterStore",
    "CosmosCharacterStore",
    "HybridCharacterStore",
    "open_character_store",
    # Remote handles
    "CosmosHandles",
    "connect_cosmos",
    "remote_available",
]
