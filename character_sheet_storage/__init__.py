"""
Character Sheet Storage

Persistence layer for tabletop role-playing character sheets.

Provides:
- Cosmos DB storage for character records
- Local single-file storage for offline use
- A hybrid store that falls back to local storage whenever Cosmos DB
  is not configured or a remote call fails
- Reference catalogs (spells, abilities) with bundled fallback data

Usage:

    >>> from character_sheet_storage import open_character_store, new_character_sheet
    >>> async with open_character_store() as store:
    ...     character_id = await store.create(user_id, new_character_sheet())
    ...     sheet = await store.get(character_id)
    ...     await store.update(character_id, {"name": "Thorn"})
    ...     characters = await store.list_by_owner(user_id)
    ...     await store.delete(character_id)

Configuration:

    # From CHARACTER_COSMOS_* / CHARACTER_LOCAL_* environment variables
    config = StorageConfig.from_environment()

    # From a YAML settings file
    config = StorageConfig.from_file("~/.character-sheets/settings.yaml")
"""

from .catalog import ReferenceCatalog

# Exceptions
from .exceptions import (
    AuthenticationError,
    CharacterStorageError,
    RecordNotFoundError,
    StorageConnectionError,
    StorageIOError,
    ValidationError,
)
from .logging_utils import configure_structured_logging
from .records import ID_FIELD, OWNER_FIELD, strip_identity_fields
from .sheets import editable_fields, ensure_note_sections, new_character_sheet

# Storage
from .storage import (
    CharacterStore,
    CosmosAuthMethod,
    CosmosCharacterStore,
    CosmosHandles,
    HybridCharacterStore,
    LocalCharacterStore,
    StorageConfig,
    connect_cosmos,
    open_character_store,
    remote_available,
)

__all__ = [
    # Storage
    "CharacterStore",
    "LocalCharacterStore",
    "CosmosCharacterStore",
    "HybridCharacterStore",
    "open_character_store",
    "CosmosHandles",
    "connect_cosmos",
    "remote_available",
    "StorageConfig",
    "CosmosAuthMethod",
    # Records and sheets
    "ID_FIELD",
    "OWNER_FIELD",
    "strip_identity_fields",
    "new_character_sheet",
    "ensure_note_sections",
    "editable_fields",
    # Catalogs
    "ReferenceCatalog",
    # Logging
    "configure_structured_logging",
    # Exceptions
    "CharacterStorageError",
    "RecordNotFoundError",
    "ValidationError",
    "StorageIOError",
    "StorageConnectionError",
    "AuthenticationError",
]

__version__ = "0.1.0"
