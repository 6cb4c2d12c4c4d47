"""
Cosmos DB character storage.

Stores one document per character in a single container. The container
is partitioned on ``/id`` so a record can be point-read from its id
alone; listing by owner is a query on the indexed ``ownerId`` field.

Client and container handles are built once by ``connect_cosmos`` and
injected into the store. Building them does no network I/O, so
``remote_available`` only says whether the remote store was configured,
not whether it is currently reachable.

Supports multiple authentication methods:
- Key-based authentication
- Azure AD via DefaultAzureCredential
- Azure Managed Identity
- Service Principal
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from azure.core import MatchConditions
from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from ..exceptions import AuthenticationError, RecordNotFoundError, StorageConnectionError
from ..records import (
    OWNER_FIELD,
    build_document,
    shallow_merge,
    strip_identity_fields,
    validate_changes,
    validate_owner_id,
    validate_record_id,
)
from .base import CharacterStore, CosmosAuthMethod, StorageConfig

logger = logging.getLogger(__name__)

# Cosmos rejects patch requests carrying more than this many operations.
MAX_PATCH_OPERATIONS = 10

# Properties Cosmos adds to every document; never part of a record.
SYSTEM_FIELDS = ("_rid", "_self", "_etag", "_attachments", "_ts")

PARTITION_KEY_PATH = "/id"


def _identity_class(name: str, endpoint: str) -> Any:
    """Import ``azure.identity.aio.<name>``; azure-identity is an optional extra."""
    try:
        module = importlib.import_module("azure.identity.aio")
    except ImportError as e:
        raise AuthenticationError(
            endpoint,
            f"{name} needs the azure-identity package "
            "(pip install 'character-sheet-storage[aad]')",
        ) from e
    return getattr(module, name)


def _get_credential(config: StorageConfig) -> Any:
    """Credential for ``CosmosClient``: the account key or an Azure AD credential.

    Raises:
        AuthenticationError: If the settings for the chosen method are incomplete
    """
    endpoint = config.cosmos_endpoint or "cosmos"
    method = config.cosmos_auth_method

    if method == CosmosAuthMethod.KEY:
        if not config.cosmos_key:
            raise AuthenticationError(endpoint, "cosmos_key required for KEY authentication")
        return config.cosmos_key

    if method == CosmosAuthMethod.DEFAULT_CREDENTIAL:
        return _identity_class("DefaultAzureCredential", endpoint)()

    if method == CosmosAuthMethod.MANAGED_IDENTITY:
        credential_cls = _identity_class("ManagedIdentityCredential", endpoint)
        # user-assigned identity when a client id is set
        if config.azure_client_id:
            return credential_cls(client_id=config.azure_client_id)
        return credential_cls()

    if method == CosmosAuthMethod.SERVICE_PRINCIPAL:
        if not (config.azure_tenant_id and config.azure_client_id and config.azure_client_secret):
            raise AuthenticationError(
                endpoint,
                "azure_tenant_id, azure_client_id and azure_client_secret "
                "required for SERVICE_PRINCIPAL authentication",
            )
        return _identity_class("ClientSecretCredential", endpoint)(
            tenant_id=config.azure_tenant_id,
            client_id=config.azure_client_id,
            client_secret=config.azure_client_secret,
        )

    raise AuthenticationError(endpoint, f"Unsupported auth method: {method}")


@dataclass
class CosmosHandles:
    """Process-wide Cosmos DB handles.

    Any handle left as None means the remote store was not configured
    (or could not be constructed) and must not be used.
    """

    endpoint: str | None = None
    client: CosmosClient | None = None
    database: DatabaseProxy | None = None
    container: ContainerProxy | None = None
    catalog_container: ContainerProxy | None = None
    credential: Any = None

    async def close(self) -> None:
        """Close the Cosmos client and any Azure AD credential."""
        if self.client is not None:
            await self.client.close()
            self.client = None
            self.database = None
            self.container = None
            self.catalog_container = None

        # AAD credentials hold their own HTTP sessions; key strings don't
        if self.credential is not None and hasattr(self.credential, "close"):
            await self.credential.close()
        self.credential = None


def remote_available(handles: CosmosHandles | None) -> bool:
    """True iff both the client and the records container were constructed."""
    return handles is not None and handles.client is not None and handles.container is not None


def connect_cosmos(config: StorageConfig) -> CosmosHandles:
    """Build Cosmos handles from configuration without touching the network.

    Missing configuration or a construction failure yields empty handles,
    which makes ``remote_available`` false.
    """
    if not config.cosmos_endpoint:
        logger.info("Cosmos DB endpoint not configured; character storage is local only")
        return CosmosHandles()

    try:
        credential = _get_credential(config)
        client = CosmosClient(config.cosmos_endpoint, credential=credential)
        database = client.get_database_client(config.cosmos_database)
        container = database.get_container_client(config.cosmos_container)
        catalog_container = database.get_container_client(config.cosmos_catalog_container)
    except Exception as e:
        logger.warning(f"Cosmos DB not available, running with local storage only: {e}")
        return CosmosHandles(endpoint=config.cosmos_endpoint)

    logger.info(
        f"Cosmos DB handles ready: {config.cosmos_endpoint} "
        f"(database={config.cosmos_database}, "
        f"container={config.cosmos_container}, "
        f"auth={config.cosmos_auth_method.value})"
    )
    return CosmosHandles(
        endpoint=config.cosmos_endpoint,
        client=client,
        database=database,
        container=container,
        catalog_container=catalog_container,
        credential=credential,
    )


def _strip_system_fields(doc: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in doc.items() if key not in SYSTEM_FIELDS}


def _patch_path(key: str) -> str:
    """JSON Pointer path for a top-level key."""
    return "/" + key.replace("~", "~0").replace("/", "~1")


class CosmosCharacterStore(CharacterStore):
    """Cosmos DB character storage.

    Container schema:
    {
        "id": "{generated id}",      // partition key
        "ownerId": "{auth user id}", // indexed, list filter
        ...payload fields
    }

    Errors from the service propagate unchanged; this store never
    retries or falls back.
    """

    def __init__(self, handles: CosmosHandles) -> None:
        """Initialize Cosmos DB storage.

        Args:
            handles: Handles built by ``connect_cosmos``
        """
        self.handles = handles

    @property
    def available(self) -> bool:
        return remote_available(self.handles)

    @property
    def _container(self) -> ContainerProxy:
        if not self.available:
            raise StorageConnectionError(self.handles.endpoint or "cosmos")
        return self.handles.container  # type: ignore[return-value]

    async def create(self, owner_id: str, payload: Mapping[str, Any]) -> str:
        document = build_document(owner_id, payload)
        created = await self._container.create_item(
            body=document, enable_automatic_id_generation=True
        )
        logger.debug(f"Created remote character {created['id']} for owner {owner_id}")
        return created["id"]

    async def list_by_owner(self, owner_id: str) -> list[dict[str, Any]]:
        validate_owner_id(owner_id)
        query = f"SELECT * FROM c WHERE c.{OWNER_FIELD} = @owner_id"
        params: list[dict[str, Any]] = [{"name": "@owner_id", "value": owner_id}]

        records: list[dict[str, Any]] = []
        async for doc in self._container.query_items(query=query, parameters=params):
            records.append(_strip_system_fields(doc))
        return records

    async def get(self, record_id: str) -> dict[str, Any] | None:
        validate_record_id(record_id)
        try:
            doc = await self._container.read_item(item=record_id, partition_key=record_id)
        except CosmosResourceNotFoundError:
            return None
        return _strip_system_fields(doc)

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> None:
        """Write only the top-level keys in ``changes``.

        Raises:
            RecordNotFoundError: If the document does not exist
        """
        validate_record_id(record_id)
        fields = strip_identity_fields(validate_changes(changes))
        if not fields:
            return

        container = self._container
        if len(fields) <= MAX_PATCH_OPERATIONS:
            operations = [
                {"op": "set", "path": _patch_path(key), "value": value}
                for key, value in fields.items()
            ]
            try:
                await container.patch_item(
                    item=record_id,
                    partition_key=record_id,
                    patch_operations=operations,
                )
            except CosmosResourceNotFoundError as e:
                raise RecordNotFoundError(record_id) from e
            return

        # Too many keys for one patch: replace the whole document, guarded by its etag
        try:
            current = await container.read_item(item=record_id, partition_key=record_id)
        except CosmosResourceNotFoundError as e:
            raise RecordNotFoundError(record_id) from e

        body = _strip_system_fields(shallow_merge(current, fields))
        try:
            await container.replace_item(
                item=record_id,
                body=body,
                etag=current.get("_etag"),
                match_condition=MatchConditions.IfNotModified,
            )
        except CosmosResourceNotFoundError as e:
            raise RecordNotFoundError(record_id) from e

    async def delete(self, record_id: str) -> None:
        validate_record_id(record_id)
        try:
            await self._container.delete_item(item=record_id, partition_key=record_id)
        except CosmosResourceNotFoundError:
            pass  # Already deleted

    async def provision(self) -> None:
        """Create the database, records container and catalogs container if missing."""
        client = self.handles.client
        if client is None or self.handles.database is None or self.handles.container is None:
            raise StorageConnectionError(self.handles.endpoint or "cosmos")

        database = await client.create_database_if_not_exists(id=self.handles.database.id)
        await database.create_container_if_not_exists(
            id=self.handles.container.id,
            partition_key=PartitionKey(path=PARTITION_KEY_PATH),
            indexing_policy=self._get_indexing_policy(),
        )
        logger.info(f"Provisioned Cosmos container {self.handles.container.id}")

        if self.handles.catalog_container is not None:
            await database.create_container_if_not_exists(
                id=self.handles.catalog_container.id,
                partition_key=PartitionKey(path=PARTITION_KEY_PATH),
            )
            logger.info(f"Provisioned Cosmos container {self.handles.catalog_container.id}")

    def _get_indexing_policy(self) -> dict[str, Any]:
        """Get the indexing policy for the container."""
        return {
            "indexingMode": "consistent",
            "automatic": True,
            "includedPaths": [{"path": f"/{OWNER_FIELD}/?"}],
            "excludedPaths": [
                {"path": "/*"},  # Sheet payload is never queried
                {"path": '/"_etag"/?'},
            ],
        }

    async def close(self) -> None:
        """Release the injected handles."""
        await self.handles.close()
