"""
In-memory stand-ins for async Cosmos DB handles.

They raise the real ``azure.cosmos`` exceptions, so stores under test
see the same failure types as against a live account. Set ``fail_with``
on a container to make every call raise, simulating an outage.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import AsyncIterator
from typing import Any

from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


class FakeContainer:
    """Minimal async Cosmos container keeping documents in a dict."""

    def __init__(self, container_id: str = "characters") -> None:
        self.id = container_id
        self.docs: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.fail_with: Exception | None = None
        self._etag_counter = 0

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def _store(self, doc: dict[str, Any]) -> dict[str, Any]:
        self._etag_counter += 1
        stored = copy.deepcopy(doc)
        stored.update(
            {
                "_rid": f"rid-{doc['id']}",
                "_self": f"dbs/x/colls/y/docs/{doc['id']}",
                "_etag": f'"etag-{self._etag_counter}"',
                "_attachments": "attachments/",
                "_ts": 1700000000 + self._etag_counter,
            }
        )
        self.docs[doc["id"]] = stored
        return copy.deepcopy(stored)

    def _not_found(self, item: str) -> CosmosResourceNotFoundError:
        return CosmosResourceNotFoundError(status_code=404, message=f"Entity {item} not found")

    async def create_item(
        self, body: dict[str, Any], enable_automatic_id_generation: bool = False, **kwargs: Any
    ) -> dict[str, Any]:
        self._check("create_item")
        doc = copy.deepcopy(body)
        if "id" not in doc:
            if not enable_automatic_id_generation:
                raise CosmosHttpResponseError(status_code=400, message="id is required")
            doc["id"] = str(uuid.uuid4())
        if doc["id"] in self.docs:
            raise CosmosResourceExistsError(status_code=409, message="Entity already exists")
        return self._store(doc)

    async def upsert_item(self, body: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        self._check("upsert_item")
        return self._store(body)

    async def read_item(self, item: str, partition_key: Any, **kwargs: Any) -> dict[str, Any]:
        self._check("read_item")
        if item not in self.docs or partition_key != item:
            raise self._not_found(item)
        return copy.deepcopy(self.docs[item])

    def query_items(
        self, query: str, parameters: list[dict[str, Any]] | None = None, **kwargs: Any
    ) -> AsyncIterator[dict[str, Any]]:
        self._check("query_items")
        params = {p["name"]: p["value"] for p in parameters or []}
        return self._iterate(params.get("@owner_id"))

    async def _iterate(self, owner_id: str | None) -> AsyncIterator[dict[str, Any]]:
        for doc in list(self.docs.values()):
            if owner_id is None or doc.get("ownerId") == owner_id:
                yield copy.deepcopy(doc)

    async def patch_item(
        self,
        item: str,
        partition_key: Any,
        patch_operations: list[dict[str, Any]],
        **kwargs: Any,
    ) -> dict[str, Any]:
        self._check("patch_item")
        if len(patch_operations) > 10:
            raise CosmosHttpResponseError(status_code=400, message="Too many patch operations")
        if item not in self.docs:
            raise self._not_found(item)
        doc = copy.deepcopy(self.docs[item])
        for op in patch_operations:
            assert op["op"] == "set"
            doc[_unescape(op["path"][1:])] = copy.deepcopy(op["value"])
        return self._store(doc)

    async def replace_item(
        self,
        item: str,
        body: dict[str, Any],
        etag: str | None = None,
        match_condition: Any = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        self._check("replace_item")
        if item not in self.docs:
            raise self._not_found(item)
        if etag is not None and self.docs[item]["_etag"] != etag:
            raise CosmosAccessConditionFailedError(status_code=412, message="Precondition failed")
        return self._store(body)

    async def delete_item(self, item: str, partition_key: Any, **kwargs: Any) -> None:
        self._check("delete_item")
        if item not in self.docs:
            raise self._not_found(item)
        del self.docs[item]


class FakeDatabase:
    def __init__(self, database_id: str = "character-sheets") -> None:
        self.id = database_id
        self.created_containers: list[dict[str, Any]] = []

    async def create_container_if_not_exists(self, id: str, **kwargs: Any) -> FakeContainer:
        self.created_containers.append({"id": id, **kwargs})
        return FakeContainer(id)


class FakeClient:
    def __init__(self) -> None:
        self.closed = False
        self.database = FakeDatabase()
        self.created_databases: list[str] = []

    async def create_database_if_not_exists(self, id: str, **kwargs: Any) -> FakeDatabase:
        self.created_databases.append(id)
        return self.database

    async def close(self) -> None:
        self.closed = True
