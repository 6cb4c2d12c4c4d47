"""
Shared test configuration and fixtures.

Remote stores are wired to the in-memory fakes in ``fakes.py`` so the
Cosmos and hybrid stores can be tested without a live account.
"""

from __future__ import annotations

import tempfile
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest

from character_sheet_storage.storage import (
    CosmosCharacterStore,
    CosmosHandles,
    HybridCharacterStore,
    LocalCharacterStore,
    StorageConfig,
)

from .fakes import FakeClient, FakeContainer


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_dir: Path) -> StorageConfig:
    """Config with local storage in a temp dir and no remote endpoint."""
    return StorageConfig(local_path=temp_dir)


@pytest.fixture
def fake_container() -> FakeContainer:
    return FakeContainer()


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def handles(fake_client: FakeClient, fake_container: FakeContainer) -> CosmosHandles:
    """Remote handles wired to the in-memory container."""
    return CosmosHandles(
        endpoint="https://test.documents.azure.com:443/",
        client=fake_client,  # type: ignore[arg-type]
        database=fake_client.database,  # type: ignore[arg-type]
        container=fake_container,  # type: ignore[arg-type]
    )


@pytest.fixture
async def local_store(config: StorageConfig) -> AsyncIterator[LocalCharacterStore]:
    store = LocalCharacterStore(config)
    yield store
    await store.close()


@pytest.fixture
def remote_store(handles: CosmosHandles) -> CosmosCharacterStore:
    return CosmosCharacterStore(handles)


@pytest.fixture
async def hybrid_store(
    local_store: LocalCharacterStore, remote_store: CosmosCharacterStore
) -> AsyncIterator[HybridCharacterStore]:
    """Hybrid store whose remote backend is configured."""
    store = HybridCharacterStore(local_store, remote_store)
    yield store
    await store.close()


@pytest.fixture
async def local_only_store(
    local_store: LocalCharacterStore,
) -> AsyncIterator[HybridCharacterStore]:
    """Hybrid store whose remote backend was never configured."""
    store = HybridCharacterStore(local_store, CosmosCharacterStore(CosmosHandles()))
    yield store
    await store.close()
