"""Tests for StorageConfig."""

from __future__ import annotations

from pathlib import Path

import pytest

from character_sheet_storage.storage import CosmosAuthMethod, StorageConfig
from character_sheet_storage.storage.base import DEFAULT_LOCAL_PATH

_ENV_VARS = [
    "CHARACTER_COSMOS_ENDPOINT",
    "CHARACTER_COSMOS_KEY",
    "CHARACTER_COSMOS_AUTH_METHOD",
    "CHARACTER_COSMOS_DATABASE",
    "CHARACTER_COSMOS_CONTAINER",
    "CHARACTER_COSMOS_CATALOG_CONTAINER",
    "AZURE_TENANT_ID",
    "AZURE_CLIENT_ID",
    "AZURE_CLIENT_SECRET",
    "CHARACTER_LOCAL_STORAGE_PATH",
    "CHARACTER_LOCAL_STORAGE_KEY",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestStorageConfig:
    """Defaults and derived paths."""

    def test_minimal_config(self) -> None:
        config = StorageConfig()

        assert config.cosmos_endpoint is None
        assert config.cosmos_auth_method == CosmosAuthMethod.KEY
        assert config.cosmos_database == "character-sheets"
        assert config.cosmos_container == "characters"
        assert config.cosmos_catalog_container == "catalogs"
        assert config.local_storage_key == "dragonbane_characters"
        assert config.options == {}

    def test_local_file_default(self) -> None:
        assert StorageConfig().local_file == DEFAULT_LOCAL_PATH / "dragonbane_characters.json"

    def test_local_file_custom(self, temp_dir: Path) -> None:
        config = StorageConfig(local_path=str(temp_dir), local_storage_key="sheets")

        assert config.local_file == temp_dir / "sheets.json"


class TestFromEnvironment:
    def test_empty_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        config = StorageConfig.from_environment()

        assert config == StorageConfig()

    def test_all_variables(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("CHARACTER_COSMOS_ENDPOINT", "https://test.documents.azure.com:443/")
        clean_env.setenv("CHARACTER_COSMOS_AUTH_METHOD", "SERVICE_PRINCIPAL")
        clean_env.setenv("CHARACTER_COSMOS_DATABASE", "db")
        clean_env.setenv("CHARACTER_COSMOS_CONTAINER", "sheets")
        clean_env.setenv("CHARACTER_COSMOS_CATALOG_CONTAINER", "refs")
        clean_env.setenv("AZURE_TENANT_ID", "tenant")
        clean_env.setenv("AZURE_CLIENT_ID", "client")
        clean_env.setenv("AZURE_CLIENT_SECRET", "secret")
        clean_env.setenv("CHARACTER_LOCAL_STORAGE_PATH", "/tmp/sheets")
        clean_env.setenv("CHARACTER_LOCAL_STORAGE_KEY", "my_key")

        config = StorageConfig.from_environment()

        assert config.cosmos_endpoint == "https://test.documents.azure.com:443/"
        assert config.cosmos_auth_method == CosmosAuthMethod.SERVICE_PRINCIPAL
        assert config.cosmos_database == "db"
        assert config.cosmos_container == "sheets"
        assert config.cosmos_catalog_container == "refs"
        assert config.azure_tenant_id == "tenant"
        assert config.azure_client_id == "client"
        assert config.azure_client_secret == "secret"
        assert config.local_file == Path("/tmp/sheets/my_key.json")

    def test_blank_endpoint_disables_remote(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("CHARACTER_COSMOS_ENDPOINT", "")

        assert StorageConfig.from_environment().cosmos_endpoint is None

    def test_unknown_auth_method_falls_back_to_key(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("CHARACTER_COSMOS_AUTH_METHOD", "kerberos")

        assert StorageConfig.from_environment().cosmos_auth_method == CosmosAuthMethod.KEY


class TestFromFile:
    def test_missing_file_gives_defaults(self, temp_dir: Path) -> None:
        assert StorageConfig.from_file(temp_dir / "absent.yaml") == StorageConfig()

    def test_storage_section(self, temp_dir: Path) -> None:
        settings = temp_dir / "settings.yaml"
        settings.write_text(
            "storage:\n"
            "  cosmos_endpoint: https://test.documents.azure.com:443/\n"
            "  cosmos_auth_method: managed_identity\n"
            "  azure_client_id: client\n"
            "  local_storage_key: sheets\n"
            "  theme: dark\n",
            encoding="utf-8",
        )

        config = StorageConfig.from_file(settings)

        assert config.cosmos_endpoint == "https://test.documents.azure.com:443/"
        assert config.cosmos_auth_method == CosmosAuthMethod.MANAGED_IDENTITY
        assert config.azure_client_id == "client"
        assert config.local_storage_key == "sheets"
        assert config.options == {"theme": "dark"}

    def test_local_path_is_expanded(self, temp_dir: Path) -> None:
        settings = temp_dir / "settings.yaml"
        settings.write_text("storage:\n  local_path: ~/sheets\n", encoding="utf-8")

        config = StorageConfig.from_file(settings)

        assert config.local_file == Path.home() / "sheets" / "dragonbane_characters.json"

    def test_empty_file_gives_defaults(self, temp_dir: Path) -> None:
        settings = temp_dir / "settings.yaml"
        settings.write_text("", encoding="utf-8")

        assert StorageConfig.from_file(settings) == StorageConfig()

    def test_non_mapping_section_rejected(self, temp_dir: Path) -> None:
        settings = temp_dir / "settings.yaml"
        settings.write_text("storage:\n  - a\n  - b\n", encoding="utf-8")

        with pytest.raises(ValueError):
            StorageConfig.from_file(settings)

    @pytest.mark.parametrize("content", ["- a\n- b\n", "just a string\n", "42\n"])
    def test_non_mapping_file_rejected(self, temp_dir: Path, content: str) -> None:
        settings = temp_dir / "settings.yaml"
        settings.write_text(content, encoding="utf-8")

        with pytest.raises(ValueError):
            StorageConfig.from_file(settings)
