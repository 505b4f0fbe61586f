"""Tests for settings loading and backend factories."""

from unittest.mock import patch

import pytest

from blob_manager import connect
from blob_manager.config import BlobManagerSettings, load_settings
from blob_manager.constants import CLIENT_ACCOUNTS_TABLE
from blob_manager.errors import ConfigError
from blob_manager.storage import make_blob_store, make_table_store
from blob_manager.storage.memory import MemoryBlobStore, MemoryTableStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove settings variables from the environment."""
    for var in ("AZURE_STORAGE_CONNECTION_STRING", "BLOB_MANAGER_TABLE", "BLOB_MANAGER_PROVIDER"):
        monkeypatch.delenv(var, raising=False)


class TestSettings:
    """Test settings validation."""

    def test_defaults(self):
        settings = BlobManagerSettings(provider="memory")

        assert settings.table_name == CLIENT_ACCOUNTS_TABLE
        assert settings.data_partition == "data"
        assert settings.container_partition == "container"
        assert settings.retry_total == 3

    def test_azure_requires_connection_string(self):
        with pytest.raises(ConfigError):
            BlobManagerSettings(provider="azure")

    def test_unknown_provider(self):
        with pytest.raises(ConfigError):
            BlobManagerSettings(provider="s3")


class TestLoadSettings:
    """Test loading settings from YAML and the environment."""

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "blob_manager:\n"
            "  provider: memory\n"
            "  table_name: Accounts\n"
            "  default_options:\n"
            "    timeoutIntervalInMs: 1500\n"
        )

        settings = load_settings(path)

        assert settings.provider == "memory"
        assert settings.table_name == "Accounts"
        assert settings.default_options.timeout_interval_in_ms == 1500

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("provider: memory\ntable_name: FromFile\n")
        monkeypatch.setenv("BLOB_MANAGER_TABLE", "FromEnv")

        assert load_settings(path).table_name == "FromEnv"

    def test_env_only(self, monkeypatch):
        monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", "UseDevelopmentStorage=true")

        settings = load_settings()

        assert settings.provider == "azure"
        assert settings.connection_string == "UseDevelopmentStorage=true"

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BLOB_MANAGER_PROVIDER", "memory")

        settings = load_settings(tmp_path / "absent.yaml")

        assert settings.table_name == CLIENT_ACCOUNTS_TABLE

    def test_nothing_configured(self):
        with pytest.raises(ConfigError):
            load_settings()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("provider: [memory\n")

        with pytest.raises(ConfigError):
            load_settings(path)

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- memory\n")

        with pytest.raises(ConfigError):
            load_settings(path)


class TestFactory:
    """Test backend construction."""

    def test_memory_backends(self):
        settings = BlobManagerSettings(provider="memory")

        table_store = make_table_store(settings)

        assert isinstance(table_store, MemoryTableStore)
        assert settings.table_name in table_store.tables
        assert isinstance(make_blob_store(settings), MemoryBlobStore)

    def test_azure_backends(self):
        settings = BlobManagerSettings(provider="azure", connection_string="conn", retry_total=7)

        with patch("blob_manager.storage.factory.AzureTableStore") as table_cls, \
                patch("blob_manager.storage.factory.AzureBlobStore") as blob_cls:
            assert make_table_store(settings) is table_cls.return_value
            assert make_blob_store(settings) is blob_cls.return_value

        table_cls.assert_called_once_with("conn", retry_total=7)
        blob_cls.assert_called_once_with("conn", retry_total=7)

    def test_connect_shares_client_manager(self):
        client_manager, storage_manager = connect("key", BlobManagerSettings(provider="memory"))

        assert storage_manager.client_manager is client_manager
        assert client_manager.client_key == "key"
        assert storage_manager.client_key == "key"
