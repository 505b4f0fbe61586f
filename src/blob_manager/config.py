"""Settings for blob-manager, loaded from YAML and the environment."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from .constants import (
    CLIENT_ACCOUNTS_CONTAINER_PARTITION,
    CLIENT_ACCOUNTS_DATA_PARTITION,
    CLIENT_ACCOUNTS_TABLE,
    CONNECTION_STRING_ENV,
    PROVIDER_ENV,
    TABLE_ENV,
)
from .errors import ConfigError
from .models import RequestOptions


class BlobManagerSettings(BaseModel):
    """
    Connection and lookup settings shared by the managers.

    Providers:
    - "azure" (default): Azure Table + Blob storage, needs a connection string
    - "memory": in-process stores that start empty, for tests only. Callers
      seed them directly; the CLI refuses this provider.
    """
    provider: str = "azure"                 # "azure" | "memory"
    connection_string: str = ""
    table_name: str = CLIENT_ACCOUNTS_TABLE
    data_partition: str = CLIENT_ACCOUNTS_DATA_PARTITION
    container_partition: str = CLIENT_ACCOUNTS_CONTAINER_PARTITION
    retry_total: int = 3                    # SDK exponential retry attempts
    default_options: RequestOptions = Field(default_factory=RequestOptions)

    @model_validator(mode="after")
    def validate_provider(self):
        """Ensure the provider is known and has what it needs."""
        if self.provider not in ("azure", "memory"):
            raise ConfigError(f"Provider {self.provider} not supported")
        if self.provider == "azure" and not self.connection_string:
            raise ConfigError(
                f"Set {CONNECTION_STRING_ENV} or connection_string "
                f"for Azure storage"
            )
        return self


def load_settings(path: Optional[Path] = None) -> BlobManagerSettings:
    """
    Load settings from an optional YAML file plus environment overrides.

    Environment variables win over the file:
    AZURE_STORAGE_CONNECTION_STRING, BLOB_MANAGER_TABLE, BLOB_MANAGER_PROVIDER.

    Args:
        path: YAML file to read; missing file means defaults

    Returns:
        Validated BlobManagerSettings

    Raises:
        ConfigError: If the file is unreadable or settings are incomplete
    """
    data = {}
    if path is not None and Path(path).exists():
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid settings file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping")
        data = data.get("blob_manager", data)

    if CONNECTION_STRING_ENV in os.environ:
        data["connection_string"] = os.environ[CONNECTION_STRING_ENV]
    if TABLE_ENV in os.environ:
        data["table_name"] = os.environ[TABLE_ENV]
    if PROVIDER_ENV in os.environ:
        data["provider"] = os.environ[PROVIDER_ENV]

    return BlobManagerSettings(**data)
