"""Constants for blob-manager."""

# Table holding client records and their container records
CLIENT_ACCOUNTS_TABLE = "ClientAccounts"
CLIENT_ACCOUNTS_DATA_PARTITION = "data"
CLIENT_ACCOUNTS_CONTAINER_PARTITION = "container"

# Environment variables
CONNECTION_STRING_ENV = "AZURE_STORAGE_CONNECTION_STRING"
TABLE_ENV = "BLOB_MANAGER_TABLE"
PROVIDER_ENV = "BLOB_MANAGER_PROVIDER"

# Lease values reported by the blob service for a free container
LEASE_STATUS_UNLOCKED = "unlocked"
LEASE_STATE_AVAILABLE = "available"

# Version
BLOB_MANAGER_VERSION = "0.1.0"
