"""
Storage Layer - Async PostgreSQL key/value storage and the order registry.

Public API:
    Database, DatabaseConfig - Connection pool management
    StorageRepository - Snapshot key/value access

    Models:
        ConditionalOrderParams, Proof, ConditionalOrder, OrderStatus
        RegistrySnapshot, StorageEntry

    Registry - Owner -> conditional orders, loaded and written per network
"""
from cow_watchtower.storage.database import Database, DatabaseConfig
from cow_watchtower.storage.models import (
    ConditionalOrder,
    ConditionalOrderParams,
    OrderStatus,
    Proof,
    RegistrySnapshot,
    StorageEntry,
)
from cow_watchtower.storage.registry import (
    LAST_NOTIFIED_ERROR_STORAGE_KEY,
    Registry,
    get_orders_storage_key,
)
from cow_watchtower.storage.repositories import StorageRepository

__all__ = [
    # Database
    "Database",
    "DatabaseConfig",
    "StorageRepository",
    # Models
    "ConditionalOrder",
    "ConditionalOrderParams",
    "OrderStatus",
    "Proof",
    "RegistrySnapshot",
    "StorageEntry",
    # Registry
    "Registry",
    "LAST_NOTIFIED_ERROR_STORAGE_KEY",
    "get_orders_storage_key",
]
