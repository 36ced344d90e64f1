"""Repositories for the watchtower storage."""
from cow_watchtower.storage.repositories.storage_repo import StorageRepository

__all__ = [
    "StorageRepository",
]
