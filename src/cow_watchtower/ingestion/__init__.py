"""
Ingestion Layer - ComposableCoW events into the registry.

Public API:
    register_new_order - Apply one log to the registry, returning an error flag
"""
from cow_watchtower.ingestion.processor import register_new_order

__all__ = ["register_new_order"]
