"""
Store module for the EAV data model - datoms and the store orchestrator.

This module handles:
- Datom construction and row mapping
- Reading an entity's facts
- Merge-update, assert and retract of datoms

Invariants:
    - Every read and write is partitioned by store_id
    - update() never writes before every entry has been validated
"""

from .datom import Datom, EntityId, entity_key
from .store import Attributes, Store

__all__ = [
    "Attributes",
    "Datom",
    "EntityId",
    "Store",
    "entity_key",
]
