"""
Schema module for the EAV store.

This module provides the attribute type system, including:
- Datatypes and value coercion (DataType, coerce)
- Attribute definitions
- The per-store schema registry

Invariants:
    - An attribute's datatype is immutable once defined
    - Attribute names are unique per store, independent across stores
"""

from .registry import SchemaRegistry
from .types import Attribute, DataType, Value, coerce

__all__ = [
    # Types
    "Attribute",
    "DataType",
    "Value",
    "coerce",
    # Registry
    "SchemaRegistry",
]
