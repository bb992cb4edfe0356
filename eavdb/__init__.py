"""
eavdb - entity-attribute-value store on a relational backing engine.

This package lets callers define typed attributes per store (a numeric
namespace), attach typed facts to opaque entity identifiers, and read or
merge-update those facts without a fixed schema per entity type.

Architecture:
    caller ──▶ Store ──▶ SchemaRegistry (is the attribute defined?)
                 │
                 ├──▶ coerce (does the value fit the datatype?)
                 │
                 └──▶ Handle (execute / query / prepare) ──▶ eav_schema, eav_datoms

Invariants:
    - Every query filters by store_id; this is the only tenant isolation
    - A datom's datatype always equals its attribute's datatype
    - No datom exists for an attribute that is not defined in its store
    - The core never opens or commits transactions

Example:
    >>> from eavdb import DataType, Store, connect, init_tables
    >>> handle = connect(":memory:")
    >>> init_tables(handle)
    >>> store = Store(handle, store_id=1)
    >>> await store.define_attribute("count", DataType.NUMBER)
    >>> await store.update("e1", {"count": 359})
    {'count': 359.0}
"""

from .errors import (
    CorruptDatomError,
    EavError,
    InvalidEntityIdError,
    SchemaConflictError,
    TypeMismatchError,
    UndefinedAttributeError,
)
from .persistence import Handle, SqliteHandle, connect, connect_from_settings, init_tables
from .schema import Attribute, DataType, SchemaRegistry, coerce
from .store import Datom, Store

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "Attribute",
    "DataType",
    "Datom",
    "SchemaRegistry",
    "Store",
    "coerce",
    # Persistence
    "Handle",
    "SqliteHandle",
    "connect",
    "connect_from_settings",
    "init_tables",
    # Errors
    "EavError",
    "TypeMismatchError",
    "UndefinedAttributeError",
    "SchemaConflictError",
    "InvalidEntityIdError",
    "CorruptDatomError",
]
