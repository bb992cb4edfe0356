"""
Schema Registry for the EAV store.

The SchemaRegistry is the authority for attribute definitions in one
store. It provides:
- Listing of every attribute defined in the store
- Idempotent define-or-verify of an attribute
- Removal of an attribute together with its datoms

Invariants:
    - Every query filters on store_id; stores never see each other's schema
    - An attribute's datatype never changes once defined
    - A rejected redefinition leaves the existing row untouched
    - Forgetting an attribute removes its datoms via ON DELETE CASCADE

How to change safely:
    - Never add an UPDATE of eav_schema.datatype
    - Keep define_attribute idempotent; callers run it on every startup

Example:
    >>> registry = SchemaRegistry(handle, store_id=1)
    >>> await registry.define_attribute("count", DataType.NUMBER)
    Attribute(store_id=1, name='count', data_type=<DataType.NUMBER: 2>)
    >>> await registry.define_attribute("count", "string")
    Traceback (most recent call last):
    SchemaConflictError: Cannot change datatype of "count" attribute from Number to String
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from ..errors import CorruptDatomError, SchemaConflictError
from ..persistence.base import Handle, Row
from .types import Attribute, DataType

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Per-store registry of attribute definitions.

    Attributes:
        store_id: Store (namespace) this registry is scoped to
    """

    def __init__(self, handle: Handle, store_id: int) -> None:
        """Initialize a registry scoped to one store.

        Args:
            handle: Persistence handle
            store_id: Store identifier
        """
        self._handle = handle
        self.store_id = store_id

    def _attribute_from_row(self, row: Row) -> Attribute:
        try:
            data_type = DataType(row["datatype"])
        except ValueError:
            raise CorruptDatomError(row["name"], row["datatype"]) from None
        return Attribute(store_id=self.store_id, name=row["name"], data_type=data_type)

    async def schema(self) -> Dict[str, Attribute]:
        """Get every attribute defined in this store.

        Returns:
            Mapping of attribute name to Attribute
        """
        rows = self._handle.query(
            "SELECT name, datatype FROM eav_schema WHERE store_id = ?",
            (self.store_id,),
        )
        attrs = (self._attribute_from_row(row) for row in rows)
        return {attr.name: attr for attr in attrs}

    async def get_attribute(self, name: str) -> Optional[Attribute]:
        """Get a single attribute by name.

        Returns:
            Attribute if defined, None otherwise
        """
        rows = list(
            self._handle.query(
                "SELECT name, datatype FROM eav_schema WHERE store_id = ? AND name = ?",
                (self.store_id, name),
            )
        )
        if not rows:
            return None
        return self._attribute_from_row(rows[0])

    async def define_attribute(
        self,
        name: str,
        data_type: Union[DataType, str],
    ) -> Attribute:
        """Define a new attribute.

        This call is idempotent and can be repeated safely, but will fail if
        the attribute was already defined with a different datatype.

        Args:
            name: Attribute name
            data_type: DataType or its name ("string", "number", ...)

        Returns:
            The attribute as stored

        Raises:
            SchemaConflictError: If name exists with a different datatype
            ValueError: If name is empty or data_type is not a known name
        """
        if isinstance(data_type, str):
            data_type = DataType.from_str(data_type)
        requested = Attribute(store_id=self.store_id, name=name, data_type=data_type)

        cursor = self._handle.execute(
            """
            INSERT INTO eav_schema (store_id, name, datatype)
            VALUES (?, ?, ?)
            ON CONFLICT (store_id, name) DO NOTHING
            """,
            (self.store_id, name, int(data_type)),
        )

        existing = await self.get_attribute(name)
        if existing is None:
            # Row vanished between insert and read (concurrent forget)
            return requested

        if existing.data_type != data_type:
            logger.warning(
                "Rejected attribute redefinition",
                extra={
                    "store_id": self.store_id,
                    "attribute": name,
                    "existing_type": existing.data_type.label,
                    "requested_type": data_type.label,
                },
            )
            raise SchemaConflictError(name, existing.data_type.label, data_type.label)

        if _rowcount(cursor):
            logger.info(
                "Defined attribute",
                extra={"store_id": self.store_id, "attribute": name, "data_type": data_type.label},
            )
        return existing

    async def forget_attribute(self, name: str) -> None:
        """Completely remove an attribute and any associated values.

        Forgetting an attribute that does not exist is not an error.

        Args:
            name: Attribute name
        """
        cursor = self._handle.execute(
            "DELETE FROM eav_schema WHERE store_id = ? AND name = ?",
            (self.store_id, name),
        )
        if _rowcount(cursor):
            logger.info(
                "Forgot attribute",
                extra={"store_id": self.store_id, "attribute": name},
            )


def _rowcount(result: Any) -> int:
    """Rows affected by a statement, or 0 when the driver does not report it."""
    count = getattr(result, "rowcount", 0)
    return count if isinstance(count, int) and count > 0 else 0
