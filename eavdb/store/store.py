"""
Store orchestrator for the EAV data model.

A Store is the read / merge-update / assert / retract protocol over the
datoms of one store (namespace). It validates attribute names against the
SchemaRegistry, coerces values to their attribute's datatype, and writes
rows through the persistence handle.

Invariants:
    - Every statement filters or keys on store_id
    - update() validates and coerces every entry before any write
    - Within one update(), retractions are applied before assertions
    - assert_datoms() and retract_datoms() are idempotent
    - assert_datoms() and retract_datoms() only accept datoms of this store
    - Assert/retract statements are prepared once per Store, on first use

How to change safely:
    - Keep validation ahead of the first write in update()
    - The Store never opens a transaction; callers that need atomicity
      across a persistence failure wrap calls in their own transaction
      (e.g. SqliteHandle.transaction())

Concurrency:
    Two concurrent update() calls on one entity both read the old facts
    and then write independently. The last write wins per attribute and
    the merged result each call returns may be stale. Callers needing
    linearizable updates must serialize per entity themselves.
"""

from __future__ import annotations

import asyncio
import logging
from difflib import get_close_matches
from typing import Any, Dict, Mapping, Optional, Union

from ..errors import UndefinedAttributeError
from ..persistence.base import Handle, Statement
from ..schema.registry import SchemaRegistry
from ..schema.types import Attribute, DataType, Value
from .datom import Datom, EntityId, entity_key

logger = logging.getLogger(__name__)

Attributes = Dict[str, Value]

_ASSERT_SQL = """
    INSERT INTO eav_datoms
        (store_id, entity_id, attribute_name,
         string_value, number_value, boolean_value, time_value)
    VALUES (?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT (store_id, entity_id, attribute_name) DO UPDATE SET
        string_value = excluded.string_value,
        number_value = excluded.number_value,
        boolean_value = excluded.boolean_value,
        time_value = excluded.time_value
"""

_RETRACT_SQL = """
    DELETE FROM eav_datoms
    WHERE store_id = ? AND entity_id = ? AND attribute_name = ?
"""

_READ_SQL = """
    SELECT
        d.string_value,
        d.number_value,
        d.boolean_value,
        d.time_value,
        s.datatype,
        s.name
    FROM eav_datoms d
    JOIN eav_schema s ON s.store_id = d.store_id AND s.name = d.attribute_name
    WHERE d.store_id = ? AND d.entity_id = ?
"""


class Store:
    """EAV store scoped to one store id.

    Example:
        >>> store = Store(handle, store_id=1)
        >>> await store.define_attribute("count", DataType.NUMBER)
        >>> await store.update("e1", {"count": 359})
        {'count': 359.0}
        >>> await store.attributes("e1")
        {'count': 359.0}
    """

    def __init__(self, handle: Handle, store_id: int) -> None:
        """Initialize a store.

        Args:
            handle: Persistence handle (may already be inside a transaction)
            store_id: Store identifier partitioning schema and data
        """
        if store_id < 0:
            raise ValueError(f"store_id must be non-negative, got {store_id}")
        self._handle = handle
        self.store_id = store_id
        self.registry = SchemaRegistry(handle, store_id)
        self._prepared: Optional[tuple[Statement, Statement]] = None
        self._stmt_lock = asyncio.Lock()

    # Schema delegates

    async def schema(self) -> Dict[str, Attribute]:
        """Get every attribute defined in this store."""
        return await self.registry.schema()

    async def define_attribute(self, name: str, data_type: Union[DataType, str]) -> Attribute:
        """Define an attribute (idempotent). See SchemaRegistry.define_attribute."""
        return await self.registry.define_attribute(name, data_type)

    async def forget_attribute(self, name: str) -> None:
        """Remove an attribute and all of its datoms in this store."""
        await self.registry.forget_attribute(name)

    # Reads

    async def _read_datoms(self, entity_id: EntityId) -> list[Datom]:
        key = entity_key(entity_id)
        rows = self._handle.query(_READ_SQL, (self.store_id, key))
        return [Datom.from_row(self.store_id, key, row) for row in rows]

    async def attributes(self, entity_id: EntityId) -> Attributes:
        """Get the current attributes of an entity.

        Args:
            entity_id: Entity identifier

        Returns:
            Mapping of attribute name to value; empty for an unknown entity
        """
        datoms = await self._read_datoms(entity_id)
        return {d.attribute_name: d.value for d in datoms}

    # Writes

    async def update(self, entity_id: EntityId, partial: Mapping[str, Any]) -> Attributes:
        """Update an entity's attributes by merging.

        Any conflicting attributes are replaced. An attribute explicitly set
        to None is removed. Every entry is validated before anything is
        written, so a domain error leaves the entity untouched.

        Args:
            entity_id: Entity identifier
            partial: Attribute values to set, or None to remove

        Returns:
            The full merged attribute set

        Raises:
            UndefinedAttributeError: If a name is not defined in this store
            TypeMismatchError: If a value does not fit its attribute
            InvalidEntityIdError: If entity_id is not a str or int
        """
        schema = await self.schema()
        current = {d.attribute_name: d for d in await self._read_datoms(entity_id)}
        result: Attributes = {name: d.value for name, d in current.items()}

        assertions: list[Datom] = []
        retractions: list[Datom] = []

        for name, value in partial.items():
            attr = schema.get(name)
            if attr is None:
                suggestions = get_close_matches(name, list(schema), n=3)
                raise UndefinedAttributeError(name, suggestions)

            if value is None:
                if name in current:
                    retractions.append(current[name])
                result.pop(name, None)
                continue

            datom = attr.datom(entity_id, value)
            result[name] = datom.value
            assertions.append(datom)

        if retractions:
            await self.retract_datoms(*retractions)
        if assertions:
            await self.assert_datoms(*assertions)

        logger.debug(
            "Updated entity",
            extra={
                "store_id": self.store_id,
                "entity_id": entity_key(entity_id),
                "asserted": len(assertions),
                "retracted": len(retractions),
            },
        )
        return result

    async def _statements(self) -> tuple[Statement, Statement]:
        async with self._stmt_lock:
            if self._prepared is None:
                self._prepared = (
                    self._handle.prepare(_ASSERT_SQL),
                    self._handle.prepare(_RETRACT_SQL),
                )
                logger.debug("Prepared datom statements", extra={"store_id": self.store_id})
            return self._prepared

    def _check_store(self, datoms: tuple[Datom, ...]) -> None:
        for datom in datoms:
            if datom.store_id != self.store_id:
                raise ValueError(
                    f"Datom for store {datom.store_id} passed to store {self.store_id}"
                )

    async def assert_datoms(self, *datoms: Datom) -> None:
        """Insert datoms, overwriting the value of any existing (entity, attribute).

        No schema validation is done here; the attribute must exist in this
        store or the persistence layer rejects the row.

        Raises:
            ValueError: If a datom belongs to another store
        """
        self._check_store(datoms)
        assert_stmt, _ = await self._statements()
        for datom in datoms:
            assert_stmt.execute(
                (self.store_id, datom.entity_id, datom.attribute_name, *datom.to_columns())
            )

    async def retract_datoms(self, *datoms: Datom) -> None:
        """Delete datoms by (entity, attribute). Missing rows are ignored.

        Raises:
            ValueError: If a datom belongs to another store
        """
        self._check_store(datoms)
        _, retract_stmt = await self._statements()
        for datom in datoms:
            retract_stmt.execute((self.store_id, datom.entity_id, datom.attribute_name))

    async def forget_entity(self, entity_id: EntityId) -> None:
        """Retract every datom of an entity."""
        datoms = await self._read_datoms(entity_id)
        if datoms:
            await self.retract_datoms(*datoms)
        logger.debug(
            "Forgot entity",
            extra={"store_id": self.store_id, "entity_id": entity_key(entity_id), "datoms": len(datoms)},
        )
