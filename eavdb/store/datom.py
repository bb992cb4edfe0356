"""
Datom: a single (entity, attribute, typed value) fact.

The value is a tagged union keyed by the datom's datatype. Storage keeps
one nullable column per datatype; exactly one of them is populated for any
row written through this module.

Invariants:
    - value always matches data_type (checked and canonicalised on construction)
    - entity_id is always stored in its text form
    - Rows with an unknown datatype code raise CorruptDatomError on read
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from ..errors import CorruptDatomError, InvalidEntityIdError
from ..schema.types import DataType, Value, coerce

EntityId = Union[str, int]

# Order of the value columns in eav_datoms
VALUE_COLUMNS = ("string_value", "number_value", "boolean_value", "time_value")

_COLUMN_FOR = {
    DataType.STRING: "string_value",
    DataType.NUMBER: "number_value",
    DataType.BOOLEAN: "boolean_value",
    DataType.TIME: "time_value",
}


def entity_key(entity_id: Any) -> str:
    """Normalise an entity identifier to its stored text form.

    Raises:
        InvalidEntityIdError: If entity_id is not a str or int
    """
    if isinstance(entity_id, bool) or not isinstance(entity_id, (str, int)):
        raise InvalidEntityIdError(entity_id)
    return str(entity_id)


@dataclass(frozen=True)
class Datom:
    """One current fact about an entity.

    Attributes:
        store_id: Store the fact belongs to
        entity_id: Entity identifier (normalised to str)
        attribute_name: Name of the attribute in the owning store
        data_type: Datatype tag selecting the value alternative
        value: The typed value (str, float, bool or datetime)
    """

    store_id: int
    entity_id: EntityId
    attribute_name: str
    data_type: DataType
    value: Value

    def __post_init__(self) -> None:
        if self.store_id < 0:
            raise ValueError(f"store_id must be non-negative, got {self.store_id}")
        object.__setattr__(self, "entity_id", entity_key(self.entity_id))
        object.__setattr__(
            self, "value", coerce(self.data_type, self.value, self.attribute_name)
        )

    def to_columns(self) -> tuple[Optional[str], Optional[float], Optional[bool], Optional[str]]:
        """Return the four value columns with only this datom's slot filled."""
        stored: Any = self.value
        if self.data_type == DataType.TIME:
            stored = self.value.isoformat()
        return tuple(  # type: ignore[return-value]
            stored if column == _COLUMN_FOR[self.data_type] else None
            for column in VALUE_COLUMNS
        )

    @classmethod
    def from_row(cls, store_id: int, entity_id: EntityId, row: Mapping[str, Any]) -> Datom:
        """Build a datom from a joined datoms/schema row.

        The row must provide ``name``, ``datatype`` and the value columns.

        Raises:
            CorruptDatomError: If the datatype code is unknown or its value column is NULL
        """
        name = row["name"]
        try:
            data_type = DataType(row["datatype"])
        except ValueError:
            raise CorruptDatomError(name, row["datatype"]) from None

        raw = row[_COLUMN_FOR[data_type]]
        if raw is None:
            raise CorruptDatomError(
                name, row["datatype"], reason=f"has no value in {_COLUMN_FOR[data_type]}"
            )
        if data_type == DataType.BOOLEAN:
            raw = bool(raw)
        elif data_type == DataType.TIME:
            raw = datetime.fromisoformat(raw)

        return cls(
            store_id=store_id,
            entity_id=entity_id,
            attribute_name=name,
            data_type=data_type,
            value=raw,
        )
