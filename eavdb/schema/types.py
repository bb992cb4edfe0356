"""
Core type definitions for the EAV schema system.

This module defines the foundational types for attributes:
- DataType: Supported value kinds and their storage codes
- coerce: Conversion of loosely-typed input to a canonical value
- Attribute: Store-scoped name + datatype descriptor

Invariants:
    - DataType integer codes are persisted in eav_schema.datatype and never change
    - Code 0 is reserved ("undefined") and is never a valid DataType
    - A number is always canonicalised to float
    - bool is never accepted as a number, even though it subclasses int
    - NaN and numbers outside the float range are rejected
    - An attribute's datatype never changes once it exists

How to change safely:
    - Add new datatypes with new codes at the end
    - Never renumber existing codes
    - Add a datom value column when adding a datatype

Example:
    >>> from eavdb.schema.types import DataType, coerce
    >>> coerce(DataType.NUMBER, 359)
    359.0
    >>> DataType.from_str("string")
    <DataType.STRING: 1>
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Union

from ..errors import TypeMismatchError

if TYPE_CHECKING:
    from ..store.datom import Datom, EntityId

Value = Union[str, float, bool, datetime]


class DataType(IntEnum):
    """Supported attribute datatypes.

    The integer value is the code stored in the schema table.
    """

    STRING = 1
    NUMBER = 2
    BOOLEAN = 3
    TIME = 4

    @property
    def label(self) -> str:
        """Display name used in error messages, e.g. 'String'."""
        return self.name.capitalize()

    @classmethod
    def from_str(cls, value: str) -> DataType:
        """Convert string representation to DataType.

        Args:
            value: Case-insensitive datatype name ("string", "Number", ...)

        Returns:
            Corresponding DataType enum value

        Raises:
            ValueError: If value is not a valid datatype name
        """
        for kind in cls:
            if kind.name == value.upper():
                return kind
        valid = [k.name.lower() for k in cls]
        raise ValueError(f"Invalid datatype '{value}'. Valid datatypes: {valid}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (numbers.Real, Decimal)) and not isinstance(value, bool)


_ACCEPTS = {
    DataType.STRING: lambda v: isinstance(v, str),
    DataType.NUMBER: _is_number,
    DataType.BOOLEAN: lambda v: isinstance(v, bool),
    DataType.TIME: lambda v: isinstance(v, datetime),
}


def coerce(data_type: DataType, value: Any, attribute_name: str = "") -> Value:
    """Validate a value against a datatype and return its canonical form.

    Args:
        data_type: Target datatype
        value: Loosely-typed input value
        attribute_name: Attribute being assigned, used in the error message

    Returns:
        The canonical value (numbers become float, others unchanged)

    Raises:
        TypeMismatchError: If the value's type is not accepted
    """
    if not _ACCEPTS[data_type](value):
        raise TypeMismatchError(attribute_name, type(value).__name__, data_type.label)
    if data_type == DataType.NUMBER:
        try:
            number = float(value)
        except OverflowError:
            raise TypeMismatchError(attribute_name, type(value).__name__, data_type.label) from None
        # SQLite stores NaN as NULL
        if math.isnan(number):
            raise TypeMismatchError(attribute_name, "nan", data_type.label)
        return number
    return value


@dataclass(frozen=True)
class Attribute:
    """Definition of a single attribute within a store.

    Attributes:
        store_id: Store (namespace) the attribute belongs to
        name: Attribute name, unique within the store
        data_type: Datatype every value of this attribute must have

    Example:
        >>> count = Attribute(store_id=1, name="count", data_type=DataType.NUMBER)
        >>> count.datom("e1", 359).value
        359.0
    """

    store_id: int
    name: str
    data_type: DataType

    def __post_init__(self) -> None:
        """Validate attribute definition."""
        if not self.name:
            raise ValueError("Attribute name cannot be empty")
        if self.store_id < 0:
            raise ValueError(f"store_id must be non-negative, got {self.store_id}")

    def datom(self, entity_id: EntityId, value: Any) -> Datom:
        """Build a datom holding ``value`` for ``entity_id``.

        Raises:
            TypeMismatchError: If value does not fit this attribute's datatype
            InvalidEntityIdError: If entity_id is not a str or int
        """
        from ..store.datom import Datom

        return Datom(
            store_id=self.store_id,
            entity_id=entity_id,
            attribute_name=self.name,
            data_type=self.data_type,
            value=value,
        )

