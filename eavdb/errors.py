"""
Error types for the EAV store.

This module defines all exception types raised by the core:
- EavError: Base exception
- TypeMismatchError: Value cannot be coerced to an attribute's datatype
- UndefinedAttributeError: Update references an attribute not in the schema
- SchemaConflictError: Attribute redefined with a different datatype
- InvalidEntityIdError: Entity identifier of an unsupported type
- CorruptDatomError: Stored row cannot be read back

Invariants:
    - All domain errors inherit from EavError
    - Errors include context for debugging (details dict)
    - Persistence errors (sqlite3.Error, driver errors) are never wrapped
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class EavError(Exception):
    """Base exception for all EAV store errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "EAV_ERROR"
        self.details = details or {}


class TypeMismatchError(EavError):
    """A value does not match the datatype of its attribute.

    Raised when:
    - A string, boolean or time attribute receives any other Python type
    - A number attribute receives a non-number, NaN, or an int too large for a float

    Attributes:
        attribute_name: Attribute being assigned ("" for a bare coercion)
        offered_type: Python type name of the rejected value
        expected_type: Datatype label of the attribute
    """

    def __init__(
        self,
        attribute_name: str,
        offered_type: str,
        expected_type: str,
    ) -> None:
        msg = f"Cannot assign {offered_type} to {expected_type}"
        if attribute_name:
            msg += f' attribute "{attribute_name}"'

        super().__init__(
            msg,
            code="TYPE_MISMATCH",
            details={
                "attribute_name": attribute_name,
                "offered_type": offered_type,
                "expected_type": expected_type,
            },
        )
        self.attribute_name = attribute_name
        self.offered_type = offered_type
        self.expected_type = expected_type


class UndefinedAttributeError(EavError):
    """Update referenced an attribute that is not defined in the store.

    Includes suggestions for similar attribute names.

    Attributes:
        name: The undefined attribute name
        suggestions: Similar defined attribute names
    """

    def __init__(
        self,
        name: str,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        suggestions = suggestions or []
        msg = f'Attribute "{name}" is not defined'
        if suggestions:
            msg += f". Did you mean: {', '.join(suggestions)}?"

        super().__init__(
            msg,
            code="UNDEFINED_ATTRIBUTE",
            details={"name": name, "suggestions": suggestions},
        )
        self.name = name
        self.suggestions = suggestions


class SchemaConflictError(EavError):
    """Attribute already exists with a different datatype.

    The existing definition is left untouched.
    """

    def __init__(
        self,
        name: str,
        existing_type: str,
        requested_type: str,
    ) -> None:
        super().__init__(
            f'Cannot change datatype of "{name}" attribute '
            f"from {existing_type} to {requested_type}",
            code="SCHEMA_CONFLICT",
            details={
                "name": name,
                "existing_type": existing_type,
                "requested_type": requested_type,
            },
        )
        self.name = name
        self.existing_type = existing_type
        self.requested_type = requested_type


class InvalidEntityIdError(EavError):
    """Entity identifier is not a str or int."""

    def __init__(self, entity_id: Any) -> None:
        super().__init__(
            f"Entity id must be str or int, got {type(entity_id).__name__}",
            code="INVALID_ENTITY_ID",
            details={"offered_type": type(entity_id).__name__},
        )
        self.entity_id = entity_id


class CorruptDatomError(EavError):
    """A stored datom or schema row cannot be read back.

    Raised when the datatype code is unknown, or when the value column for
    a known datatype is NULL.

    This signals an internal consistency problem in the backing store,
    not a caller mistake.
    """

    def __init__(
        self,
        attribute_name: str,
        raw_datatype: Any,
        reason: Optional[str] = None,
    ) -> None:
        reason = reason or f"has unknown datatype {raw_datatype!r}"
        super().__init__(
            f'Datom for attribute "{attribute_name}" {reason}',
            code="CORRUPT_DATOM",
            details={
                "attribute_name": attribute_name,
                "raw_datatype": raw_datatype,
                "reason": reason,
            },
        )
        self.attribute_name = attribute_name
        self.raw_datatype = raw_datatype
