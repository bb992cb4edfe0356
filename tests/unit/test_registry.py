"""
Unit tests for the schema registry.

Tests cover:
- Attribute definition
- Idempotent redefinition
- Conflict detection without mutation
- Forgetting attributes
- Store isolation
"""

import pytest

from eavdb.errors import CorruptDatomError, SchemaConflictError
from eavdb.schema.registry import SchemaRegistry
from eavdb.schema.types import Attribute, DataType


class TestSchemaRegistry:
    """Tests for SchemaRegistry."""

    @pytest.fixture
    def registry(self, handle):
        """Registry for store 1."""
        return SchemaRegistry(handle, store_id=1)

    @pytest.mark.asyncio
    async def test_empty_schema(self, registry):
        """A fresh store has no attributes."""
        assert await registry.schema() == {}

    @pytest.mark.asyncio
    async def test_define_attribute(self, registry):
        """Can define an attribute."""
        attr = await registry.define_attribute("count", DataType.NUMBER)

        assert attr == Attribute(store_id=1, name="count", data_type=DataType.NUMBER)
        assert await registry.schema() == {"count": attr}
        assert await registry.get_attribute("count") == attr

    @pytest.mark.asyncio
    async def test_define_by_name(self, registry):
        """Datatype may be given by name."""
        attr = await registry.define_attribute("label", "string")
        assert attr.data_type == DataType.STRING

    @pytest.mark.asyncio
    async def test_define_is_idempotent(self, registry):
        """Redefining with the same datatype is a no-op."""
        first = await registry.define_attribute("count", DataType.NUMBER)
        second = await registry.define_attribute("count", DataType.NUMBER)

        assert first == second
        assert len(await registry.schema()) == 1

    @pytest.mark.asyncio
    async def test_conflicting_redefinition(self, registry):
        """Redefining with another datatype fails and leaves the schema unchanged."""
        await registry.define_attribute("count", DataType.NUMBER)
        before = await registry.schema()

        with pytest.raises(SchemaConflictError) as exc_info:
            await registry.define_attribute("count", DataType.STRING)

        err = exc_info.value
        assert str(err) == 'Cannot change datatype of "count" attribute from Number to String'
        assert err.existing_type == "Number"
        assert err.requested_type == "String"
        assert await registry.schema() == before

    @pytest.mark.asyncio
    async def test_invalid_definitions(self, registry):
        """Empty names and unknown datatype names are rejected."""
        with pytest.raises(ValueError):
            await registry.define_attribute("", DataType.STRING)
        with pytest.raises(ValueError):
            await registry.define_attribute("x", "blob")
        assert await registry.schema() == {}

    @pytest.mark.asyncio
    async def test_forget_attribute(self, registry):
        """Forgetting removes the attribute."""
        await registry.define_attribute("count", DataType.NUMBER)
        await registry.forget_attribute("count")

        assert await registry.schema() == {}
        assert await registry.get_attribute("count") is None

    @pytest.mark.asyncio
    async def test_forget_missing_attribute(self, registry):
        """Forgetting an unknown attribute is not an error."""
        await registry.forget_attribute("nothing")

    @pytest.mark.asyncio
    async def test_store_isolation(self, handle):
        """The same name can hold different datatypes in different stores."""
        one = SchemaRegistry(handle, store_id=1)
        two = SchemaRegistry(handle, store_id=2)

        await one.define_attribute("country", DataType.STRING)
        await two.define_attribute("country", DataType.NUMBER)

        assert (await one.schema())["country"].data_type == DataType.STRING
        assert (await two.schema())["country"].data_type == DataType.NUMBER

        await one.forget_attribute("country")
        assert await one.schema() == {}
        assert "country" in await two.schema()

    @pytest.mark.asyncio
    async def test_unknown_stored_datatype(self, handle, registry):
        """A schema row with an unknown datatype code is a hard error."""
        handle.execute(
            "INSERT INTO eav_schema (store_id, name, datatype) VALUES (?, ?, ?)",
            (1, "mystery", 0),
        )
        with pytest.raises(CorruptDatomError):
            await registry.schema()
