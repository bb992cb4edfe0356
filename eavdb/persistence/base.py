"""
Base protocol for the persistence handle consumed by the EAV core.

The core never opens connections or transactions itself. It talks to a
Handle that can execute statements, run queries and prepare reusable
statements. Connection pooling, parameter binding and transaction
lifecycle are the handle's business.

Invariants:
    - Statements use ``?`` positional placeholders
    - Rows returned by query() support lookup by column name
    - Errors raised by the handle propagate to callers unmodified

How to change safely:
    - Protocol changes require updating all implementations
    - Keep the surface narrow; the core only needs these three calls
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Iterable, Mapping, Protocol, Sequence, runtime_checkable

Params = Sequence[Any]
Row = Mapping[str, Any]


@runtime_checkable
class Statement(Protocol):
    """A prepared statement that can be executed repeatedly."""

    @abstractmethod
    def execute(self, params: Params = ()) -> Any:
        """Execute the statement with the given parameters."""
        ...


@runtime_checkable
class Handle(Protocol):
    """Protocol for persistence handles.

    A handle may be a plain connection or a connection already inside a
    caller-managed transaction. The core does not care which.

    Concurrency contract:
        - Statements returned by prepare() may be reused by concurrent
          callers if the handle is shared; making that safe is the
          handle's responsibility

    Example:
        >>> handle = connect(":memory:")
        >>> init_tables(handle)
        >>> rows = handle.query("SELECT name FROM eav_schema WHERE store_id = ?", (1,))
    """

    @abstractmethod
    def execute(self, sql: str, params: Params = ()) -> Any:
        """Execute a statement that returns no rows of interest.

        Returns:
            Driver-specific result (e.g. a cursor with rowcount)
        """
        ...

    @abstractmethod
    def query(self, sql: str, params: Params = ()) -> Iterable[Row]:
        """Execute a query and return its rows."""
        ...

    @abstractmethod
    def prepare(self, sql: str) -> Statement:
        """Prepare a statement for repeated execution."""
        ...
