"""
Persistence module for the EAV store.

The core only depends on the Handle protocol. The SQLite handle and the
table bootstrap are the reference implementation.
"""

from .base import Handle, Statement
from .sqlite import SqliteHandle, connect, connect_from_settings, init_tables

__all__ = [
    "Handle",
    "Statement",
    "SqliteHandle",
    "connect",
    "connect_from_settings",
    "init_tables",
]
