"""
eavdb test suite.

This package contains:
- unit/: Unit tests (types, datoms, registry, configuration)
- integration/: Store tests against a temporary SQLite database
"""
