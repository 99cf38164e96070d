"""
MintDB Test Suite.

This package contains:
- unit/: Unit tests (in-memory and temporary SQLite storage)
- integration/: Integration tests (restart durability, HTTP API)
"""
