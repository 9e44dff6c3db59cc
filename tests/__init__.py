# tests/__init__.py
"""
Test Suite for lexiflow.

Organization:
- `core`: Use cases, text helpers and domain models with mocked ports.
- `adapters`: Concrete adapters against patched HTTP clients, an AsyncMock
  Redis client and a temporary SQLite file.
"""
