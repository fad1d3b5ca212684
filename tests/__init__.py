"""
Funtan Test Suite
=================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (pure functions, mocks, in-memory bus)
- tests/integration/   : Engine tests against a throwaway SQLite database, plus
                         PostgreSQL locking tests via testcontainers

Markers
-------
- integration : talks to a real database
- database    : needs PostgreSQL (Docker) via testcontainers
"""
