"""
Integration tests for the conditional order watchtower.

These tests run the actions against a real PostgreSQL storage table.
They skip when the database is not reachable.

Run with:
    TEST_DATABASE_URL=postgresql://... pytest tests/integration/ -v -m integration

Skip with:
    pytest -m "not integration"
"""
