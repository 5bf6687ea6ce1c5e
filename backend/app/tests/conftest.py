"""
Shared fixtures for the backend tests.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.db import build_engine, init_schema
from app.main import create_app
from app.services.document_store import InMemoryDocumentStore, SqlDocumentStore


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def sql_store():
    """Store on a private in-memory SQLite database."""
    engine = build_engine("sqlite://")
    init_schema(engine)
    yield SqlDocumentStore(sessionmaker(bind=engine, autoflush=False))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Every store implementation."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def client(store):
    return TestClient(create_app(store))
