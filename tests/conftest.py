"""
Test configuration and fixtures for the Brev.ly links API.
This centralizes all test setup, making individual tests clean.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from main import app
from brevly_app.database.connection import Base, get_db
from brevly_app.dependencies import get_object_storage
from brevly_app.repositories import (
    InMemoryLinkRepository,
    LinkRepositoryFactory,
    SQLAlchemyLinkRepository,
)
from brevly_app.services.link_service import LinkService
from brevly_app.storage import InMemoryObjectStorage

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def object_storage():
    """In-memory upload target, inspect .objects after an export"""
    return InMemoryObjectStorage(base_url="https://cdn.test")


@pytest.fixture(scope="function", params=["sqlalchemy", "memory"])
def repository(request, db_session):
    """
    Every repository-level test runs against both backends.
    A tiny stream batch size makes the SQL export cross batch boundaries.
    """
    if request.param == "sqlalchemy":
        return SQLAlchemyLinkRepository(db_session, stream_batch_size=2)
    return InMemoryLinkRepository()


@pytest.fixture(scope="function")
def link_service(repository, object_storage):
    return LinkService(repository=repository, storage=object_storage)


@pytest.fixture(scope="function")
def client(db_session, object_storage):
    """
    Create a test client with database and storage dependencies overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_storage] = lambda: object_storage
    
    with TestClient(app) as test_client:
        yield test_client
    
    app.dependency_overrides.clear()
    LinkRepositoryFactory.clear_instance()
