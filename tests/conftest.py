import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app

TEST_DB_NAME = "aro_bazzar_test"


@pytest.fixture
def store():
    """Fresh in-memory MongoDB database for each test."""
    client = mongomock.MongoClient()
    yield client[TEST_DB_NAME]
    client.close()


@pytest.fixture
def client(store) -> TestClient:
    return TestClient(create_app(store))
