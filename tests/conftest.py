"""Shared test fixtures."""
import mongomock
import pytest
from fastapi.testclient import TestClient

from config import DEFAULTS
from database import MongoAppointmentStore
from file_store import JsonFileAppointmentStore
from main import create_app

SECRET = "test-secret-key-for-hs256-signing-0001"


@pytest.fixture
def jane() -> dict:
    return {
        "name": "Jane Doe",
        "date": "2024-06-01",
        "time": "10:00",
        "services": [{"description": "Cleaning", "cost": 50}],
    }


@pytest.fixture
def file_store(tmp_path):
    """JSON file store in a temp directory."""
    return JsonFileAppointmentStore(str(tmp_path / "appointments.json"))


@pytest.fixture
def mongo_store():
    """MongoDB store over an in-memory mongomock client."""
    return MongoAppointmentStore(client=mongomock.MongoClient(), db_name="appointmentManager_test")


@pytest.fixture
def make_client():
    """Create a FastAPI test client around an injected store."""
    clients = []

    def _create(store_obj, **overrides):
        config = dict(DEFAULTS, store="file", keepalive_enabled=False, jwt_secret=SECRET)
        config.update(overrides)
        client = TestClient(create_app(config, store=store_obj))
        client.__enter__()
        clients.append(client)
        return client

    yield _create
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, file_store):
    return make_client(file_store)
