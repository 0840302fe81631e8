import os

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("STATIC_DIR", "tests/_no_static_dir")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from centrum_api.app.core.config import Settings
from centrum_api.app.main import create_app
from centrum_api.app.services.listing_store import (
    FileListingStore,
    MemoryListingStore,
    SqliteListingStore,
)
from centrum_api.app.services.normalizer import normalize_listing


ADMIN_PIN = "4821"
ADMIN_SECRET = "test-secret"


def valid_payload(**overrides):
    payload = {
        "title": "Sunny flat near the park",
        "type": "Mieszkanie",
        "city": "Kraków",
        "price": 650000,
        "area": 54.5,
        "rooms": 3,
        "description": "Three rooms, renovated kitchen, balcony.",
    }
    payload.update(overrides)
    return payload


def make_listing(now=1_700_000_000_000, **overrides):
    return normalize_listing(valid_payload(**overrides), now=now)


def make_settings(**overrides):
    values = {
        "store_backend": "memory",
        "static_dir": "tests/_no_static_dir",
        "admin_required": False,
        "admin_pin": ADMIN_PIN,
        "admin_secret": ADMIN_SECRET,
        "admin_pin_length": 4,
        "cookie_secure": False,
        "log_level": "WARNING",
        "log_file": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def memory_store():
    return MemoryListingStore()


@pytest.fixture
def client(memory_store):
    app = create_app(store=memory_store, app_settings=make_settings())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def gated_client(memory_store):
    app = create_app(store=memory_store, app_settings=make_settings(admin_required=True))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(params=["memory", "file", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryListingStore()
    if request.param == "file":
        return FileListingStore(tmp_path / "data" / "listings.json")
    return SqliteListingStore(tmp_path / "listings.db")
