import sqlite3
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from centrum_api.app.main import create_app
from centrum_api.app.services.listing_store import ListingStore, StorageError
from tests.conftest import make_listing, make_settings, valid_payload


def test_list_is_empty_initially(client):
    response = client.get("/api/listings")

    assert response.status_code == 200
    assert response.json() == []


def test_create_returns_normalised_listing(client):
    response = client.post("/api/listings", json=valid_payload(title="  Loft  ", images=["a", "b"]))

    assert response.status_code == 201
    body = response.json()
    assert body["id"]
    assert body["title"] == "Loft"
    assert body["image"] == "a"
    assert body["floor"] is None
    assert body["createdAt"] == body["updatedAt"]
    assert "created_at" not in body


def test_create_ignores_client_supplied_identity(client):
    response = client.post(
        "/api/listings",
        json=valid_payload(id="mine", createdAt=1, updatedAt=2),
    )

    body = response.json()
    assert body["id"] != "mine"
    assert body["createdAt"] > 1
    assert body["createdAt"] == body["updatedAt"]


def test_create_validation_error(client):
    response = client.post("/api/listings", json=valid_payload(title="ab", city="K"))

    assert response.status_code == 400
    assert response.json() == {"error": "Title too short"}
    assert client.get("/api/listings").json() == []


def test_create_with_empty_body_is_rejected(client):
    response = client.post("/api/listings")

    assert response.status_code == 400
    assert response.json() == {"error": "Title too short"}


def test_create_with_non_object_body_is_rejected(client):
    response = client.post("/api/listings", json=["not", "an", "object"])

    assert response.status_code == 400
    assert "error" in response.json()


def test_get_listing(client):
    created = client.post("/api/listings", json=valid_payload()).json()

    response = client.get(f"/api/listings/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_unknown_listing(client):
    response = client.get("/api/listings/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}


def test_list_is_newest_first(client, memory_store):
    for created in (100, 300, 200):
        memory_store.insert(make_listing(now=created))

    response = client.get("/api/listings")

    assert [item["createdAt"] for item in response.json()] == [300, 200, 100]


def test_update_merges_fields(client):
    created = client.post("/api/listings", json=valid_payload()).json()

    response = client.put(f"/api/listings/{created['id']}", json={"price": 500000, "featured": True})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == created["id"]
    assert body["createdAt"] == created["createdAt"]
    assert body["updatedAt"] > created["updatedAt"]
    assert body["price"] == 500000
    assert body["featured"] is True
    assert body["title"] == created["title"]


def test_update_validation_error(client):
    created = client.post("/api/listings", json=valid_payload()).json()

    response = client.put(f"/api/listings/{created['id']}", json={"rooms": 0})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid rooms"}
    assert client.get(f"/api/listings/{created['id']}").json() == created


def test_update_unknown_listing(client):
    response = client.put("/api/listings/missing", json=valid_payload())

    assert response.status_code == 404


def test_delete_listing(client):
    created = client.post("/api/listings", json=valid_payload()).json()

    response = client.delete(f"/api/listings/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert client.get(f"/api/listings/{created['id']}").status_code == 404


def test_delete_unknown_listing_leaves_others(client):
    client.post("/api/listings", json=valid_payload())

    response = client.delete("/api/listings/missing")

    assert response.status_code == 404
    assert len(client.get("/api/listings").json()) == 1


def test_storage_faults_are_reported():
    store = MagicMock(spec=ListingStore)
    store.list_all.side_effect = StorageError("database is locked")
    store.get_by_id.side_effect = StorageError("database is locked")
    app = create_app(store=store, app_settings=make_settings())

    with TestClient(app) as test_client:
        listed = test_client.get("/api/listings")
        fetched = test_client.get("/api/listings/abc")

    assert listed.status_code == 500
    assert listed.json() == {"error": "database is locked"}
    assert fetched.status_code == 400
    assert fetched.json() == {"error": "database is locked"}


def test_file_backed_app_round_trip(tmp_path):
    app_settings = make_settings(store_backend="file", data_file=str(tmp_path / "listings.json"))
    app = create_app(app_settings=app_settings)

    with TestClient(app) as test_client:
        created = test_client.post("/api/listings", json=valid_payload(floor=0)).json()
        fetched = test_client.get(f"/api/listings/{created['id']}").json()

    assert fetched == created
    assert fetched["floor"] == 0
    assert (tmp_path / "listings.json").is_file()


def test_put_with_new_gallery_moves_cover(client):
    created = client.post("/api/listings", json=valid_payload(images=["a", "b"])).json()

    body = client.put(f"/api/listings/{created['id']}", json={"images": ["x", "y"]}).json()

    assert body["images"] == ["x", "y"]
    assert body["image"] == "x"


def test_corrupt_stored_document_returns_error_body(tmp_path):
    path = tmp_path / "listings.db"
    app = create_app(app_settings=make_settings(store_backend="sqlite", database_url=str(path)))
    with TestClient(app) as test_client:
        created = test_client.post("/api/listings", json=valid_payload()).json()
        conn = sqlite3.connect(str(path))
        conn.execute("UPDATE listings SET document = 'not json' WHERE id = ?", (created["id"],))
        conn.commit()
        conn.close()

        listed = test_client.get("/api/listings")

    assert listed.status_code == 500
    assert listed.json()["error"].startswith("Corrupt listing document")
