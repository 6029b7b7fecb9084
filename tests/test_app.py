from pymongo.errors import PyMongoError


def test_root(client):
    res = client.get("/")

    assert res.status_code == 200
    assert res.json() == {"status": "ok", "service": "sell-easy-backend"}


def test_schema_lists_collections(client):
    collections = client.get("/schema").json()["collections"]

    assert "users" in collections
    assert "messages" in collections
    assert len(collections) == 8


def test_health_check_reports_database(client):
    res = client.get("/test")

    assert res.status_code == 200
    assert res.json() == {"backend": "running", "database": "connected"}


def test_health_check_survives_database_error(client, db, monkeypatch):
    def broken():
        raise PyMongoError("connection refused")

    monkeypatch.setattr(db, "list_collection_names", broken)

    assert client.get("/test").json()["database"] == "error"


def test_unknown_route_uses_error_shape(client):
    res = client.get("/api/nope")

    assert res.status_code == 404
    assert res.json() == {"message": "Not Found", "type": "error"}
