from bson import ObjectId

from conftest import auth_headers
from schemas import CATEGORIES


def test_create_category(client, seller):
    res = client.post(
        "/api/categories",
        headers=auth_headers(seller),
        json={"name": "Electronics", "description": "Electronics category", "image": "https://example.com/e.png"},
    )

    assert res.status_code == 201
    assert res.json()["category"]["name"] == "Electronics"
    assert res.json()["category"]["image"] == "https://example.com/e.png"


def test_create_category_without_name(client, seller):
    res = client.post("/api/categories", headers=auth_headers(seller), json={"description": "No name"})

    assert res.status_code == 500
    assert res.json()["message"] == "Error creating category! 😕"


def test_create_category_requires_auth(client):
    res = client.post("/api/categories", json={"name": "Electronics"})

    assert res.status_code == 401


def test_list_categories(client, category):
    res = client.get("/api/categories")

    assert res.status_code == 200
    assert [c["name"] for c in res.json()["categories"]] == ["Mobiles"]


def test_get_category(client, category):
    res = client.get(f"/api/categories/{category['_id']}")

    assert res.status_code == 200
    assert res.json()["category"]["name"] == "Mobiles"


def test_get_category_not_found(client):
    res = client.get(f"/api/categories/{ObjectId()}")

    assert res.status_code == 404
    assert res.json()["message"] == "Category not found! 😢"


def test_update_category(client, seller, category):
    res = client.patch(
        f"/api/categories/{category['_id']}",
        headers=auth_headers(seller),
        json={"name": "New Category", "description": "New description"},
    )

    assert res.status_code == 200
    assert res.json()["category"]["name"] == "New Category"
    assert res.json()["category"]["description"] == "New description"


def test_update_category_keeps_missing_fields(client, seller, category):
    res = client.patch(f"/api/categories/{category['_id']}", headers=auth_headers(seller), json={"name": "Phones"})

    assert res.json()["category"]["description"] == "Mobiles category"


def test_update_category_not_found(client, seller):
    res = client.patch(f"/api/categories/{ObjectId()}", headers=auth_headers(seller), json={"name": "x"})

    assert res.status_code == 404


def test_delete_category(client, db, seller, category):
    res = client.delete(f"/api/categories/{category['_id']}", headers=auth_headers(seller))

    assert res.status_code == 200
    assert res.json()["message"] == "Category deleted successfully! 👍"
    assert res.json()["category"]["_id"] == str(category["_id"])
    assert db[CATEGORIES].find_one({"_id": category["_id"]}) is None


def test_delete_category_not_found(client, seller):
    res = client.delete("/api/categories/6048c74eae6d484b643e8262", headers=auth_headers(seller))

    assert res.status_code == 404


def test_delete_category_requires_auth(client, category):
    res = client.delete(f"/api/categories/{category['_id']}")

    assert res.status_code == 401
    assert res.json()["message"] == "No token! 🤔"
