import os

os.environ["ENV"] = "test"
os.environ["MONGO_TRANSACTIONS"] = "false"
os.environ["SALT_WORK_FACTOR"] = "4"
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")

import mongomock
import pytest
from fastapi.testclient import TestClient

import mailer
from database import create_document, get_db, object_id
from main import app
from schemas import CATEGORIES, PRODUCTS, USERS
from security import create_access_token, hash_password


@pytest.fixture()
def db():
    """A fresh in-memory database per test."""
    mongo = mongomock.MongoClient()
    yield mongo["sell_easy_test"]
    mongo.drop_database("sell_easy_test")


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app, base_url="https://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Captures outgoing email instead of talking to SMTP."""
    sent = []

    def fake_send(msg):
        sent.append(msg)
        return True

    monkeypatch.setattr(mailer, "send_email", fake_send)
    return sent


def make_user(db, name="Giridhar", email="giridhar@example.com", password="password123", **extra):
    user_id = create_document(
        db,
        USERS,
        {
            "name": name,
            "email": email,
            "password": hash_password(password),
            "phoneNumber": "1234567890",
            "verified": True,
            "rating": 0,
            "numReviews": 0,
            "reviews": [],
            "comments": [],
            **extra,
        },
    )
    return db[USERS].find_one({"_id": object_id(user_id)})


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user['_id'])}"}


def make_category(db, name="Mobiles"):
    category_id = create_document(db, CATEGORIES, {"name": name, "description": f"{name} category"})
    return db[CATEGORIES].find_one({"_id": object_id(category_id)})


def make_product(db, seller, category, name="iPhone X", price=799, popularity=0, description="A phone"):
    product_id = create_document(
        db,
        PRODUCTS,
        {
            "name": name,
            "description": description,
            "price": price,
            "category": category["_id"],
            "seller": seller["_id"],
            "image": "https://example.com/image.png",
            "media": [],
            "popularity": popularity,
            "rating": 0,
            "numReviews": 0,
            "reviews": [],
        },
    )
    return db[PRODUCTS].find_one({"_id": object_id(product_id)})


@pytest.fixture()
def seller(db):
    return make_user(db)


@pytest.fixture()
def buyer(db):
    return make_user(db, name="Jane Doe", email="jane.doe@example.com")


@pytest.fixture()
def category(db):
    return make_category(db)
