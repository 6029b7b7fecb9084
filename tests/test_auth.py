import mailer

from conftest import auth_headers, make_user
from schemas import USERS
from security import (
    REFRESH_COOKIE,
    create_email_verification_token,
    create_password_reset_token,
    verify_password,
)


def test_register_creates_unverified_user_and_sends_link(client, db, outbox):
    res = client.post(
        "/api/auth/register",
        json={"name": "Giridhar", "email": "new@example.com", "password": "password123"},
    )

    assert res.status_code == 201
    assert res.json()["type"] == "success"
    user = db[USERS].find_one({"email": "new@example.com"})
    assert user["verified"] is False
    assert user["password"] != "password123"
    assert verify_password("password123", user["password"])
    assert len(outbox) == 1
    assert outbox[0]["To"] == "new@example.com"


def test_register_rejects_existing_email(client, seller):
    res = client.post(
        "/api/auth/register",
        json={"name": "Someone", "email": seller["email"], "password": "password123"},
    )

    assert res.status_code == 409
    assert res.json() == {"message": "User already exists! Try logging in. 😄", "type": "warning"}


def test_register_validates_payload(client):
    res = client.post("/api/auth/register", json={"name": "x", "email": "not-an-email", "password": "password123"})

    assert res.status_code == 400
    assert res.json()["message"] == "Validation error"


def test_login_returns_token_and_sets_refresh_cookie(client, db, seller):
    res = client.post("/api/auth/login", json={"email": seller["email"], "password": "password123"})

    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Sign in Successful 🥳"
    assert body["accessToken"]
    assert "password" not in body["user"]
    assert "refreshToken" not in body["user"]
    assert REFRESH_COOKIE in res.cookies
    stored = db[USERS].find_one({"_id": seller["_id"]})
    assert stored["refreshToken"] == res.cookies[REFRESH_COOKIE]


def test_login_unknown_user(client):
    res = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "password123"})

    assert res.status_code == 404
    assert res.json()["message"] == "User doesn't exist! 😢"


def test_login_wrong_password(client, seller):
    res = client.post("/api/auth/login", json={"email": seller["email"], "password": "wrong-password"})

    assert res.status_code == 403
    assert res.json()["message"] == "Password is incorrect! ⚠️"


def test_refresh_token_rotates(client, db, seller):
    login = client.post("/api/auth/login", json={"email": seller["email"], "password": "password123"})
    old_token = login.cookies[REFRESH_COOKIE]

    res = client.post("/api/auth/refresh_token")

    assert res.status_code == 200
    assert res.json()["accessToken"]
    new_token = db[USERS].find_one({"_id": seller["_id"]})["refreshToken"]
    assert new_token != old_token

    client.cookies.clear()
    client.cookies.set(REFRESH_COOKIE, old_token)
    replay = client.post("/api/auth/refresh_token")
    assert replay.status_code == 403


def test_refresh_token_missing_cookie(client):
    res = client.post("/api/auth/refresh_token")

    assert res.status_code == 404
    assert res.json()["message"] == "No refresh token! 🤔"


def test_refresh_token_garbage_cookie(client):
    client.cookies.set(REFRESH_COOKIE, "garbage")

    res = client.post("/api/auth/refresh_token")

    assert res.status_code == 401


def test_logout(client):
    res = client.post("/api/auth/logout")

    assert res.status_code == 200
    assert res.json()["message"] == "Logged out successfully! 🤗"


def test_live(client):
    res = client.get("/api/")

    assert res.status_code == 200
    assert res.text == "Live!! 👌"


def test_protected_requires_token(client):
    res = client.get("/api/protected")

    assert res.status_code == 401
    assert res.json() == {"message": "No token! 🤔", "type": "error"}


def test_protected_rejects_bad_token(client):
    res = client.get("/api/protected", headers={"Authorization": "Bearer nope"})

    assert res.status_code == 403
    assert res.json()["message"] == "Invalid token! 🤔"


def test_protected_returns_user(client, seller):
    res = client.get("/api/protected", headers=auth_headers(seller))

    assert res.status_code == 200
    assert res.json()["user"]["_id"] == str(seller["_id"])
    assert "password" not in res.json()["user"]


def test_protected_deleted_user(client, db, seller):
    headers = auth_headers(seller)
    db[USERS].delete_one({"_id": seller["_id"]})

    res = client.get("/api/protected", headers=headers)

    assert res.status_code == 404


def test_verify_email(client, db, outbox):
    user = make_user(db, email="unverified@example.com", verified=False)
    token = create_email_verification_token(user)

    res = client.get(f"/api/verify-email/{user['_id']}/{token}")

    assert res.status_code == 200
    assert db[USERS].find_one({"_id": user["_id"]})["verified"] is True
    assert outbox[-1]["Subject"] == "Sell Easy - Email Verification Successful"


def test_verify_email_bad_token(client, db):
    user = make_user(db, email="unverified@example.com", verified=False)

    res = client.get(f"/api/verify-email/{user['_id']}/not-a-token")

    assert res.status_code == 403
    assert db[USERS].find_one({"_id": user["_id"]})["verified"] is False


def test_verify_email_malformed_id(client):
    res = client.get("/api/verify-email/123/abc")

    assert res.status_code == 400
    assert res.json()["message"] == "malformatted id"


def test_password_reset_flow(client, db, seller, outbox):
    res = client.post("/api/send-password-reset-email", json={"email": seller["email"]})
    assert res.status_code == 200
    assert outbox[-1]["Subject"] == "Sell Easy - Password Reset Link"

    token = create_password_reset_token(seller)
    res = client.post(f"/api/reset-password/{seller['_id']}/{token}", json={"newPassword": "new-password"})
    assert res.status_code == 200
    assert res.json()["message"] == "Password reset successful!"

    login = client.post("/api/auth/login", json={"email": seller["email"], "password": "new-password"})
    assert login.status_code == 200

    # The token was keyed on the old hash
    reuse = client.post(f"/api/reset-password/{seller['_id']}/{token}", json={"newPassword": "another-one"})
    assert reuse.status_code == 403


def test_password_reset_email_unknown_user(client):
    res = client.post("/api/send-password-reset-email", json={"email": "nobody@example.com"})

    assert res.status_code == 404


def test_register_email_failure_keeps_user(client, db, monkeypatch):
    monkeypatch.setattr(mailer, "send_email", lambda msg: False)

    res = client.post(
        "/api/auth/register",
        json={"name": "Giridhar", "email": "unlucky@example.com", "password": "password123"},
    )

    assert res.status_code == 500
    assert res.json() == {"message": "Error sending email! 😢", "type": "error"}
    assert db[USERS].find_one({"email": "unlucky@example.com"}) is not None
