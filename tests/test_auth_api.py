import pytest


def test_register_login_me_happy_path(client):

    r = client.post(
        "/api/auth/register",
        json={"username": "u01", "email": "u01@example.com", "password": "secret12"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "traveler"


    r = client.post("/api/auth/login", json={"username": "u01", "password": "secret12"})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]
    assert token


    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200, r.text
    me = r.json()
    assert me["username"] == "u01"
    assert me["email"] == "u01@example.com"
    assert me["role"] == "traveler"
    assert me["is_admin"] is False
    assert me["is_active"] is True


def test_register_defaults_to_traveler(client):
    r = client.post(
        "/api/auth/register",
        json={"username": "gezgin", "email": "gezgin@example.com", "password": "secret12"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "traveler"


@pytest.mark.parametrize("account_type", ["owner", "admin"])
def test_register_cannot_pick_a_privileged_role(client, account_type):
    r = client.post(
        "/api/auth/register",
        json={"username": "boss", "email": "boss@example.com", "password": "secret12", "account_type": account_type},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "traveler"


def test_register_rejects_duplicate_username_or_email(client):
    r1 = client.post(
        "/api/auth/register",
        json={"username": "dup", "email": "dup@example.com", "password": "secret12"},
    )
    assert r1.status_code == 201, r1.text

    r2 = client.post(
        "/api/auth/register",
        json={"username": "dup", "email": "other@example.com", "password": "secret12"},
    )
    assert r2.status_code == 400, r2.text
    assert r2.json()["details"]["field"] == "username"

    r3 = client.post(
        "/api/auth/register",
        json={"username": "other", "email": "dup@example.com", "password": "secret12"},
    )
    assert r3.status_code == 400, r3.text
    assert r3.json()["details"]["field"] == "email"


def test_login_wrong_password_returns_401(client):
    client.post(
        "/api/auth/register",
        json={"username": "u2", "email": "u2@example.com", "password": "secret12"},
    )

    r = client.post("/api/auth/login", json={"username": "u2", "password": "WRONG"})
    assert r.status_code == 401, r.text


def test_me_without_token_returns_401(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401, r.text


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
