"""Auth endpoint tests."""

from conftest import create_group, register


def test_register_returns_token_and_lowercases_username(client):
    r = client.post("/auth/register", json={"username": "Alice", "password": "Secret123", "email": "Alice@Example.com"})
    assert r.status_code == 201
    data = r.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] > 0
    assert data["user"]["username"] == "alice"
    assert data["user"]["email"] == "alice@example.com"


def test_register_duplicate_username(client):
    register(client, "alice")
    r = client.post("/auth/register", json={"username": "ALICE", "password": "Secret123"})
    assert r.status_code == 409
    assert r.json()["message"] == "Username already exists"


def test_register_duplicate_email(client):
    register(client, "alice", email="a@example.com")
    r = client.post("/auth/register", json={"username": "bob", "password": "Secret123", "email": "A@example.com"})
    assert r.status_code == 409


def test_register_weak_password_and_bad_username(client):
    r = client.post("/auth/register", json={"username": "a!", "password": "short"})
    assert r.status_code == 400
    messages = r.json()["details"]["messages"]
    assert "Username must be between 3 and 20 characters" in messages
    assert "Password must be at least 8 characters long" in messages
    assert len(messages) == 4


def test_register_reserved_username(client):
    r = client.post("/auth/register", json={"username": "admin", "password": "Secret123"})
    assert r.status_code == 400
    assert r.json()["message"] == "This username is reserved"


def test_login(client):
    register(client, "alice")
    r = client.post("/auth/login", json={"username": "Alice", "password": "Secret123"})
    assert r.status_code == 200
    assert r.json()["user"]["username"] == "alice"


def test_login_wrong_password(client):
    register(client, "alice")
    r = client.post("/auth/login", json={"username": "alice", "password": "Wrong1234"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid username or password"


def test_login_unknown_user(client):
    r = client.post("/auth/login", json={"username": "ghost", "password": "Secret123"})
    assert r.status_code == 401


def test_me_lists_groups(client):
    alice = register(client, "alice")
    create_group(client, alice, name="Book Club")
    r = client.get("/auth/me", headers=alice)
    assert r.status_code == 200
    data = r.json()
    assert data["username"] == "alice"
    assert [g["name"] for g in data["groups"]] == ["Book Club"]


def test_missing_or_bad_token(client):
    assert client.get("/auth/me").status_code == 401
    r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired token"


def test_verify(client):
    alice = register(client, "alice")
    r = client.get("/auth/verify", headers=alice)
    assert r.status_code == 200
    assert r.json()["valid"] is True
    assert r.json()["user"]["username"] == "alice"


def test_change_password(client):
    alice = register(client, "alice")
    r = client.put(
        "/auth/change-password",
        headers=alice,
        json={"current_password": "Wrong1234", "new_password": "Newpass123"},
    )
    assert r.status_code == 401

    r = client.put(
        "/auth/change-password",
        headers=alice,
        json={"current_password": "Secret123", "new_password": "weak"},
    )
    assert r.status_code == 400

    r = client.put(
        "/auth/change-password",
        headers=alice,
        json={"current_password": "Secret123", "new_password": "Newpass123"},
    )
    assert r.status_code == 200
    assert client.post("/auth/login", json={"username": "alice", "password": "Secret123"}).status_code == 401
    assert client.post("/auth/login", json={"username": "alice", "password": "Newpass123"}).status_code == 200


def test_logout(client):
    alice = register(client, "alice")
    assert client.post("/auth/logout", headers=alice).json()["message"] == "Logout successful"


def test_deactivated_account_cannot_login(client):
    alice = register(client, "alice")
    assert client.delete("/auth/account", headers=alice).status_code == 200
    assert client.get("/auth/me", headers=alice).status_code == 401
    assert client.post("/auth/login", json={"username": "alice", "password": "Secret123"}).status_code == 401
