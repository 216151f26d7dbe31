from modelcontest.dependencies import SESSION_COOKIE

from conftest import (
    PASSWORD,
    auth_headers,
    make_contest,
    make_entry,
    make_model,
)


def register(client, email="alice@example.com", **overrides):
    body = {
        "email": email,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
        "name": "Alice",
        "stage_name": "Ally",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_creates_model_profile(client):
    response = register(client)

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["role"] == "model"
    assert data["model"]["name"] == "Alice"
    assert data["model"]["total_votes"] == 0
    assert data["access_token"]
    assert SESSION_COOKIE in response.cookies


def test_register_duplicate_email(client):
    register(client)
    response = register(client)
    assert response.status_code == 409
    assert response.json()["detail"] == "Email already registered"


def test_register_password_mismatch(client):
    response = register(client, confirm_password="different123")
    assert response.status_code == 422


def test_register_short_password(client):
    response = register(client, password="short", confirm_password="short")
    assert response.status_code == 422


def test_login_and_me(client):
    register(client)
    login = client.post(
        "/api/auth/login",
        json={"email": "alice@example.com", "password": PASSWORD},
    )
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "alice@example.com"
    assert me.json()["model"]["stage_name"] == "Ally"


def test_login_wrong_password(client):
    register(client)
    response = client.post(
        "/api/auth/login",
        json={"email": "alice@example.com", "password": "wrongpass1"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_me_requires_authentication(client):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get(
        "/api/auth/me", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_logout_clears_cookie(client):
    register(client)
    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"


def test_update_profile(client, db):
    model = make_model(db, "Alice")
    headers = auth_headers(model.user)

    response = client.put(
        "/api/profile/update",
        json={"bio": "Photographer", "location": "Cleveland"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["model"]["bio"] == "Photographer"
    assert response.json()["model"]["name"] == "Alice"


def test_admin_has_no_model_profile(client, admin_headers):
    response = client.put(
        "/api/profile/update", json={"bio": "x"}, headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Model profile not found"


def test_model_detail_and_top_models(client, db):
    alice = make_model(db, "Alice")
    bob = make_model(db, "Bob")
    bob.total_votes = 10
    db.commit()

    detail = client.get(f"/api/models/{alice.id}")
    top = client.get("/api/models/top")

    assert detail.status_code == 200
    assert detail.json()["name"] == "Alice"
    assert [m["id"] for m in top.json()] == [bob.id, alice.id]
    assert client.get("/api/models/9999").status_code == 404


def test_my_submissions_paginated(client, db):
    model = make_model(db, "Alice")
    for i in range(3):
        contest = make_contest(db, title=f"Contest {i}")
        make_entry(db, contest, model)

    response = client.get(
        "/api/my-submissions?page=1&limit=2", headers=auth_headers(model.user)
    )

    data = response.json()
    assert response.status_code == 200
    assert data["total"] == 3
    assert data["total_pages"] == 2
    assert len(data["submissions"]) == 2
    assert data["submissions"][0]["contest_title"].startswith("Contest")
