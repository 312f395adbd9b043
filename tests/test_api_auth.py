from app.utils.constants import Plan


def test_login_returns_token_with_claims(client, accounts, app):
    client_id, user_id, _ = accounts.tenant(plan=Plan.STANDARD)

    res = client.post("/api/users/login", json={"email": "tenant1@example.com", "password": "secret123"})

    assert res.status_code == 200
    body = res.json()
    identity = app.state.token_service.verify(body["token"])
    assert identity.user_id == user_id
    assert identity.client_id == client_id
    assert identity.plan == Plan.STANDARD
    assert body["user"]["client"]["plan"] == "STANDARD"


def test_login_with_wrong_password(client, accounts):
    accounts.tenant()
    res = client.post("/api/users/login", json={"email": "tenant1@example.com", "password": "nope"})

    assert res.status_code == 401
    assert res.json()["error"]["kind"] == "unauthenticated"


def test_login_unknown_email(client):
    res = client.post("/api/users/login", json={"email": "ghost@example.com", "password": "whatever"})
    assert res.status_code == 401


def test_deactivated_tenant_cannot_login_or_use_old_token(client, accounts, admin_headers):
    _, user_id, headers = accounts.tenant()
    assert client.get("/api/clients/me", headers=headers).status_code == 200

    res = client.patch(f"/api/users/{user_id}/status", json={"is_active": False}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["is_active"] is False

    assert client.get("/api/clients/me", headers=headers).status_code == 403
    login = client.post("/api/users/login", json={"email": "tenant1@example.com", "password": "secret123"})
    assert login.status_code == 403

    client.patch(f"/api/users/{user_id}/status", json={"is_active": True}, headers=admin_headers)
    assert client.get("/api/clients/me", headers=headers).status_code == 200


def test_status_toggle_for_user_without_tenant(client, accounts, admin_headers):
    admin_id, _ = accounts.admin(email="second@example.com")
    res = client.patch(f"/api/users/{admin_id}/status", json={"is_active": False}, headers=admin_headers)
    assert res.status_code == 404


def test_missing_or_bad_token(client):
    assert client.get("/api/clients/me").status_code == 401
    res = client.get("/api/clients/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid token"


def test_admin_creates_client_user(client, admin_headers):
    res = client.post(
        "/api/users",
        json={
            "email": "New.Client@Example.com",
            "password": "secret123",
            "name": "New Client",
            "plan": "FULL",
            "company_name": "Acme",
        },
        headers=admin_headers,
    )

    assert res.status_code == 201
    body = res.json()
    assert body["email"] == "new.client@example.com"
    assert body["role"] == "CLIENT"
    assert body["client"]["plan"] == "FULL"
    assert body["client"]["company_name"] == "Acme"
    assert body["client"]["is_active"] is True


def test_duplicate_email_is_a_conflict(client, admin_headers):
    payload = {"email": "dup@example.com", "password": "secret123"}
    assert client.post("/api/users", json=payload, headers=admin_headers).status_code == 201

    res = client.post("/api/users", json=payload, headers=admin_headers)
    assert res.status_code == 409
    assert res.json()["error"]["kind"] == "conflict"


def test_invalid_plan_is_a_validation_error(client, admin_headers):
    res = client.post(
        "/api/users",
        json={"email": "x@example.com", "password": "secret123", "plan": "PLATINUM"},
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"


def test_tenants_cannot_create_users(client, accounts):
    _, _, headers = accounts.tenant()
    res = client.post("/api/users", json={"email": "y@example.com", "password": "secret123"}, headers=headers)
    assert res.status_code == 403
