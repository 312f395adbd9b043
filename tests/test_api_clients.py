from pathlib import Path

from app.utils.constants import Plan

from conftest import PNG_BYTES


def test_me_returns_own_tenant(client, accounts):
    client_id, user_id, headers = accounts.tenant(plan=Plan.FULL)

    res = client.get("/api/clients/me", headers=headers)

    assert res.status_code == 200
    assert res.json()["id"] == client_id
    assert res.json()["user_id"] == user_id
    assert res.json()["plan"] == "FULL"


def test_admin_has_no_tenant(client, admin_headers):
    assert client.get("/api/clients/me", headers=admin_headers).status_code == 404


def test_list_and_get_are_admin_only(client, accounts, admin_headers):
    client_id, _, headers = accounts.tenant()
    accounts.tenant()

    res = client.get("/api/clients", headers=admin_headers)
    assert res.status_code == 200
    assert len(res.json()) == 2
    assert client.get(f"/api/clients/{client_id}", headers=admin_headers).json()["id"] == client_id
    assert client.get("/api/clients/999", headers=admin_headers).status_code == 404

    assert client.get("/api/clients", headers=headers).status_code == 403
    assert client.get(f"/api/clients/{client_id}", headers=headers).status_code == 403


def test_delete_client_cascades_and_removes_files(client, accounts, admin_headers, settings):
    client_id, _, headers = accounts.tenant()
    pub = client.post(
        f"/api/clients/{client_id}/publications",
        json={"title": "p", "content_type": "POST"},
        headers=admin_headers,
    ).json()
    media = client.post(
        f"/api/publications/{pub['id']}/media",
        params={"publishNow": "true"},
        files={"mediaFile": ("p.png", PNG_BYTES, "image/png")},
        headers=admin_headers,
    ).json()["media"]
    client.post(f"/api/publications/{pub['id']}/comments", json={"comment": "hi"}, headers=headers)

    res = client.delete(f"/api/clients/{client_id}", headers=admin_headers)

    assert res.status_code == 200
    assert res.json()["media_files_removed"] == 1
    assert not (Path(settings.UPLOADS_DIR) / media["url"]).exists()
    assert client.get(f"/api/clients/{client_id}", headers=admin_headers).status_code == 404
    assert client.get(f"/api/publications/{pub['id']}", headers=admin_headers).status_code == 404
    login = client.post("/api/users/login", json={"email": "tenant1@example.com", "password": "secret123"})
    assert login.status_code == 401
