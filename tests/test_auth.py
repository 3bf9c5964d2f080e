from datetime import timedelta

from orderdesk.models import AuditLog
from orderdesk.utils.jwt import create_access_token

from .conftest import auth_headers, make_user


def test_login_returns_bearer_token_and_audits(client, db, employee):
    r = client.post("/api/auth/login",
                    json={"email": "EMP1@example.com", "password": "secret123"})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"

    me = client.get("/api/auth/me",
                    headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == employee.id

    log = db.query(AuditLog).filter_by(action="LOGIN").one()
    assert log.user_id == employee.id
    assert log.entity_type == "User"


def test_login_rejects_bad_password(client, employee):
    r = client.post("/api/auth/login",
                    json={"email": "emp1@example.com", "password": "wrong"})
    assert r.status_code == 401
    assert r.json() == {
        "ok": False,
        "error": {"msg": "Invalid credentials", "code": "UNAUTHORIZED", "details": None},
    }


def test_inactive_user(client, db):
    u = make_user(db, "Gone", "gone@example.com", is_active=False)
    r = client.post("/api/auth/login",
                    json={"email": "gone@example.com", "password": "secret123"})
    assert r.status_code == 403
    assert client.get("/api/auth/me", headers=auth_headers(u)).status_code == 403


def test_missing_or_bad_token_is_401(client, employee):
    assert client.get("/api/leads").status_code == 401
    r = client.get("/api/leads", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json()["ok"] is False

    expired = create_access_token(user_id=employee.id, role=employee.role,
                                  expires_delta=timedelta(seconds=-5))
    r = client.get("/api/leads", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401


def test_me_lists_effective_permissions(client, employee_headers, admin_headers):
    emp = client.get("/api/auth/me", headers=employee_headers).json()
    assert "leads.create" in emp["permissions"]
    assert "users.delete" not in emp["permissions"]
    assert emp["role_ids"]

    adm = client.get("/api/auth/me", headers=admin_headers).json()
    assert adm["role"] == "ADMIN"
    assert "users.delete" in adm["permissions"]


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
