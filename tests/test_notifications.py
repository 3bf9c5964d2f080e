from orderdesk.models import Notification
from orderdesk.models.notification import NotificationType
from orderdesk.services import notifications
from orderdesk.services.notifications import (
    active_admin_ids,
    list_inbox,
    notify,
    notify_many,
)

from .conftest import make_user
from orderdesk.models.user import UserRoleType


class _Broken:

    def __init__(self, *a, **kw):
        raise RuntimeError("db gone")


def test_notify_creates_unread_item(db, employee):
    n = notify(db,
               user_id=employee.id,
               type=NotificationType.SYSTEM_ALERT,
               title="Hi",
               message="hello",
               entity_type="Lead",
               entity_id=5)
    assert n is not None
    assert n.read is False
    assert n.type == "SYSTEM_ALERT"
    assert n.entity_id == "5"


def test_notify_many_dedups_recipients(db, employee, other_employee):
    rows = notify_many(db, [employee.id, other_employee.id, employee.id],
                       type=NotificationType.SYSTEM_ALERT,
                       title="t",
                       message="m")
    assert len(rows) == 2
    assert db.query(Notification).count() == 2
    assert notify_many(db, [], type="SYSTEM_ALERT", title="t", message="m") == []


def test_failures_are_swallowed(db, employee, monkeypatch):
    monkeypatch.setattr(notifications, "Notification", _Broken)
    assert notify(db, user_id=employee.id, type="SYSTEM_ALERT", title="t",
                  message="m") is None
    assert notify_many(db, [employee.id], type="SYSTEM_ALERT", title="t",
                       message="m") == []


def test_active_admin_ids_skips_inactive(db, admin):
    make_user(db, "Old Admin", "old@example.com", role=UserRoleType.ADMIN,
              is_active=False)
    assert active_admin_ids(db) == [admin.id]


def test_inbox_limit_and_unread_count(db, employee):
    for i in range(5):
        notify(db, user_id=employee.id, type="SYSTEM_ALERT", title=f"#{i}",
               message="m")
    rows, unread = list_inbox(db, employee.id, limit=3)
    assert len(rows) == 3
    assert unread == 5


def test_inbox_api_mark_one_and_all(client, db, employee, other_employee,
                                    employee_headers, other_headers):
    mine = notify(db, user_id=employee.id, type="SYSTEM_ALERT", title="a", message="m")
    notify(db, user_id=employee.id, type="SYSTEM_ALERT", title="b", message="m")
    theirs = notify(db, user_id=other_employee.id, type="SYSTEM_ALERT", title="c",
                    message="m")

    r = client.get("/api/notifications", headers=employee_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["unread_count"] == 2
    assert {n["title"] for n in body["notifications"]} == {"a", "b"}

    # scoped to the owner
    r = client.patch("/api/notifications", json={"notification_id": theirs.id},
                     headers=employee_headers)
    assert r.status_code == 404

    r = client.patch("/api/notifications", json={"notification_id": mine.id},
                     headers=employee_headers)
    assert r.status_code == 200
    assert r.json()["read"] is True
    assert r.json()["read_at"] is not None

    r = client.get("/api/notifications?unread_only=true", headers=employee_headers)
    assert [n["title"] for n in r.json()["notifications"]] == ["b"]

    r = client.patch("/api/notifications", json={"mark_all_as_read": True},
                     headers=employee_headers)
    assert r.status_code == 200
    assert r.json()["updated"] == 1
    assert client.get("/api/notifications",
                      headers=employee_headers).json()["unread_count"] == 0
    # other inbox untouched
    assert client.get("/api/notifications",
                      headers=other_headers).json()["unread_count"] == 1


def test_mark_requires_a_target(client, employee_headers):
    r = client.patch("/api/notifications", json={}, headers=employee_headers)
    assert r.status_code == 400
