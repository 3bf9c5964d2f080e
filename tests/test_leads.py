import json

from orderdesk.models import AuditLog, Lead, Notification, Order
from orderdesk.models.lead import LeadStatus

from .conftest import make_lead


def _audits(db, action, entity_type="Lead"):
    return db.query(AuditLog).filter_by(action=action, entity_type=entity_type).all()


def test_employee_creates_lead_assigned_to_self(client, db, admin, employee,
                                                employee_headers):
    r = client.post("/api/leads",
                    json={"name": "A", "phone": "9990001111", "assigned_to": admin.id},
                    headers=employee_headers)
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "NEW"
    assert body["priority"] == "MEDIUM"
    assert body["source"] == "OTHER"
    # employees cannot hand leads to someone else
    assert body["assigned_to"] == employee.id

    assert len(_audits(db, "CREATE")) == 1
    admin_inbox = db.query(Notification).filter_by(user_id=admin.id).all()
    assert [n.title for n in admin_inbox] == ["New Lead Created"]
    assert admin_inbox[0].type == "LEAD_ASSIGNED"


def test_admin_assigns_on_create(client, db, employee, admin_headers):
    r = client.post("/api/leads",
                    json={"name": "B", "phone": "1", "assigned_to": employee.id,
                          "email": ""},
                    headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["assigned_to"] == employee.id
    assert r.json()["email"] is None

    n = db.query(Notification).filter_by(user_id=employee.id).one()
    assert n.type == "LEAD_ASSIGNED"
    assert n.entity_id == str(r.json()["id"])


def test_admin_assign_to_unknown_user_is_404(client, admin_headers):
    r = client.post("/api/leads", json={"name": "B", "phone": "1", "assigned_to": 4242},
                    headers=admin_headers)
    assert r.status_code == 404


def test_create_validation(client, employee_headers):
    r = client.post("/api/leads", json={"name": "A"}, headers=employee_headers)
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert any(d["loc"][-1] == "phone" for d in err["details"])

    r = client.post("/api/leads", json={"name": "A", "phone": "1", "email": "nope"},
                    headers=employee_headers)
    assert r.status_code == 400


def test_employee_sees_only_own_leads(client, db, employee, other_employee,
                                      employee_headers, admin_headers):
    mine = make_lead(db, employee, name="Mine")
    theirs = make_lead(db, other_employee, name="Theirs")

    r = client.get("/api/leads", headers=employee_headers)
    assert r.status_code == 200
    assert [l["id"] for l in r.json()["data"]] == [mine.id]
    assert all(l["assigned_to"] == employee.id for l in r.json()["data"])

    assert client.get(f"/api/leads/{theirs.id}", headers=employee_headers).status_code == 403
    assert client.patch(f"/api/leads/{theirs.id}", json={"notes": "x"},
                        headers=employee_headers).status_code == 403
    assert client.delete(f"/api/leads/{theirs.id}",
                         headers=employee_headers).status_code == 403

    r = client.get("/api/leads", headers=admin_headers)
    assert r.json()["pagination"]["total"] == 2


def test_converted_leads_hidden_unless_requested(client, db, employee,
                                                 employee_headers):
    make_lead(db, employee, name="Open")
    make_lead(db, employee, name="Done", status=LeadStatus.CONVERTED.value)

    r = client.get("/api/leads", headers=employee_headers)
    assert [l["name"] for l in r.json()["data"]] == ["Open"]

    r = client.get("/api/leads?status=CONVERTED", headers=employee_headers)
    assert [l["name"] for l in r.json()["data"]] == ["Done"]


def test_list_filters_search_and_pagination(client, db, employee, employee_headers):
    for i in range(5):
        make_lead(db, employee, name=f"Ravi {i}", priority="HIGH" if i % 2 else "LOW")
    make_lead(db, employee, name="Someone", phone="7777")

    r = client.get("/api/leads?search=ravi&limit=2&page=2", headers=employee_headers)
    body = r.json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "total_pages": 3}
    assert len(body["data"]) == 2

    r = client.get("/api/leads?priority=HIGH", headers=employee_headers)
    assert r.json()["pagination"]["total"] == 2

    r = client.get("/api/leads?search=7777", headers=employee_headers)
    assert [l["name"] for l in r.json()["data"]] == ["Someone"]


def test_partial_update_semantics(client, db, employee, employee_headers):
    lead = make_lead(db, employee, name="Asha", email="asha@example.com",
                     disease="Diabetes")

    r = client.patch(f"/api/leads/{lead.id}", json={"email": None, "name": ""},
                     headers=employee_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["email"] is None  # explicit null clears
    assert body["name"] == "Asha"  # name cannot be cleared
    assert body["disease"] == "Diabetes"  # absent -> untouched

    r = client.patch(f"/api/leads/{lead.id}", json={"phone": ""},
                     headers=employee_headers)
    assert r.status_code == 400

    audit = _audits(db, "UPDATE")[0]
    changes = json.loads(audit.changes)
    assert sorted(changes["updated_fields"]) == ["email"]
    assert changes["old"]["email"] == "asha@example.com"
    assert changes["new"]["email"] is None


def test_employee_cannot_reassign(client, db, employee, other_employee,
                                  employee_headers):
    lead = make_lead(db, employee)
    r = client.patch(f"/api/leads/{lead.id}",
                     json={"assigned_to": other_employee.id, "notes": "n"},
                     headers=employee_headers)
    assert r.status_code == 200
    assert r.json()["assigned_to"] == employee.id
    assert r.json()["notes"] == "n"


def test_status_change_notifications(client, db, admin, employee, employee_headers,
                                     admin_headers):
    lead = make_lead(db, employee, name="Kumar")

    # employee changes own lead -> admins hear about it, not the employee
    client.patch(f"/api/leads/{lead.id}", json={"status": "CONTACTED"},
                 headers=employee_headers)
    assert db.query(Notification).filter_by(user_id=admin.id,
                                            type="LEAD_STATUS_CHANGED").count() == 1
    assert db.query(Notification).filter_by(user_id=employee.id).count() == 0

    # admin changes it -> assignee hears about it
    client.patch(f"/api/leads/{lead.id}", json={"status": "QUALIFIED"},
                 headers=admin_headers)
    n = db.query(Notification).filter_by(user_id=employee.id).one()
    assert n.type == "LEAD_STATUS_CHANGED"
    assert "QUALIFIED" in n.message


def test_admin_reassign_notifies_new_owner(client, db, employee, other_employee,
                                           admin_headers):
    lead = make_lead(db, employee)
    r = client.patch(f"/api/leads/{lead.id}", json={"assigned_to": other_employee.id},
                     headers=admin_headers)
    assert r.status_code == 200
    assert db.query(Notification).filter_by(user_id=other_employee.id,
                                            type="LEAD_ASSIGNED").count() == 1


def test_delete_lead(client, db, employee, employee_headers):
    lead_id = make_lead(db, employee, name="Gone").id
    r = client.delete(f"/api/leads/{lead_id}", headers=employee_headers)
    assert r.status_code == 200
    db.expire_all()
    assert db.get(Lead, lead_id) is None

    audit = _audits(db, "DELETE")[0]
    assert json.loads(audit.changes)["name"] == "Gone"

    assert client.get(f"/api/leads/{lead_id}", headers=employee_headers).status_code == 404


def test_converted_lead_cannot_be_deleted(client, db, employee, employee_headers):
    lead = make_lead(db, employee)
    client.post("/api/orders",
                json={"lead_id": lead.id, "total_amount": 1, "vpp_amount": 1,
                      "received_amount": 0, "payment_status": "PENDING"},
                headers=employee_headers)

    r = client.delete(f"/api/leads/{lead.id}", headers=employee_headers)
    assert r.status_code == 409
    assert db.query(Order).count() == 1


def test_bulk_assign(client, db, admin, employee, other_employee, admin_headers):
    leads = [make_lead(db, employee, name=f"L{i}") for i in range(3)]
    ids = [l.id for l in leads]

    r = client.post("/api/leads/bulk-assign",
                    json={"lead_ids": ids + [9999], "assigned_to": other_employee.id},
                    headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"updated": 3, "lead_ids": ids}

    db.expire_all()
    assert {db.get(Lead, i).assigned_to for i in ids} == {other_employee.id}

    audits = _audits(db, "ASSIGN")
    assert sorted(int(a.entity_id) for a in audits) == sorted(ids)
    assert all(a.user_id == admin.id for a in audits)

    inbox = db.query(Notification).filter_by(user_id=other_employee.id).all()
    assert len(inbox) == 1
    assert inbox[0].type == "LEAD_ASSIGNED"


def test_bulk_assign_guards(client, db, employee, employee_headers, admin_headers):
    lead = make_lead(db, employee)
    r = client.post("/api/leads/bulk-assign",
                    json={"lead_ids": [lead.id], "assigned_to": employee.id},
                    headers=employee_headers)
    assert r.status_code == 403

    r = client.post("/api/leads/bulk-assign",
                    json={"lead_ids": [lead.id], "assigned_to": 4242},
                    headers=admin_headers)
    assert r.status_code == 404


def test_activities(client, db, employee, other_employee, employee_headers,
                    other_headers):
    lead = make_lead(db, employee)
    r = client.post(f"/api/leads/{lead.id}/activities",
                    json={"type": "call", "description": "Called, no answer"},
                    headers=employee_headers)
    assert r.status_code == 201
    assert r.json()["type"] == "CALL"
    assert r.json()["created_by"] == employee.id

    r = client.post(f"/api/leads/{lead.id}/activities",
                    json={"type": "note", "description": "x"},
                    headers=other_headers)
    assert r.status_code == 403

    detail = client.get(f"/api/leads/{lead.id}", headers=employee_headers).json()
    assert [a["description"] for a in detail["activities"]] == ["Called, no answer"]
    assert detail["orders"] == []


def test_null_on_required_fields_keeps_current_value(client, db, employee,
                                                     employee_headers):
    lead = make_lead(db, employee, status="CONTACTED", priority="HIGH",
                     source="WEBSITE")

    for body in ({"status": None}, {"priority": ""}, {"source": None}):
        r = client.patch(f"/api/leads/{lead.id}", json=body, headers=employee_headers)
        assert r.status_code == 200, body

    r = client.patch(f"/api/leads/{lead.id}",
                     json={"status": None, "priority": None, "notes": "kept"},
                     headers=employee_headers)
    body = r.json()
    assert (body["status"], body["priority"], body["source"]) == (
        "CONTACTED", "HIGH", "WEBSITE")
    assert body["notes"] == "kept"
