import json
from datetime import datetime
from decimal import Decimal

from orderdesk.models import AuditLog, Lead
from orderdesk.models.audit import AuditAction
from orderdesk.services import audit_logger
from orderdesk.services.audit_logger import instance_to_audit_dict, log_audit

from .conftest import make_lead


class _Broken:

    def __init__(self, *a, **kw):
        raise RuntimeError("audit store down")


def test_log_audit_serializes_changes(db, admin):
    row = log_audit(
        db,
        user_id=admin.id,
        action=AuditAction.UPDATE,
        entity_type="Order",
        entity_id=7,
        changes={
            "amount": Decimal("12.50"),
            "at": datetime(2024, 1, 2, 3, 4, 5),
            "action": AuditAction.ASSIGN,
        },
        description="x",
        ip_address="10.0.0.1",
    )
    assert row is not None
    stored = db.query(AuditLog).one()
    assert stored.action == "UPDATE"
    assert stored.entity_id == "7"
    data = json.loads(stored.changes)
    assert data["at"].startswith("2024-01-02T03:04:05")
    assert data["action"] == "ASSIGN"
    assert Decimal(str(data["amount"])) == Decimal("12.50")


def test_log_audit_swallows_failures(db, admin, monkeypatch, caplog):
    monkeypatch.setattr(audit_logger, "AuditLog", _Broken)
    assert log_audit(db, user_id=admin.id, action="CREATE",
                     entity_type="Lead", entity_id=1) is None
    assert "Failed to write audit log" in caplog.text


def test_snapshot_is_json_safe(db, employee):
    lead = make_lead(db, employee, vpp_amount=Decimal("100.00"))
    snap = instance_to_audit_dict(lead)
    json.dumps(snap)
    assert snap["vpp_amount"] == "100.00"
    assert snap["assigned_to"] == employee.id


def test_audit_failure_does_not_block_lead_create(client, db, employee_headers,
                                                  monkeypatch):
    monkeypatch.setattr(audit_logger, "AuditLog", _Broken)
    r = client.post("/api/leads",
                    json={"name": "A", "phone": "9990001111"},
                    headers=employee_headers)
    assert r.status_code == 201
    assert db.query(Lead).count() == 1
    assert db.query(AuditLog).count() == 0


def test_audit_failure_does_not_block_order_create(client, db, employee,
                                                   employee_headers, monkeypatch):
    lead = make_lead(db, employee)
    monkeypatch.setattr(audit_logger, "AuditLog", _Broken)
    r = client.post("/api/orders",
                    json={
                        "lead_id": lead.id,
                        "total_amount": 100,
                        "vpp_amount": 100,
                        "received_amount": 0,
                        "payment_status": "PENDING",
                    },
                    headers=employee_headers)
    assert r.status_code == 201
    db.expire_all()
    assert db.get(Lead, lead.id).status == "CONVERTED"
