import re
from decimal import Decimal

from orderdesk.models import Order
from orderdesk.services.order_numbers import generate_order_number, next_order_number

from .conftest import make_lead


def test_format():
    assert generate_order_number("G", now_ms=1700000123456, rand=7) == "G123456007"
    assert re.fullmatch(r"G\d{9}", generate_order_number())


def test_prefix_is_configurable():
    assert generate_order_number("X", now_ms=1234567, rand=999) == "X234567999"


def test_regenerates_on_collision(db, employee):
    lead = make_lead(db, employee)
    db.add(
        Order(order_number="G000001001",
              lead_id=lead.id,
              patient_name=lead.name,
              total_amount=Decimal("1"),
              vpp_amount=Decimal("1"),
              received_amount=Decimal("0"),
              assigned_to=employee.id,
              booked_by=employee.id))
    db.commit()

    candidates = iter(["G000001001", "G000001001", "G000001002"])
    assert next_order_number(db, lambda: next(candidates)) == "G000001002"


def test_same_millisecond_orders_get_distinct_numbers(client, db, employee,
                                                      employee_headers, monkeypatch):
    from orderdesk.services import order_numbers

    real = order_numbers.generate_order_number
    rands = iter([5, 5, 6])
    # frozen clock, second candidate collides with the first order
    monkeypatch.setattr(order_numbers, "generate_order_number",
                        lambda: real("G", now_ms=1700000123456, rand=next(rands)))

    numbers = []
    for i in range(2):
        lead = make_lead(db, employee, phone=f"90000000{i}")
        r = client.post("/api/orders",
                        json={
                            "lead_id": lead.id,
                            "total_amount": 10,
                            "vpp_amount": 10,
                            "received_amount": 0,
                            "payment_status": "PENDING",
                        },
                        headers=employee_headers)
        assert r.status_code == 201
        numbers.append(r.json()["order_number"])

    assert numbers == ["G123456005", "G123456006"]
