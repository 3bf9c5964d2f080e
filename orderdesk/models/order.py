# FILE: orderdesk/models/order.py
from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    ForeignKey,
    Index,
    Text,
)
from sqlalchemy.orm import relationship

from orderdesk.db.base import Base, MYSQL_ARGS


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    DISPATCHED = "DISPATCHED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    PAID = "PAID"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    FULL = "FULL"
    CUSTOM = "CUSTOM"
    COMPLETED = "COMPLETED"


class PaymentType(str, Enum):
    INITIAL = "INITIAL"
    PARTIAL = "PARTIAL"


DEFAULT_PAYMENT_METHOD = "MONEY_ORDER"


class Order(Base):
    """
    Confirmed sale booked from exactly one Lead.

    received_amount only ever grows; every increase is mirrored by a
    Payment row so sum(payments.amount) == received_amount.
    """
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_assignee_status", "assigned_to", "status"),
        Index("ix_orders_dispatch_date", "dispatch_date"),
        MYSQL_ARGS,
    )

    id = Column(Integer, primary_key=True, index=True)

    order_number = Column(String(32), unique=True, nullable=False, index=True)

    # one lead -> zero or one order
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, unique=True)

    patient_name = Column(String(120), nullable=False)
    patient_id = Column(String(32), nullable=True)

    # Money
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    vpp_amount = Column(Numeric(12, 2), nullable=False, default=0)
    received_amount = Column(Numeric(12, 2), nullable=False, default=0)
    epp_amount = Column(Numeric(12, 2), nullable=True)  # extra fee

    payment_status = Column(String(16),
                            nullable=False,
                            default=PaymentStatus.PENDING.value)
    payment_method = Column(String(40), nullable=True)
    money_order_number = Column(String(64), nullable=True)

    status = Column(String(20),
                    nullable=False,
                    default=OrderStatus.PENDING.value,
                    index=True)

    # Shipping address
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    address_line3 = Column(String(255), nullable=True)
    address_line4 = Column(String(255), nullable=True)
    address_line5 = Column(String(255), nullable=True)
    address_line6 = Column(String(255), nullable=True)
    pincode_id = Column(Integer, ForeignKey("pincodes.id"), nullable=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=True)
    state = Column(String(120), nullable=True)
    country = Column(String(120), nullable=True)
    station = Column(String(120), nullable=True)

    # Dispatch
    dispatch_date = Column(DateTime, nullable=True)
    tracking_id = Column(String(64), nullable=True, index=True)
    courier_service = Column(String(120), nullable=True)
    weight = Column(Numeric(10, 3), nullable=True)
    dispatched_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Delivery / return
    delivered_date = Column(DateTime, nullable=True)
    return_date = Column(DateTime, nullable=True)
    return_reason = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)

    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=False)
    booked_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime,
                        default=datetime.utcnow,
                        onupdate=datetime.utcnow,
                        nullable=False)

    lead = relationship("Lead", back_populates="orders")
    assigned_user = relationship("User", foreign_keys=[assigned_to])
    city = relationship("City")
    pincode = relationship("Pincode")
    payments = relationship("Payment",
                            back_populates="order",
                            order_by="Payment.received_at.desc()")


class Payment(Base):
    """
    Append-only ledger row for one money movement against an Order.
    """
    __tablename__ = "payments"
    __table_args__ = MYSQL_ARGS

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer,
                      ForeignKey("orders.id"),
                      nullable=False,
                      index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    payment_type = Column(String(16), nullable=False)  # INITIAL | PARTIAL
    payment_method = Column(String(40),
                            nullable=False,
                            default=DEFAULT_PAYMENT_METHOD)
    reference_number = Column(String(64), nullable=True)
    received_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    received_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="payments")
