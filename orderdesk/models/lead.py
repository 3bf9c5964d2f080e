# FILE: orderdesk/models/lead.py
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


class LeadStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    CONVERTED = "CONVERTED"
    LOST = "LOST"


class LeadSource(str, Enum):
    WHATSAPP = "WHATSAPP"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    WEBSITE = "WEBSITE"
    REFERRAL = "REFERRAL"
    PHONE_CALL = "PHONE_CALL"
    OTHER = "OTHER"


class LeadPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class Lead(Base):
    """
    Prospective patient captured by the sales desk.
    Becomes CONVERTED once (and only once) an Order is booked from it.
    """
    __tablename__ = "leads"
    __table_args__ = (
        Index("ix_leads_assignee_status", "assigned_to", "status"),
        MYSQL_ARGS,
    )

    id = Column(Integer, primary_key=True, index=True)

    # Patient identity
    name = Column(String(120), nullable=False)
    father_name = Column(String(120), nullable=True)
    gender = Column(String(10), nullable=True)  # MALE | FEMALE | OTHER
    age = Column(Integer, nullable=True)
    phone = Column(String(32), nullable=False, index=True)
    email = Column(String(191), nullable=True)
    alternate_phone = Column(String(32), nullable=True)

    # Medical
    disease = Column(String(255), nullable=True)
    duration = Column(String(120), nullable=True)
    patient_history = Column(Text, nullable=True)

    # Estimated order value
    vpp_amount = Column(Numeric(12, 2), nullable=True)

    # Postal address (free text lines + normalized refs)
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

    preferred_language = Column(String(60), nullable=True)
    preferred_communication = Column(String(60), nullable=True)

    source = Column(String(20), nullable=False, default=LeadSource.OTHER.value)
    status = Column(String(20),
                    nullable=False,
                    default=LeadStatus.NEW.value,
                    index=True)
    priority = Column(String(10),
                      nullable=False,
                      default=LeadPriority.MEDIUM.value)

    notes = Column(Text, nullable=True)

    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime,
                        default=datetime.utcnow,
                        onupdate=datetime.utcnow,
                        nullable=False)

    assigned_user = relationship("User", foreign_keys=[assigned_to])
    city = relationship("City")
    pincode = relationship("Pincode")

    activities = relationship("LeadActivity",
                              back_populates="lead",
                              cascade="all, delete-orphan",
                              order_by="LeadActivity.created_at.desc()")
    orders = relationship("Order", back_populates="lead")


class LeadActivity(Base):
    __tablename__ = "lead_activities"
    __table_args__ = MYSQL_ARGS

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer,
                     ForeignKey("leads.id", ondelete="CASCADE"),
                     nullable=False,
                     index=True)
    type = Column(String(40), nullable=False)  # CALL | NOTE | WHATSAPP | ...
    description = Column(Text, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    lead = relationship("Lead", back_populates="activities")
