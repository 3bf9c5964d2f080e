# FILE: orderdesk/schemas/lead.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from orderdesk.models.lead import Gender, LeadPriority, LeadSource, LeadStatus
from orderdesk.schemas.common import BlankAsNone
from orderdesk.schemas.location import CityOut, PincodeOut
from orderdesk.schemas.order import OrderDetailOut
from orderdesk.schemas.user import UserMiniOut


class LeadFields(BlankAsNone):
    father_name: Optional[str] = None
    gender: Optional[Gender] = None
    age: Optional[int] = Field(None, ge=0, le=150)
    email: Optional[EmailStr] = None
    alternate_phone: Optional[str] = None

    disease: Optional[str] = None
    duration: Optional[str] = None
    patient_history: Optional[str] = None
    vpp_amount: Optional[Decimal] = Field(None, ge=0)

    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    address_line3: Optional[str] = None
    address_line4: Optional[str] = None
    address_line5: Optional[str] = None
    address_line6: Optional[str] = None
    pincode_id: Optional[int] = None
    city_id: Optional[int] = None
    state: Optional[str] = None
    country: Optional[str] = None

    preferred_language: Optional[str] = None
    preferred_communication: Optional[str] = None

    notes: Optional[str] = None
    assigned_to: Optional[int] = None


class LeadCreate(LeadFields):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    source: LeadSource = LeadSource.OTHER
    status: LeadStatus = LeadStatus.NEW
    priority: LeadPriority = LeadPriority.MEDIUM


class LeadUpdate(LeadFields):
    """
    Partial update. Only keys present in the body are applied
    (see ``model_fields_set``); an explicit null clears the column.
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[LeadSource] = None
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None

    @model_validator(mode="after")
    def _phone_not_cleared(self):
        if "phone" in self.model_fields_set and self.phone is None:
            raise ValueError("phone cannot be empty")
        return self


class LeadOut(BaseModel):
    id: int
    name: str
    father_name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    phone: str
    email: Optional[str] = None
    alternate_phone: Optional[str] = None

    disease: Optional[str] = None
    duration: Optional[str] = None
    patient_history: Optional[str] = None
    vpp_amount: Optional[Decimal] = None

    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    address_line3: Optional[str] = None
    address_line4: Optional[str] = None
    address_line5: Optional[str] = None
    address_line6: Optional[str] = None
    pincode_id: Optional[int] = None
    city_id: Optional[int] = None
    state: Optional[str] = None
    country: Optional[str] = None

    preferred_language: Optional[str] = None
    preferred_communication: Optional[str] = None

    source: str
    status: str
    priority: str
    notes: Optional[str] = None
    assigned_to: int
    created_at: datetime
    updated_at: datetime

    assigned_user: Optional[UserMiniOut] = None
    city: Optional[CityOut] = None
    pincode: Optional[PincodeOut] = None

    model_config = ConfigDict(from_attributes=True)


class ActivityIn(BaseModel):
    type: str = Field(..., min_length=1, max_length=40)
    description: str = Field(..., min_length=1)


class ActivityOut(BaseModel):
    id: int
    lead_id: int
    type: str
    description: str
    created_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeadDetailOut(LeadOut):
    activities: List[ActivityOut] = []
    orders: List[OrderDetailOut] = []


class BulkAssignIn(BaseModel):
    lead_ids: List[int] = Field(..., min_length=1)
    assigned_to: int


class BulkAssignOut(BaseModel):
    updated: int
    lead_ids: List[int]
