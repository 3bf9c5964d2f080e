# FILE: orderdesk/schemas/order.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from orderdesk.models.order import OrderStatus, PaymentStatus
from orderdesk.schemas.common import BlankAsNone
from orderdesk.schemas.location import CityOut, PincodeOut
from orderdesk.schemas.user import UserMiniOut


class OrderCreate(BlankAsNone):
    lead_id: int
    total_amount: Decimal = Field(..., ge=0)
    vpp_amount: Decimal = Field(..., ge=0)
    received_amount: Decimal = Field(..., ge=0)
    payment_status: PaymentStatus
    epp_amount: Optional[Decimal] = Field(None, ge=0)

    payment_method: Optional[str] = None
    money_order_number: Optional[str] = None

    # shipping address; anything omitted is copied from the lead
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
    station: Optional[str] = None

    notes: Optional[str] = None
    # honoured for admins only
    assigned_to: Optional[int] = None


class OrderUpdate(BlankAsNone):
    status: Optional[OrderStatus] = None

    dispatch_date: Optional[datetime] = None
    tracking_id: Optional[str] = None
    courier_service: Optional[str] = None
    weight: Optional[Decimal] = Field(None, ge=0)

    received_amount: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    money_order_number: Optional[str] = None
    epp_amount: Optional[Decimal] = Field(None, ge=0)

    delivered_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    return_reason: Optional[str] = None

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
    station: Optional[str] = None

    notes: Optional[str] = None
    assigned_to: Optional[int] = None


class PaymentOut(BaseModel):
    id: int
    order_id: int
    amount: Decimal
    payment_type: str
    payment_method: str
    reference_number: Optional[str] = None
    received_by: Optional[int] = None
    received_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderLeadOut(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    disease: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    lead_id: int
    patient_name: str
    patient_id: Optional[str] = None

    total_amount: Decimal
    vpp_amount: Decimal
    received_amount: Decimal
    epp_amount: Optional[Decimal] = None

    payment_status: str
    payment_method: Optional[str] = None
    money_order_number: Optional[str] = None
    status: str

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
    station: Optional[str] = None

    dispatch_date: Optional[datetime] = None
    tracking_id: Optional[str] = None
    courier_service: Optional[str] = None
    weight: Optional[Decimal] = None
    dispatched_by: Optional[int] = None

    delivered_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    return_reason: Optional[str] = None

    notes: Optional[str] = None
    assigned_to: int
    booked_by: int
    created_at: datetime
    updated_at: datetime

    lead: Optional[OrderLeadOut] = None
    assigned_user: Optional[UserMiniOut] = None
    city: Optional[CityOut] = None
    pincode: Optional[PincodeOut] = None

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(OrderOut):
    payments: List[PaymentOut] = []
