# orderdesk/schemas/user.py
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List

from orderdesk.models.user import UserRoleType


class UserBase(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: UserRoleType = UserRoleType.EMPLOYEE
    is_active: bool = True
    phone: Optional[str] = None


class UserCreate(UserBase):
    # random password is generated when omitted
    password: Optional[str] = Field(None, min_length=6)
    role_ids: List[int] = []


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRoleType] = None
    is_active: Optional[bool] = None
    phone: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)

    # None => keep existing roles, [] => clear, [..] => replace
    role_ids: Optional[List[int]] = None


class ProfileUpdate(BaseModel):
    # empty name is ignored, not applied
    name: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRoleType
    is_active: bool
    phone: Optional[str] = None
    bio: Optional[str] = None
    role_ids: List[int] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MeOut(UserOut):
    permissions: List[str] = []


class UserMiniOut(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True
