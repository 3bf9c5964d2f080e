from pydantic import BaseModel, Field
from typing import List


class RoleBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None


class RoleCreate(RoleBase):
    permission_ids: List[int] = []


class RoleOut(RoleBase):
    id: int
    permission_ids: List[int]
    class Config:
        from_attributes = True


class PermissionOut(BaseModel):
    id: int
    module: str
    action: str
    code: str
    label: str
    class Config:
        from_attributes = True
