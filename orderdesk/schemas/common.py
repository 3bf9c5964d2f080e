# FILE: orderdesk/schemas/common.py
from __future__ import annotations

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Page(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


class BlankAsNone(BaseModel):
    """
    Input base: "" (or whitespace) is treated the same as an explicit null,
    so forms can clear optional text fields.
    """

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
