"""Pydantic v2 schemas for service requests."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RequestCreate(BaseModel):
    service_type: str = Field(..., min_length=1, max_length=64)
    description: str = Field(..., min_length=1, max_length=4096)
    location: str = Field(..., min_length=1, max_length=256)
    scheduled_date: str = Field(..., min_length=1, max_length=32)
    scheduled_time: str = Field(..., min_length=1, max_length=32)
    phone: str | None = Field(None, max_length=32)
    budget: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)


class RequestUpdate(BaseModel):
    """Detail edits while the request is still pending. Ownership is not editable."""
    model_config = ConfigDict(extra="forbid")

    service_type: str | None = Field(None, min_length=1, max_length=64)
    description: str | None = Field(None, min_length=1, max_length=4096)
    location: str | None = Field(None, min_length=1, max_length=256)
    scheduled_date: str | None = Field(None, min_length=1, max_length=32)
    scheduled_time: str | None = Field(None, min_length=1, max_length=32)
    phone: str | None = Field(None, max_length=32)
    budget: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)

    @field_validator(
        "service_type", "description", "location", "scheduled_date", "scheduled_time"
    )
    @classmethod
    def not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("cannot be null")
        return v


class RequestStatusUpdate(BaseModel):
    """Only completion is client-driven; assignment happens by accepting a bid."""
    model_config = ConfigDict(extra="forbid")

    status: Literal["completed"]


class RequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request_id: uuid.UUID
    requester_id: uuid.UUID
    assigned_worker_id: uuid.UUID | None
    service_type: str
    description: str
    location: str
    scheduled_date: str
    scheduled_time: str
    phone: str | None
    budget: Decimal | None
    status: str
    created_at: datetime
    updated_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def serialize_status(cls, v: object) -> str:
        if hasattr(v, "value"):
            return v.value
        return str(v)
