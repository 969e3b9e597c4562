"""Pydantic v2 schemas for bids."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.request import RequestResponse


class BidCreate(BaseModel):
    request_id: uuid.UUID
    # Positivity is a business rule checked by the bid ledger (InvalidArgument),
    # so the schema only bounds the shape.
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)


class BidResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bid_id: uuid.UUID
    request_id: uuid.UUID
    worker_id: uuid.UUID
    amount: Decimal
    status: str
    created_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def serialize_status(cls, v: object) -> str:
        if hasattr(v, "value"):
            return v.value
        return str(v)


class BidListItem(BidResponse):
    """Bid as shown on the requester's review screen."""
    is_open: bool


class AcceptBidResponse(BaseModel):
    message: str
    bid: BidResponse
    request: RequestResponse
