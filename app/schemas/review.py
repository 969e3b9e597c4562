"""Pydantic v2 schemas for Reviews."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewCreate(BaseModel):
    # Presence and range of these fields are checked by the review gate so the
    # caller gets an InvalidArgument with a specific message.
    request_id: uuid.UUID
    reviewee_id: uuid.UUID
    rating: int | None = None
    comment: str | None = Field(None, max_length=4096)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: uuid.UUID
    request_id: uuid.UUID
    reviewer_id: uuid.UUID
    reviewee_id: uuid.UUID
    role: str
    rating: int
    comment: str
    created_at: datetime

    @field_validator("role", mode="before")
    @classmethod
    def serialize_role(cls, v: object) -> str:
        if hasattr(v, "value"):
            return v.value
        return str(v)
