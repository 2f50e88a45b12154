"""Request/response schemas for the interest catalog."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class InterestRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)


class InterestResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class InterestListResponse(BaseModel):
    interests: list[InterestResponse]
    total: int
    page: int
    limit: int
    total_pages: int
