"""Request/response schemas for group endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class GroupCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    person_display_id: str


class GroupJoinRequest(BaseModel):
    person_display_id: str


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    member_count: int = 0
    created_at: datetime | None = None


class GroupMutationResponse(BaseModel):
    group: GroupResponse
    awarded_achievements: list[str] = []
