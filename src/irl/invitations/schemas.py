"""Request/response schemas for invitations."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, field_validator


class InvitationRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class InvitationResponse(BaseModel):
    message: str
