"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from irl.persons.schemas import PersonSummary


class EmailRequest(BaseModel):
    """Body carrying just an email address (register, resend, magic link)."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    """User profile as seen by the user themselves."""

    id: int
    email: str
    email_verified: bool = False
    is_admin: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    user: UserResponse
    person: PersonSummary | None = None


class LoginResponse(SessionResponse):
    """Magic-link redemption result: session plus a bearer token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    message: str = "Login successful"


class VerifyEmailResponse(BaseModel):
    user: UserResponse
    awarded_achievements: list[str] = []
