"""Request/response schemas for person endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from irl.db.models import ContactType, PrivacyLevel


# --- Persons ---


class PersonCreateRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    pronouns: str | None = Field(None, max_length=50)
    image_url: str | None = Field(None, max_length=2048)


class PersonUpdateRequest(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    pronouns: str | None = Field(None, max_length=50)
    image_url: str | None = Field(None, max_length=2048)

    @field_validator("first_name")
    @classmethod
    def first_name_not_null(cls, v: str | None) -> str | None:
        if v is None:
            msg = "first_name cannot be cleared"
            raise ValueError(msg)
        return v


class PersonSummary(BaseModel):
    id: int
    display_id: str
    first_name: str
    last_name: str | None = None
    pronouns: str | None = None
    image_url: str | None = None

    model_config = {"from_attributes": True}


class ContactResponse(BaseModel):
    id: int
    type: str
    label: str | None = None
    value: str
    privacy: str
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PersonInterestResponse(BaseModel):
    interest_id: int
    name: str
    level: int


class PersonResponse(PersonSummary):
    user_id: int
    contacts: list[ContactResponse] = []
    interests: list[PersonInterestResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PersonMutationResponse(BaseModel):
    person: PersonResponse
    awarded_achievements: list[str] = []


# --- Contacts ---


class ContactCreateRequest(BaseModel):
    type: ContactType
    label: str | None = Field(None, max_length=100)
    value: str = Field(..., min_length=1, max_length=2048)
    privacy: PrivacyLevel = PrivacyLevel.PUBLIC
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class ContactUpdateRequest(BaseModel):
    type: ContactType | None = None
    label: str | None = Field(None, max_length=100)
    value: str | None = Field(None, min_length=1, max_length=2048)
    privacy: PrivacyLevel | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class ContactMutationResponse(BaseModel):
    contact: ContactResponse
    awarded_achievements: list[str] = []


# --- Interests ---


class InterestLevelItem(BaseModel):
    interest_id: int
    level: int = Field(3, ge=1, le=5)


class PersonInterestsRequest(BaseModel):
    interests: list[InterestLevelItem]

    @field_validator("interests")
    @classmethod
    def no_duplicates(cls, v: list[InterestLevelItem]) -> list[InterestLevelItem]:
        ids = [item.interest_id for item in v]
        if len(ids) != len(set(ids)):
            msg = "Duplicate interest_id"
            raise ValueError(msg)
        return v


# --- Discovery ---


class RecommendationItem(BaseModel):
    person: PersonSummary
    similarity: float


class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationItem]
    awarded_achievements: list[str] = []


class NearbyItem(BaseModel):
    person: PersonSummary
    distance_km: int


class NearbyResponse(BaseModel):
    persons: list[NearbyItem]
    radius_km: float
    awarded_achievements: list[str] = []
