"""Pydantic request/response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# --- Achievements ---


class AchievementResponse(BaseModel):
    id: int
    key: str
    name: str
    description: str
    points: int
    category: str
    icon_name: str | None = None
    action_url: str | None = None
    sort_order: int
    completed: bool = False
    completed_at: datetime | None = None


class AchievementCheckRequest(BaseModel):
    """Body of POST /achievements/check. Accepts ``achievementKeys`` or ``achievement_keys``."""

    model_config = {"populate_by_name": True}

    achievement_keys: list[str] = Field(..., alias="achievementKeys")


class AchievementCheckResponse(BaseModel):
    awarded: list[str]


class AchievementUpdateRequest(BaseModel):
    """Admin edit of descriptive fields. Key, points and category are immutable here."""

    name: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = Field(None, min_length=1)
    icon_name: str | None = Field(None, max_length=64)
    action_url: str | None = Field(None, max_length=256)
    sort_order: int | None = None
    is_active: bool | None = None


class AdminAchievementResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    key: str
    name: str
    description: str
    points: int
    category: str
    icon_name: str | None = None
    action_url: str | None = None
    sort_order: int
    is_active: bool


# --- Levels & stats ---


class LevelResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    level_number: int
    name: str
    points_required: int
    description: str | None = None
    icon_name: str | None = None


class UserStatsResponse(BaseModel):
    total_points: int
    current_level: LevelResponse | None = None
    next_level: LevelResponse | None = None
    progress_percent: int
    achievement_count: int
    completed_achievement_count: int


# --- Point history ---


class PointHistoryEntry(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    points: int
    reason: str
    achievement_id: int | None = None
    created_at: datetime


class PointHistoryResponse(BaseModel):
    entries: list[PointHistoryEntry]
    total: int
    page: int
    per_page: int
