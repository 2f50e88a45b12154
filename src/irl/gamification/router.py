"""Gamification API endpoints: achievements, stats, levels, ledger history."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from irl.auth.dependencies import get_current_user, require_admin
from irl.database import get_session
from irl.db.models import User
from irl.gamification import service
from irl.gamification.schemas import (
    AchievementCheckRequest,
    AchievementCheckResponse,
    AchievementResponse,
    AchievementUpdateRequest,
    AdminAchievementResponse,
    LevelResponse,
    PointHistoryEntry,
    PointHistoryResponse,
    UserStatsResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/gamification", tags=["Gamification"])


@router.get("/achievements", response_model=list[AchievementResponse])
async def list_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """All active achievements with the current user's completion status."""
    rows = await service.get_user_achievements(db, user.id)
    return [
        AchievementResponse(
            id=a.id,
            key=a.key,
            name=a.name,
            description=a.description,
            points=a.points,
            category=a.category,
            icon_name=a.icon_name,
            action_url=a.action_url,
            sort_order=a.sort_order,
            completed=completed_at is not None,
            completed_at=completed_at,
        )
        for a, completed_at in rows
    ]


@router.get("/stats", response_model=UserStatsResponse)
async def get_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Points, level, progress to next level and achievement counts."""
    stats = await service.get_user_stats(db, user.id)
    return UserStatsResponse(
        total_points=stats.total_points,
        current_level=LevelResponse.model_validate(stats.current_level) if stats.current_level else None,
        next_level=LevelResponse.model_validate(stats.next_level) if stats.next_level else None,
        progress_percent=stats.progress_percent,
        achievement_count=stats.achievement_count,
        completed_achievement_count=stats.completed_achievement_count,
    )


@router.get("/levels", response_model=list[LevelResponse])
async def list_levels(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """All levels ascending by level number."""
    levels = await service.get_all_levels(db)
    return [LevelResponse.model_validate(lvl) for lvl in levels]


@router.post("/achievements/check", response_model=AchievementCheckResponse)
async def check_achievements(
    body: Any = Body(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Award any of the given keys the user doesn't have yet."""
    try:
        request = AchievementCheckRequest.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="achievementKeys must be an array of strings") from e

    awarded = await service.check_and_award_multiple(db, user.id, request.achievement_keys)
    if awarded:
        await db.commit()
        logger.info("achievements_checked", user_id=user.id, awarded=awarded)
    return AchievementCheckResponse(awarded=awarded)


@router.get("/history", response_model=PointHistoryResponse)
async def get_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Point ledger history (paginated, newest first)."""
    entries, total = await service.get_point_history(db, user.id, page=page, per_page=per_page)
    return PointHistoryResponse(
        entries=[PointHistoryEntry.model_validate(e) for e in entries],
        total=total,
        page=page,
        per_page=per_page,
    )


# ── Admin ──


@router.patch("/admin/achievements/{key}", response_model=AdminAchievementResponse)
async def update_achievement(
    key: str,
    body: AchievementUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Edit an achievement's descriptive fields."""
    achievement = await service.get_achievement_by_key(db, key)
    if achievement is None:
        raise HTTPException(status_code=404, detail="Achievement not found")

    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "description", "sort_order", "is_active"):
            continue
        setattr(achievement, field, value)
    await db.commit()
    await db.refresh(achievement)

    logger.info("achievement_updated", key=key, admin_id=admin.id)
    return AdminAchievementResponse.model_validate(achievement)
