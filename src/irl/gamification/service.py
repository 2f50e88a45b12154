"""Points ledger, achievement awards and level lookup.

Every function takes the caller's session and never commits: routes and
triggers decide when to commit. Awards run inside a SAVEPOINT so the
UserAchievement row and its PointTransaction land together or not at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from irl.db.models import Achievement, AchievementCategory, Level, PointTransaction, UserAchievement
from irl.gamification.levels import compute_progress_percent, find_current_level, find_next_level

logger = logging.getLogger(__name__)

# Categories sort in declaration order, not alphabetically.
_CATEGORY_ORDER = case(
    {c.value: i for i, c in enumerate(AchievementCategory)},
    value=Achievement.category,
    else_=len(AchievementCategory),
)


@dataclass(frozen=True, slots=True)
class UserStats:
    total_points: int
    current_level: Level | None
    next_level: Level | None
    progress_percent: int
    achievement_count: int
    completed_achievement_count: int


# ---------------------------------------------------------------------------
# Points & levels
# ---------------------------------------------------------------------------


async def get_user_points(db: AsyncSession, user_id: int) -> int:
    """Sum of the user's point transactions, clamped at zero."""
    result = await db.execute(
        select(func.coalesce(func.sum(PointTransaction.points), 0)).where(
            PointTransaction.user_id == user_id
        )
    )
    return max(0, int(result.scalar_one()))


async def get_all_levels(db: AsyncSession) -> list[Level]:
    """All levels, ascending by level number."""
    result = await db.execute(select(Level).order_by(Level.level_number.asc()))
    return list(result.scalars().all())


async def get_user_level(db: AsyncSession, user_id: int) -> Level | None:
    """Highest level the user has reached, or None if no level starts at their points."""
    total_points = await get_user_points(db, user_id)
    return find_current_level(await get_all_levels(db), total_points)


async def get_next_level(db: AsyncSession, user_id: int) -> Level | None:
    """Next level to reach, or None at max level."""
    total_points = await get_user_points(db, user_id)
    return find_next_level(await get_all_levels(db), total_points)


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


async def get_achievement_by_key(db: AsyncSession, key: str) -> Achievement | None:
    """Fetch an achievement definition by key."""
    result = await db.execute(select(Achievement).where(Achievement.key == key))
    return result.scalar_one_or_none()


async def _has_achievement_id(db: AsyncSession, user_id: int, achievement_id: int) -> bool:
    result = await db.execute(
        select(UserAchievement.id).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_id == achievement_id,
        )
    )
    return result.first() is not None


async def has_achievement(db: AsyncSession, user_id: int, key: str) -> bool:
    """Check if the user already earned the achievement. Unknown keys are False."""
    achievement = await get_achievement_by_key(db, key)
    if achievement is None:
        return False
    return await _has_achievement_id(db, user_id, achievement.id)


async def award_achievement(db: AsyncSession, user_id: int, key: str) -> Achievement | None:
    """Award an achievement if the user doesn't have it yet.

    Returns the achievement when newly awarded, None if it was already
    earned, is inactive, or does not exist. A concurrent award of the
    same achievement trips the (user, achievement) unique constraint; that
    is treated as already awarded and the savepoint is rolled back, so no
    orphan PointTransaction is left behind.
    """
    achievement = await get_achievement_by_key(db, key)
    if achievement is None or not achievement.is_active:
        return None

    if await _has_achievement_id(db, user_id, achievement.id):
        return None

    try:
        async with db.begin_nested():
            db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id))
            db.add(
                PointTransaction(
                    user_id=user_id,
                    achievement_id=achievement.id,
                    points=achievement.points,
                    reason=f"Achievement earned: {achievement.name}",
                )
            )
    except IntegrityError:
        logger.info("Achievement %s already awarded to user %s by a concurrent request", key, user_id)
        return None

    logger.info("Awarded achievement %s (+%s points) to user %s", key, achievement.points, user_id)
    return achievement


async def check_and_award_multiple(db: AsyncSession, user_id: int, keys: list[str]) -> list[str]:
    """Try each key in order; return only the keys that were newly awarded."""
    awarded: list[str] = []
    for key in keys:
        if await award_achievement(db, user_id, key) is not None:
            awarded.append(key)
    return awarded


async def get_user_achievements(
    db: AsyncSession, user_id: int
) -> list[tuple[Achievement, datetime | None]]:
    """Active achievements (category, sort order) paired with the user's completion time."""
    result = await db.execute(
        select(Achievement)
        .where(Achievement.is_active.is_(True))
        .order_by(_CATEGORY_ORDER, Achievement.sort_order.asc())
    )
    achievements = result.scalars().all()

    completed_result = await db.execute(
        select(UserAchievement.achievement_id, UserAchievement.completed_at).where(
            UserAchievement.user_id == user_id
        )
    )
    completed = {row.achievement_id: row.completed_at for row in completed_result}

    return [(a, completed.get(a.id)) for a in achievements]


async def get_user_stats(db: AsyncSession, user_id: int) -> UserStats:
    """Points, current/next level, progress and achievement counts."""
    total_points = await get_user_points(db, user_id)
    levels = await get_all_levels(db)
    current = find_current_level(levels, total_points)
    upcoming = find_next_level(levels, total_points)

    achievement_count = await db.execute(
        select(func.count()).select_from(Achievement).where(Achievement.is_active.is_(True))
    )
    completed_count = await db.execute(
        select(func.count()).select_from(UserAchievement).where(UserAchievement.user_id == user_id)
    )

    return UserStats(
        total_points=total_points,
        current_level=current,
        next_level=upcoming,
        progress_percent=compute_progress_percent(total_points, current, upcoming),
        achievement_count=achievement_count.scalar_one(),
        completed_achievement_count=completed_count.scalar_one(),
    )


async def get_point_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[PointTransaction], int]:
    """One page of the user's ledger, newest first, plus the total row count."""
    total_result = await db.execute(
        select(func.count()).select_from(PointTransaction).where(PointTransaction.user_id == user_id)
    )
    result = await db.execute(
        select(PointTransaction)
        .where(PointTransaction.user_id == user_id)
        .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total_result.scalar_one()
