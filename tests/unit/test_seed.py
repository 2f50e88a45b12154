"""Tests for the achievement and level seed."""

import pytest
from sqlalchemy import func, select

from irl.db.models import Achievement, Level
from irl.gamification.seed import (
    ACHIEVEMENT_SEED_DATA,
    LEVEL_SEED_DATA,
    seed_achievements,
    seed_gamification,
    seed_levels,
)


class TestSeedData:
    def test_unique_keys(self):
        keys = [a["key"] for a in ACHIEVEMENT_SEED_DATA]
        assert len(keys) == len(set(keys)) == 16

    def test_levels_ascending(self):
        thresholds = [lvl["points_required"] for lvl in LEVEL_SEED_DATA]
        assert thresholds == sorted(thresholds)
        assert thresholds[0] == 0


class TestSeeding:
    @pytest.mark.asyncio
    async def test_idempotent(self, db_session):
        await seed_gamification(db_session)
        await seed_gamification(db_session)

        achievements = await db_session.execute(select(func.count()).select_from(Achievement))
        levels = await db_session.execute(select(func.count()).select_from(Level))
        assert achievements.scalar_one() == 16
        assert levels.scalar_one() == 6

    @pytest.mark.asyncio
    async def test_reseed_restores_definition_but_keeps_is_active(self, db_session):
        await seed_gamification(db_session)
        result = await db_session.execute(select(Achievement).where(Achievement.key == "email_verified"))
        achievement = result.scalar_one()
        achievement.name = "Renamed"
        achievement.is_active = False
        await db_session.commit()

        created, updated = await seed_achievements(db_session)
        await db_session.commit()

        assert (created, updated) == (0, 16)
        assert achievement.name == "Email Verified"
        assert achievement.is_active is False

    @pytest.mark.asyncio
    async def test_levels_never_overwritten(self, db_session):
        await seed_gamification(db_session)
        result = await db_session.execute(select(Level).where(Level.level_number == 2))
        level = result.scalar_one()
        level.points_required = 60
        await db_session.commit()

        created, skipped = await seed_levels(db_session)
        assert (created, skipped) == (0, 6)
        assert level.points_required == 60
