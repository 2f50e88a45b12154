"""Achievement and level seed data: 16 achievements, 6 levels."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from irl.db.models import Achievement, Level

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Onboarding
    {
        "key": "email_verified",
        "name": "Email Verified",
        "description": "Verify your email address",
        "points": 10,
        "category": "ONBOARDING",
        "icon_name": "envelope-check",
        "action_url": "/profile",
        "sort_order": 1,
    },
    {
        "key": "first_person_created",
        "name": "Welcome to the Community",
        "description": "Create your first person profile",
        "points": 20,
        "category": "ONBOARDING",
        "icon_name": "user-plus",
        "action_url": "/persons/create",
        "sort_order": 2,
    },
    # Profile
    {
        "key": "profile_basics",
        "name": "Getting Started",
        "description": "Add name and pronouns to your profile",
        "points": 15,
        "category": "PROFILE",
        "icon_name": "user-edit",
        "action_url": "/persons/me",
        "sort_order": 3,
    },
    {
        "key": "profile_photo",
        "name": "Show Your Face",
        "description": "Upload a profile photo",
        "points": 15,
        "category": "PROFILE",
        "icon_name": "camera",
        "action_url": "/persons/me",
        "sort_order": 4,
    },
    {
        "key": "first_interest",
        "name": "Share Your Passions",
        "description": "Add your first interest",
        "points": 10,
        "category": "PROFILE",
        "icon_name": "heart",
        "action_url": "/persons/me",
        "sort_order": 5,
    },
    {
        "key": "interests_complete",
        "name": "Well Rounded",
        "description": "Add at least 5 interests to your profile",
        "points": 25,
        "category": "PROFILE",
        "icon_name": "stars",
        "action_url": "/persons/me",
        "sort_order": 6,
    },
    {
        "key": "profile_complete",
        "name": "Profile Master",
        "description": "Complete all profile fields (name, pronouns, photo, 3+ contact info, 5+ interests)",
        "points": 50,
        "category": "PROFILE",
        "icon_name": "trophy",
        "action_url": "/persons/me",
        "sort_order": 7,
    },
    # Privacy
    {
        "key": "first_private_address",
        "name": "Privacy Aware",
        "description": (
            "Add your first PRIVATE address to enable nearby discovery "
            "while keeping your location confidential"
        ),
        "points": 30,
        "category": "PRIVACY",
        "icon_name": "shield-check",
        "action_url": "/persons/me",
        "sort_order": 8,
    },
    {
        "key": "privacy_explorer",
        "name": "Privacy Pro",
        "description": "Set at least one contact to private and one to public",
        "points": 20,
        "category": "PRIVACY",
        "icon_name": "lock-open",
        "action_url": "/persons/me",
        "sort_order": 9,
    },
    # Discovery
    {
        "key": "nearby_discovery",
        "name": "Local Explorer",
        "description": "View the nearby persons/groups feature",
        "points": 25,
        "category": "DISCOVERY",
        "icon_name": "map-pin",
        "action_url": "/persons",
        "sort_order": 10,
    },
    {
        "key": "first_similar_person",
        "name": "Finding Your People",
        "description": "Discover someone with similar interests (>25% match)",
        "points": 15,
        "category": "DISCOVERY",
        "icon_name": "users",
        "action_url": "/persons",
        "sort_order": 11,
    },
    # Social
    {
        "key": "first_group_join",
        "name": "Group Member",
        "description": "Join your first group",
        "points": 25,
        "category": "SOCIAL",
        "icon_name": "user-group",
        "action_url": "/groups",
        "sort_order": 12,
    },
    {
        "key": "first_group_create",
        "name": "Community Builder",
        "description": "Create your first group",
        "points": 40,
        "category": "SOCIAL",
        "icon_name": "building",
        "action_url": "/groups/create",
        "sort_order": 13,
    },
    {
        "key": "group_admin",
        "name": "Leadership",
        "description": "Become an admin of a group",
        "points": 30,
        "category": "SOCIAL",
        "icon_name": "crown",
        "action_url": "/groups",
        "sort_order": 14,
    },
    # Engagement
    {
        "key": "contact_sharer",
        "name": "Connector",
        "description": "Add at least 3 different types of contact information",
        "points": 15,
        "category": "ENGAGEMENT",
        "icon_name": "address-card",
        "action_url": "/persons/me",
        "sort_order": 15,
    },
    {
        "key": "active_member",
        "name": "Regular",
        "description": "Complete profile + join 2+ groups + 5+ interests",
        "points": 35,
        "category": "ENGAGEMENT",
        "icon_name": "star",
        "action_url": "/persons/me",
        "sort_order": 16,
    },
]

LEVEL_SEED_DATA: list[dict] = [
    {
        "level_number": 1,
        "name": "Newcomer",
        "points_required": 0,
        "description": "Just getting started on your community journey",
        "icon_name": "seedling",
    },
    {
        "level_number": 2,
        "name": "Explorer",
        "points_required": 50,
        "description": "Learning the ropes and exploring features",
        "icon_name": "compass",
    },
    {
        "level_number": 3,
        "name": "Community Member",
        "points_required": 100,
        "description": "Active participant in the community",
        "icon_name": "user",
    },
    {
        "level_number": 4,
        "name": "Contributor",
        "points_required": 200,
        "description": "Making meaningful connections",
        "icon_name": "handshake",
    },
    {
        "level_number": 5,
        "name": "Connector",
        "points_required": 350,
        "description": "Well-integrated community member",
        "icon_name": "network",
    },
    {
        "level_number": 6,
        "name": "Community Leader",
        "points_required": 500,
        "description": "Inspiring and guiding others",
        "icon_name": "medal",
    },
]

# Fields refreshed on re-seed. is_active is left alone so an admin toggle survives restarts.
_ACHIEVEMENT_UPDATE_FIELDS = (
    "name",
    "description",
    "points",
    "category",
    "icon_name",
    "action_url",
    "sort_order",
)


async def seed_achievements(db: AsyncSession) -> tuple[int, int]:
    """Upsert achievement definitions by key. Returns (created, updated)."""
    result = await db.execute(select(Achievement))
    existing = {a.key: a for a in result.scalars()}

    created = updated = 0
    for data in ACHIEVEMENT_SEED_DATA:
        achievement = existing.get(data["key"])
        if achievement is None:
            db.add(Achievement(**data))
            created += 1
            continue
        for field in _ACHIEVEMENT_UPDATE_FIELDS:
            setattr(achievement, field, data[field])
        updated += 1

    await db.flush()
    logger.info("Achievements seed: %d created, %d updated", created, updated)
    return created, updated


async def seed_levels(db: AsyncSession) -> tuple[int, int]:
    """Insert levels missing by level_number; existing levels are never overwritten."""
    result = await db.execute(select(Level.level_number))
    existing = set(result.scalars())

    created = skipped = 0
    for data in LEVEL_SEED_DATA:
        if data["level_number"] in existing:
            skipped += 1
            continue
        db.add(Level(**data))
        created += 1

    await db.flush()
    logger.info("Levels seed: %d created, %d skipped", created, skipped)
    return created, skipped


async def seed_gamification(db: AsyncSession) -> None:
    """Idempotent seed of achievements and levels, committed together."""
    await seed_achievements(db)
    await seed_levels(db)
    await db.commit()
    logger.info("Gamification seed complete")
