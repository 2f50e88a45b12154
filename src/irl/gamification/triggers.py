"""Achievement triggers: re-evaluate a person's state after a mutation."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from irl.db.models import Person, PersonGroup, PersonInterest
from irl.gamification import predicates
from irl.gamification.predicates import PersonSnapshot
from irl.gamification.service import award_achievement, check_and_award_multiple

logger = logging.getLogger(__name__)


class AchievementTriggers:
    """Evaluates achievement predicates for a person and awards what is newly satisfied.

    Each check re-reads the person and recomputes every predicate from
    scratch; there is no stored progress. A missing person makes every
    check a no-op. Persistence errors propagate to the caller.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _load_snapshot(self, person_id: int) -> tuple[int, PersonSnapshot] | None:
        """Load (owner user_id, snapshot) for a person, or None if it doesn't exist."""
        result = await self.db.execute(
            select(Person)
            .where(Person.id == person_id)
            .options(
                selectinload(Person.contacts),
                selectinload(Person.interests).selectinload(PersonInterest.interest),
                selectinload(Person.group_memberships).selectinload(PersonGroup.group),
            )
            .execution_options(populate_existing=True)
        )
        person = result.scalar_one_or_none()
        if person is None:
            logger.debug("Trigger check skipped: person %s not found", person_id)
            return None
        return person.user_id, PersonSnapshot.from_person(person)

    async def _award_all(self, user_id: int, keys: list[str]) -> list[str]:
        awarded = await check_and_award_multiple(self.db, user_id, keys)
        if awarded:
            await self.db.commit()
        return awarded

    async def _award_one(self, user_id: int, key: str) -> list[str]:
        if await award_achievement(self.db, user_id, key) is None:
            return []
        await self.db.commit()
        return [key]

    # -- state re-evaluation ------------------------------------------------

    async def check_profile_achievements(self, person_id: int) -> list[str]:
        """Profile basics, photo, interests, contact variety and profile_complete."""
        loaded = await self._load_snapshot(person_id)
        if loaded is None:
            return []
        user_id, snapshot = loaded
        return await self._award_all(user_id, predicates.profile_keys(snapshot))

    async def check_privacy_achievements(self, person_id: int) -> list[str]:
        """Private address, and a private + public contact side by side."""
        loaded = await self._load_snapshot(person_id)
        if loaded is None:
            return []
        user_id, snapshot = loaded
        return await self._award_all(user_id, predicates.privacy_keys(snapshot))

    async def check_group_achievements(self, person_id: int) -> list[str]:
        """First group membership and group admin, ignoring deleted groups."""
        loaded = await self._load_snapshot(person_id)
        if loaded is None:
            return []
        user_id, snapshot = loaded
        return await self._award_all(user_id, predicates.group_keys(snapshot))

    async def check_active_member_achievement(self, person_id: int) -> list[str]:
        """Complete profile + 2 groups + 5 interests."""
        loaded = await self._load_snapshot(person_id)
        if loaded is None:
            return []
        user_id, snapshot = loaded
        if not predicates.is_active_member(snapshot):
            return []
        return await self._award_one(user_id, "active_member")

    # -- event awards (caller identifies the event) -------------------------

    async def award_first_person(self, user_id: int) -> list[str]:
        return await self._award_one(user_id, "first_person_created")

    async def award_email_verified(self, user_id: int) -> list[str]:
        return await self._award_one(user_id, "email_verified")

    async def award_nearby_discovery(self, user_id: int) -> list[str]:
        return await self._award_one(user_id, "nearby_discovery")

    async def check_similar_person_achievement(self, user_id: int) -> list[str]:
        """Called once the caller has seen a recommendation above the similarity threshold."""
        return await self._award_one(user_id, "first_similar_person")

    async def award_group_create(self, user_id: int) -> list[str]:
        return await self._award_one(user_id, "first_group_create")

    # -- bundles used by routes ---------------------------------------------

    async def after_profile_change(self, person_id: int) -> list[str]:
        """Profile + active-member checks (name, photo, interests edits)."""
        awarded = await self.check_profile_achievements(person_id)
        awarded += await self.check_active_member_achievement(person_id)
        return awarded

    async def after_contact_change(self, person_id: int) -> list[str]:
        """Privacy + profile + active-member checks (contact edits)."""
        awarded = await self.check_privacy_achievements(person_id)
        awarded += await self.after_profile_change(person_id)
        return awarded

    async def after_membership_change(self, person_id: int) -> list[str]:
        """Group + active-member checks (joins, group creation)."""
        awarded = await self.check_group_achievements(person_id)
        awarded += await self.check_active_member_achievement(person_id)
        return awarded
