"""Tests for achievement triggers against a real (SQLite) database."""

import pytest
import pytest_asyncio

from irl.db.models import ContactInformation, Group, PersonGroup, PersonInterest
from irl.gamification.service import has_achievement
from irl.gamification.triggers import AchievementTriggers
from tests.conftest import create_interests, create_person


async def add_contact(db, person, type_: str, privacy: str = "PUBLIC", deleted: bool = False):
    contact = ContactInformation(person_id=person.id, type=type_, value=f"{type_.lower()}-value", privacy=privacy, deleted=deleted)
    db.add(contact)
    await db.commit()
    return contact


async def link_interests(db, person, interests):
    db.add_all(PersonInterest(person_id=person.id, interest_id=i.id, level=3) for i in interests)
    await db.commit()


async def join(db, person, name: str, *, is_admin: bool = False, deleted: bool = False):
    group = Group(name=name, deleted=deleted)
    db.add(group)
    await db.flush()
    db.add(PersonGroup(person_id=person.id, group_id=group.id, is_admin=is_admin))
    await db.commit()
    return group


@pytest_asyncio.fixture
async def triggers(seeded_db):
    return AchievementTriggers(seeded_db)


@pytest_asyncio.fixture
async def person(seeded_db, user):
    return await create_person(
        seeded_db, user, first_name="Alex", pronouns="they/them", image_url="https://img.example/a.png"
    )


class TestProfileTriggers:
    @pytest.mark.asyncio
    async def test_basics_and_photo(self, triggers, person):
        awarded = await triggers.check_profile_achievements(person.id)
        assert awarded == ["profile_basics", "profile_photo"]

    @pytest.mark.asyncio
    async def test_second_check_awards_nothing(self, triggers, person):
        await triggers.check_profile_achievements(person.id)
        assert await triggers.check_profile_achievements(person.id) == []

    @pytest.mark.asyncio
    async def test_five_interests_two_contact_types(self, seeded_db, triggers, person):
        await link_interests(seeded_db, person, await create_interests(seeded_db, "a", "b", "c", "d", "e"))
        await add_contact(seeded_db, person, "EMAIL")
        await add_contact(seeded_db, person, "PHONE")

        awarded = await triggers.check_profile_achievements(person.id)
        assert "interests_complete" in awarded
        assert "profile_complete" not in awarded

    @pytest.mark.asyncio
    async def test_profile_complete(self, seeded_db, triggers, person, user):
        await link_interests(seeded_db, person, await create_interests(seeded_db, "a", "b", "c", "d", "e"))
        for type_ in ("EMAIL", "PHONE", "URL"):
            await add_contact(seeded_db, person, type_)

        awarded = await triggers.check_profile_achievements(person.id)
        assert "profile_complete" in awarded
        assert "contact_sharer" in awarded
        assert await has_achievement(seeded_db, user.id, "profile_complete")

    @pytest.mark.asyncio
    async def test_deleted_rows_do_not_count(self, seeded_db, triggers, person):
        interests = await create_interests(seeded_db, "a", "b", "c", "d", "e")
        interests[0].deleted = True
        await seeded_db.commit()
        await link_interests(seeded_db, person, interests)
        await add_contact(seeded_db, person, "EMAIL")
        await add_contact(seeded_db, person, "PHONE")
        await add_contact(seeded_db, person, "URL", deleted=True)

        awarded = await triggers.check_profile_achievements(person.id)
        assert "first_interest" in awarded
        assert "interests_complete" not in awarded
        assert "contact_sharer" not in awarded

    @pytest.mark.asyncio
    async def test_unknown_person_is_noop(self, triggers):
        assert await triggers.check_profile_achievements(99999) == []
        assert await triggers.after_contact_change(99999) == []


class TestPrivacyTriggers:
    @pytest.mark.asyncio
    async def test_private_address_and_mixed(self, seeded_db, triggers, person):
        await add_contact(seeded_db, person, "ADDRESS", privacy="PRIVATE")
        await add_contact(seeded_db, person, "EMAIL")

        awarded = await triggers.check_privacy_achievements(person.id)
        assert awarded == ["first_private_address", "privacy_explorer"]


class TestGroupTriggers:
    @pytest.mark.asyncio
    async def test_join_and_admin(self, seeded_db, triggers, person):
        await join(seeded_db, person, "Hikers", is_admin=True)
        assert await triggers.check_group_achievements(person.id) == ["first_group_join", "group_admin"]

    @pytest.mark.asyncio
    async def test_deleted_group_ignored(self, seeded_db, triggers, person):
        await join(seeded_db, person, "Gone", is_admin=True, deleted=True)
        assert await triggers.check_group_achievements(person.id) == []


class TestActiveMember:
    @pytest.mark.asyncio
    async def test_requires_two_groups(self, seeded_db, triggers, person):
        await link_interests(seeded_db, person, await create_interests(seeded_db, "a", "b", "c", "d", "e"))
        for type_ in ("EMAIL", "PHONE", "URL"):
            await add_contact(seeded_db, person, type_)
        await join(seeded_db, person, "One")

        assert await triggers.check_active_member_achievement(person.id) == []

        await join(seeded_db, person, "Two")
        assert await triggers.check_active_member_achievement(person.id) == ["active_member"]

    @pytest.mark.asyncio
    async def test_membership_bundle(self, seeded_db, triggers, person):
        await link_interests(seeded_db, person, await create_interests(seeded_db, "a", "b", "c", "d", "e"))
        for type_ in ("EMAIL", "PHONE", "URL"):
            await add_contact(seeded_db, person, type_)
        await join(seeded_db, person, "One", is_admin=True)
        await join(seeded_db, person, "Two")

        awarded = await triggers.after_membership_change(person.id)
        assert awarded == ["first_group_join", "group_admin", "active_member"]


class TestEventAwards:
    @pytest.mark.asyncio
    async def test_event_awards_once(self, triggers, user):
        assert await triggers.award_email_verified(user.id) == ["email_verified"]
        assert await triggers.award_email_verified(user.id) == []
        assert await triggers.award_first_person(user.id) == ["first_person_created"]
        assert await triggers.award_nearby_discovery(user.id) == ["nearby_discovery"]
        assert await triggers.check_similar_person_achievement(user.id) == ["first_similar_person"]
        assert await triggers.award_group_create(user.id) == ["first_group_create"]
