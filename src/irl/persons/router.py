"""Person endpoints: profiles, contacts, interests, recommendations, nearby."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from irl.auth.dependencies import get_current_user
from irl.config import get_settings
from irl.database import get_session
from irl.db.models import Person, PrivacyLevel, User
from irl.gamification.triggers import AchievementTriggers
from irl.persons import service
from irl.persons.schemas import (
    ContactCreateRequest,
    ContactMutationResponse,
    ContactResponse,
    ContactUpdateRequest,
    NearbyItem,
    NearbyResponse,
    PersonCreateRequest,
    PersonInterestResponse,
    PersonInterestsRequest,
    PersonMutationResponse,
    PersonResponse,
    PersonSummary,
    PersonUpdateRequest,
    RecommendationItem,
    RecommendationsResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/persons", tags=["Persons"])

# Columns that can't be NULL; an explicit null in a PATCH body is ignored for these.
_REQUIRED_CONTACT_FIELDS = frozenset({"type", "value", "privacy"})


def person_response(person: Person, viewer: User) -> PersonResponse:
    """Serialise a person. Non-owners see public contacts only, without coordinates."""
    is_owner = person.user_id == viewer.id
    contacts = []
    for c in person.contacts:
        if c.deleted:
            continue
        if not is_owner and c.privacy != PrivacyLevel.PUBLIC.value:
            continue
        contact = ContactResponse.model_validate(c)
        if not is_owner:
            contact = contact.model_copy(update={"latitude": None, "longitude": None})
        contacts.append(contact)

    return PersonResponse(
        id=person.id,
        display_id=person.display_id,
        user_id=person.user_id,
        first_name=person.first_name,
        last_name=person.last_name,
        pronouns=person.pronouns,
        image_url=person.image_url,
        contacts=contacts,
        interests=[
            PersonInterestResponse(interest_id=pi.interest_id, name=pi.interest.name, level=pi.level)
            for pi in person.interests
            if not pi.interest.deleted
        ],
        created_at=person.created_at,
        updated_at=person.updated_at,
    )


async def _get_person_or_404(db: AsyncSession, display_id: str) -> Person:
    person = await service.get_person(db, display_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return person


async def get_owned_person(db: AsyncSession, display_id: str, user: User) -> Person:
    """404 when the person is missing or deleted, 403 when ``user`` does not own it."""
    person = await _get_person_or_404(db, display_id)
    if person.user_id != user.id:
        raise HTTPException(status_code=403, detail="You do not own this person")
    return person


# ── Persons ──


@router.get("", response_model=list[PersonResponse])
async def list_my_persons(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The current user's persons, oldest first."""
    persons = await service.list_user_persons(db, user.id)
    return [person_response(p, user) for p in persons]


@router.post("", response_model=PersonMutationResponse, status_code=201)
async def create_person(
    body: PersonCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Create a person owned by the current user."""
    person = await service.create_person(db, user.id, **body.model_dump())
    await db.commit()
    logger.info("person_created", person_id=person.id, user_id=user.id)

    triggers = AchievementTriggers(db)
    awarded: list[str] = []
    if await service.count_user_persons(db, user.id) == 1:
        awarded += await triggers.award_first_person(user.id)
    awarded += await triggers.after_profile_change(person.id)

    person = await service.reload_person(db, person.id)
    return PersonMutationResponse(person=person_response(person, user), awarded_achievements=awarded)


@router.get("/{display_id}", response_model=PersonResponse)
async def get_person(
    display_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Any authenticated user may view a person; private contacts are owner-only."""
    person = await _get_person_or_404(db, display_id)
    return person_response(person, user)


@router.patch("/{display_id}", response_model=PersonMutationResponse)
async def update_person(
    display_id: str,
    body: PersonUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Update names, pronouns or photo."""
    person = await get_owned_person(db, display_id, user)
    await service.update_person(db, person, body.model_dump(exclude_unset=True))
    await db.commit()

    awarded = await AchievementTriggers(db).after_profile_change(person.id)
    person = await service.reload_person(db, person.id)
    return PersonMutationResponse(person=person_response(person, user), awarded_achievements=awarded)


@router.delete("/{display_id}", status_code=204)
async def delete_person(
    display_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Soft-delete a person."""
    person = await get_owned_person(db, display_id, user)
    await service.delete_person(db, person)
    await db.commit()
    logger.info("person_deleted", person_id=person.id, user_id=user.id)


# ── Contacts ──


@router.post("/{display_id}/contacts", response_model=ContactMutationResponse, status_code=201)
async def add_contact(
    display_id: str,
    body: ContactCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    person = await get_owned_person(db, display_id, user)
    contact = await service.add_contact(db, person.id, **body.model_dump(mode="json"))
    await db.commit()

    awarded = await AchievementTriggers(db).after_contact_change(person.id)
    return ContactMutationResponse(contact=ContactResponse.model_validate(contact), awarded_achievements=awarded)


@router.patch("/{display_id}/contacts/{contact_id}", response_model=ContactMutationResponse)
async def update_contact(
    display_id: str,
    contact_id: int,
    body: ContactUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    person = await get_owned_person(db, display_id, user)
    contact = await service.get_contact(db, person.id, contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found")

    changes = {
        field: value
        for field, value in body.model_dump(exclude_unset=True, mode="json").items()
        if value is not None or field not in _REQUIRED_CONTACT_FIELDS
    }
    await service.update_contact(db, contact, changes)
    await db.commit()

    awarded = await AchievementTriggers(db).after_contact_change(person.id)
    return ContactMutationResponse(contact=ContactResponse.model_validate(contact), awarded_achievements=awarded)


@router.delete("/{display_id}/contacts/{contact_id}", response_model=ContactMutationResponse)
async def delete_contact(
    display_id: str,
    contact_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Soft-delete a contact. Deleted contacts stop counting toward achievements."""
    person = await get_owned_person(db, display_id, user)
    contact = await service.get_contact(db, person.id, contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    await service.delete_contact(db, contact)
    await db.commit()

    awarded = await AchievementTriggers(db).after_contact_change(person.id)
    return ContactMutationResponse(contact=ContactResponse.model_validate(contact), awarded_achievements=awarded)


# ── Interests ──


@router.put("/{display_id}/interests", response_model=PersonMutationResponse)
async def set_interests(
    display_id: str,
    body: PersonInterestsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Replace the person's interests and levels."""
    person = await get_owned_person(db, display_id, user)
    try:
        await service.replace_interests(db, person.id, {i.interest_id: i.level for i in body.interests})
    except ValueError as e:
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    awarded = await AchievementTriggers(db).after_profile_change(person.id)
    person = await service.reload_person(db, person.id)
    return PersonMutationResponse(person=person_response(person, user), awarded_achievements=awarded)


# ── Discovery ──


@router.get("/{display_id}/recommendations", response_model=RecommendationsResponse)
async def get_recommendations(
    display_id: str,
    limit: int = Query(10, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Persons with similar interests, by cosine similarity of interest levels."""
    settings = get_settings()
    limit = min(limit, settings.recommendations_max_limit)

    person = await _get_person_or_404(db, display_id)
    if await service.count_active_interests(db, person.id) == 0:
        raise HTTPException(status_code=400, detail="Person has no interests defined")

    recommendations = await service.find_similar_persons(db, person.id, limit=limit)

    awarded: list[str] = []
    if (
        person.user_id == user.id
        and recommendations
        and recommendations[0].similarity > settings.similarity_achievement_threshold
    ):
        awarded = await AchievementTriggers(db).check_similar_person_achievement(user.id)

    return RecommendationsResponse(
        recommendations=[
            RecommendationItem(person=PersonSummary.model_validate(r.person), similarity=round(r.similarity, 4))
            for r in recommendations
        ],
        awarded_achievements=awarded,
    )


@router.get("/{display_id}/nearby", response_model=NearbyResponse)
async def get_nearby(
    display_id: str,
    radius_km: float = Query(25.0, gt=0, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Persons near one of your own persons. Distances are rounded to whole kilometres."""
    person = await get_owned_person(db, display_id, user)
    origin = await service.get_home_coordinates(db, person.id)
    if origin is None:
        raise HTTPException(status_code=400, detail="Person has no address with coordinates")

    nearby = await service.find_nearby_persons(db, person.id, origin, radius_km)
    awarded = await AchievementTriggers(db).award_nearby_discovery(user.id)

    return NearbyResponse(
        persons=[NearbyItem(person=PersonSummary.model_validate(n.person), distance_km=n.distance_km) for n in nearby],
        radius_km=radius_km,
        awarded_achievements=awarded,
    )
