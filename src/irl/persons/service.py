"""
Person profiles, contacts, interest sets, and discovery queries.

Functions flush but never commit; routes commit and then run achievement
triggers. Every "active" count excludes soft-deleted rows.
"""

from __future__ import annotations

import math
import secrets
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from irl.db.models import ContactInformation, ContactType, Interest, Person, PersonInterest

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True, slots=True)
class Recommendation:
    person: Person
    similarity: float


@dataclass(frozen=True, slots=True)
class NearbyPerson:
    person: Person
    distance_km: int


def _with_details(stmt: Any) -> Any:
    return stmt.options(
        selectinload(Person.contacts),
        selectinload(Person.interests).selectinload(PersonInterest.interest),
    ).execution_options(populate_existing=True)


# ---------------------------------------------------------------------------
# Persons
# ---------------------------------------------------------------------------


def generate_display_id() -> str:
    return secrets.token_hex(6)


async def get_person(db: AsyncSession, display_id: str) -> Person | None:
    """Non-deleted person by display id, with contacts and interests loaded."""
    result = await db.execute(
        _with_details(select(Person).where(Person.display_id == display_id, Person.deleted.is_(False)))
    )
    return result.scalar_one_or_none()


async def reload_person(db: AsyncSession, person_id: int) -> Person:
    result = await db.execute(_with_details(select(Person).where(Person.id == person_id)))
    return result.scalar_one()


async def list_user_persons(db: AsyncSession, user_id: int) -> list[Person]:
    result = await db.execute(
        _with_details(
            select(Person)
            .where(Person.user_id == user_id, Person.deleted.is_(False))
            .order_by(Person.created_at.asc(), Person.id.asc())
        )
    )
    return list(result.scalars().all())


async def count_user_persons(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Person)
        .where(Person.user_id == user_id, Person.deleted.is_(False))
    )
    return result.scalar_one()


async def create_person(db: AsyncSession, user_id: int, **fields: Any) -> Person:
    person = Person(user_id=user_id, display_id=generate_display_id(), **fields)
    db.add(person)
    await db.flush()
    return person


async def update_person(db: AsyncSession, person: Person, changes: dict[str, Any]) -> Person:
    for field, value in changes.items():
        setattr(person, field, value)
    await db.flush()
    return person


async def delete_person(db: AsyncSession, person: Person) -> None:
    person.deleted = True
    await db.flush()


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


async def get_contact(db: AsyncSession, person_id: int, contact_id: int) -> ContactInformation | None:
    result = await db.execute(
        select(ContactInformation).where(
            ContactInformation.id == contact_id,
            ContactInformation.person_id == person_id,
            ContactInformation.deleted.is_(False),
        )
    )
    return result.scalar_one_or_none()


async def add_contact(db: AsyncSession, person_id: int, **fields: Any) -> ContactInformation:
    contact = ContactInformation(person_id=person_id, **fields)
    db.add(contact)
    await db.flush()
    return contact


async def update_contact(db: AsyncSession, contact: ContactInformation, changes: dict[str, Any]) -> ContactInformation:
    for field, value in changes.items():
        setattr(contact, field, value)
    await db.flush()
    return contact


async def delete_contact(db: AsyncSession, contact: ContactInformation) -> None:
    contact.deleted = True
    await db.flush()


# ---------------------------------------------------------------------------
# Interests
# ---------------------------------------------------------------------------


async def replace_interests(db: AsyncSession, person_id: int, levels: dict[int, int]) -> None:
    """
    Replace the person's interest set with ``{interest_id: level}``.

    Raises:
        ValueError: If any interest is unknown or deleted.
    """
    if levels:
        result = await db.execute(
            select(Interest.id).where(Interest.id.in_(levels.keys()), Interest.deleted.is_(False))
        )
        missing = set(levels) - set(result.scalars())
        if missing:
            msg = f"Unknown interest ids: {sorted(missing)}"
            raise ValueError(msg)

    # Core DELETE first: the ORM would flush inserts before deletes and trip the unique pair.
    await db.execute(delete(PersonInterest).where(PersonInterest.person_id == person_id))
    db.add_all(
        PersonInterest(person_id=person_id, interest_id=interest_id, level=level)
        for interest_id, level in levels.items()
    )
    await db.flush()


async def count_active_interests(db: AsyncSession, person_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(PersonInterest)
        .join(Interest, Interest.id == PersonInterest.interest_id)
        .where(PersonInterest.person_id == person_id, Interest.deleted.is_(False))
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


async def find_similar_persons(db: AsyncSession, person_id: int, limit: int = 10) -> list[Recommendation]:
    """
    Other persons ranked by cosine similarity of interest-level vectors.

    Dot products and squared norms are aggregated in SQL; only persons
    sharing at least one interest (similarity > 0) are returned, highest
    first. Deleted persons and deleted interests take no part.
    """
    active = (
        select(PersonInterest.person_id, PersonInterest.interest_id, PersonInterest.level)
        .join(Interest, Interest.id == PersonInterest.interest_id)
        .join(Person, Person.id == PersonInterest.person_id)
        .where(Interest.deleted.is_(False), Person.deleted.is_(False))
        .subquery()
    )
    target = active.alias("target")
    other = active.alias("other")

    dots = await db.execute(
        select(other.c.person_id, func.sum(target.c.level * other.c.level).label("dot"))
        .join(target, target.c.interest_id == other.c.interest_id)
        .where(target.c.person_id == person_id, other.c.person_id != person_id)
        .group_by(other.c.person_id)
    )
    dot_by_person = {row.person_id: float(row.dot) for row in dots if row.dot}
    if not dot_by_person:
        return []

    norms = await db.execute(
        select(active.c.person_id, func.sum(active.c.level * active.c.level).label("norm_sq"))
        .where(active.c.person_id.in_([person_id, *dot_by_person]))
        .group_by(active.c.person_id)
    )
    norm_by_person = {row.person_id: math.sqrt(float(row.norm_sq)) for row in norms}
    target_norm = norm_by_person.get(person_id, 0.0)
    if target_norm == 0:
        return []

    scored = []
    for other_id, dot in dot_by_person.items():
        other_norm = norm_by_person.get(other_id, 0.0)
        if other_norm == 0:
            continue
        similarity = dot / (target_norm * other_norm)
        if similarity > 0:
            scored.append((other_id, similarity))
    scored.sort(key=lambda item: (-item[1], item[0]))
    scored = scored[:limit]

    result = await db.execute(select(Person).where(Person.id.in_([pid for pid, _ in scored])))
    persons = {p.id: p for p in result.scalars()}
    return [Recommendation(person=persons[pid], similarity=sim) for pid, sim in scored]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # rounding can push a just past 1.0 for near-antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def _geocoded_addresses():
    return select(ContactInformation).where(
        ContactInformation.type == ContactType.ADDRESS.value,
        ContactInformation.deleted.is_(False),
        ContactInformation.latitude.is_not(None),
        ContactInformation.longitude.is_not(None),
    )


async def get_home_coordinates(db: AsyncSession, person_id: int) -> tuple[float, float] | None:
    """Coordinates of the person's first geocoded address, or None."""
    result = await db.execute(
        _geocoded_addresses()
        .where(ContactInformation.person_id == person_id)
        .order_by(ContactInformation.id.asc())
        .limit(1)
    )
    contact = result.scalar_one_or_none()
    if contact is None:
        return None
    return contact.latitude, contact.longitude


async def find_nearby_persons(
    db: AsyncSession,
    person_id: int,
    origin: tuple[float, float],
    radius_km: float,
) -> list[NearbyPerson]:
    """
    Other persons with a geocoded address within ``radius_km`` of ``origin``.

    Distances are rounded to whole kilometres so exact addresses, private
    ones included, cannot be triangulated. Nearest first.
    """
    result = await db.execute(
        _geocoded_addresses()
        .join(Person, Person.id == ContactInformation.person_id)
        .where(Person.deleted.is_(False), Person.id != person_id)
        .add_columns(Person)
    )

    nearest: dict[int, tuple[float, Person]] = {}
    for contact, person in result.tuples():
        distance = haversine_km(origin[0], origin[1], contact.latitude, contact.longitude)
        if distance > radius_km:
            continue
        current = nearest.get(person.id)
        if current is None or distance < current[0]:
            nearest[person.id] = (distance, person)

    ranked = sorted(nearest.values(), key=lambda item: (item[0], item[1].id))
    return [NearbyPerson(person=person, distance_km=round(distance)) for distance, person in ranked]
