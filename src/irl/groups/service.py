"""Groups and memberships."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from irl.db.models import Group, Person, PersonGroup


async def list_groups(db: AsyncSession) -> list[tuple[Group, int]]:
    """Non-deleted groups with their count of non-deleted members, by name."""
    member_count = (
        select(func.count(PersonGroup.id))
        .join(Person, Person.id == PersonGroup.person_id)
        .where(PersonGroup.group_id == Group.id, Person.deleted.is_(False))
        .correlate(Group)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Group, member_count.label("member_count"))
        .where(Group.deleted.is_(False))
        .order_by(Group.name.asc(), Group.id.asc())
    )
    return [(row.Group, row.member_count) for row in result]


async def get_group(db: AsyncSession, group_id: int) -> Group | None:
    result = await db.execute(select(Group).where(Group.id == group_id, Group.deleted.is_(False)))
    return result.scalar_one_or_none()


async def get_membership(db: AsyncSession, group_id: int, person_id: int) -> PersonGroup | None:
    result = await db.execute(
        select(PersonGroup).where(PersonGroup.group_id == group_id, PersonGroup.person_id == person_id)
    )
    return result.scalar_one_or_none()


async def create_group(db: AsyncSession, name: str, description: str | None, creator: Person) -> Group:
    """Create a group with ``creator`` as its first admin member."""
    group = Group(name=name, description=description)
    db.add(group)
    await db.flush()
    db.add(PersonGroup(person_id=creator.id, group_id=group.id, is_admin=True))
    await db.flush()
    return group


async def join_group(db: AsyncSession, group: Group, person: Person) -> PersonGroup:
    """
    Add ``person`` to ``group`` as a regular member.

    Raises:
        ValueError: If the person is already a member.
    """
    if await get_membership(db, group.id, person.id) is not None:
        msg = "Already a member of this group"
        raise ValueError(msg)
    membership = PersonGroup(person_id=person.id, group_id=group.id, is_admin=False)
    try:
        async with db.begin_nested():
            db.add(membership)
    except IntegrityError as e:
        # a concurrent join won the unique constraint
        msg = "Already a member of this group"
        raise ValueError(msg) from e
    return membership


async def leave_group(db: AsyncSession, membership: PersonGroup) -> None:
    await db.delete(membership)
    await db.flush()


async def is_group_admin(db: AsyncSession, group_id: int, user_id: int) -> bool:
    """Whether any of the user's non-deleted persons administers the group."""
    result = await db.execute(
        select(PersonGroup.id)
        .join(Person, Person.id == PersonGroup.person_id)
        .where(
            PersonGroup.group_id == group_id,
            PersonGroup.is_admin.is_(True),
            Person.user_id == user_id,
            Person.deleted.is_(False),
        )
    )
    return result.first() is not None


async def delete_group(db: AsyncSession, group: Group) -> None:
    group.deleted = True
    await db.flush()


async def count_members(db: AsyncSession, group_id: int) -> int:
    result = await db.execute(
        select(func.count(PersonGroup.id))
        .join(Person, Person.id == PersonGroup.person_id)
        .where(PersonGroup.group_id == group_id, Person.deleted.is_(False))
    )
    return result.scalar_one()
