"""Interest catalog."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from irl.db.models import Interest


async def list_interests(db: AsyncSession, page: int = 1, limit: int = 100) -> tuple[list[Interest], int]:
    """One page of non-deleted interests, alphabetical, plus the total count."""
    total_result = await db.execute(
        select(func.count()).select_from(Interest).where(Interest.deleted.is_(False))
    )
    result = await db.execute(
        select(Interest)
        .where(Interest.deleted.is_(False))
        .order_by(Interest.name.asc(), Interest.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total_result.scalar_one()


async def get_interest(db: AsyncSession, interest_id: int) -> Interest | None:
    """Fetch by id, deleted or not."""
    result = await db.execute(select(Interest).where(Interest.id == interest_id))
    return result.scalar_one_or_none()


async def _name_taken(db: AsyncSession, name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Interest.id).where(Interest.name == name, Interest.deleted.is_(False))
    if exclude_id is not None:
        stmt = stmt.where(Interest.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def create_interest(db: AsyncSession, name: str, description: str | None) -> Interest:
    """
    Raises:
        ValueError: If a non-deleted interest already has this name.
    """
    if await _name_taken(db, name):
        msg = "An interest with this name already exists"
        raise ValueError(msg)
    interest = Interest(name=name, description=description)
    db.add(interest)
    await db.flush()
    return interest


async def update_interest(db: AsyncSession, interest: Interest, name: str, description: str | None) -> Interest:
    """
    Raises:
        ValueError: If the interest is deleted or the name clashes with another.
    """
    if interest.deleted:
        msg = "Cannot update a deleted interest"
        raise ValueError(msg)
    if await _name_taken(db, name, exclude_id=interest.id):
        msg = "An interest with this name already exists"
        raise ValueError(msg)
    interest.name = name
    interest.description = description
    await db.flush()
    return interest


async def delete_interest(db: AsyncSession, interest: Interest) -> None:
    """
    Soft delete. Person links stay but stop counting anywhere.

    Raises:
        ValueError: If the interest is already deleted.
    """
    if interest.deleted:
        msg = "Interest is already deleted"
        raise ValueError(msg)
    interest.deleted = True
    await db.flush()
