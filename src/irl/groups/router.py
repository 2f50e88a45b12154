"""Group endpoints: list, create, join, leave, delete."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from irl.auth.dependencies import get_current_user
from irl.database import get_session
from irl.db.models import Group, User
from irl.gamification.triggers import AchievementTriggers
from irl.groups import service
from irl.groups.schemas import GroupCreateRequest, GroupJoinRequest, GroupMutationResponse, GroupResponse
from irl.persons.router import get_owned_person

logger = structlog.get_logger()

router = APIRouter(prefix="/api/groups", tags=["Groups"])


def _group_response(group: Group, member_count: int) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        member_count=member_count,
        created_at=group.created_at,
    )


async def _get_group_or_404(db: AsyncSession, group_id: int) -> Group:
    group = await service.get_group(db, group_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


@router.get("", response_model=list[GroupResponse])
async def list_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """All groups with member counts."""
    return [_group_response(g, count) for g, count in await service.list_groups(db)]


@router.post("", response_model=GroupMutationResponse, status_code=201)
async def create_group(
    body: GroupCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Create a group; the given person becomes its admin."""
    person = await get_owned_person(db, body.person_display_id, user)
    group = await service.create_group(db, body.name, body.description, person)
    await db.commit()
    logger.info("group_created", group_id=group.id, person_id=person.id)

    triggers = AchievementTriggers(db)
    awarded = await triggers.award_group_create(user.id)
    awarded += await triggers.after_membership_change(person.id)

    return GroupMutationResponse(
        group=_group_response(group, await service.count_members(db, group.id)),
        awarded_achievements=awarded,
    )


@router.post("/{group_id}/join", response_model=GroupMutationResponse)
async def join_group(
    group_id: int,
    body: GroupJoinRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    group = await _get_group_or_404(db, group_id)
    person = await get_owned_person(db, body.person_display_id, user)
    try:
        await service.join_group(db, group, person)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await db.commit()

    awarded = await AchievementTriggers(db).after_membership_change(person.id)
    return GroupMutationResponse(
        group=_group_response(group, await service.count_members(db, group.id)),
        awarded_achievements=awarded,
    )


@router.delete("/{group_id}/members/{person_display_id}", status_code=204)
async def leave_group(
    group_id: int,
    person_display_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Remove one of your persons from a group. Earned achievements are kept."""
    group = await _get_group_or_404(db, group_id)
    person = await get_owned_person(db, person_display_id, user)
    membership = await service.get_membership(db, group.id, person.id)
    if membership is None:
        raise HTTPException(status_code=404, detail="Not a member of this group")
    await service.leave_group(db, membership)
    await db.commit()


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Soft-delete a group. Group admins only."""
    group = await _get_group_or_404(db, group_id)
    if not await service.is_group_admin(db, group.id, user.id):
        raise HTTPException(status_code=403, detail="Only group admins can delete a group")
    await service.delete_group(db, group)
    await db.commit()
    logger.info("group_deleted", group_id=group.id, user_id=user.id)
