"""Interest catalog endpoints. Reads are open to any user, writes are admin-only."""

from __future__ import annotations

import math

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from irl.auth.dependencies import get_current_user, require_admin
from irl.database import get_session
from irl.db.models import Interest, User
from irl.interests import service
from irl.interests.schemas import InterestListResponse, InterestRequest, InterestResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/interests", tags=["Interests"])


async def _get_interest_or_404(db: AsyncSession, interest_id: int) -> Interest:
    interest = await service.get_interest(db, interest_id)
    if interest is None:
        raise HTTPException(status_code=404, detail="Interest not found")
    return interest


@router.get("", response_model=InterestListResponse)
async def list_interests(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    interests, total = await service.list_interests(db, page=page, limit=limit)
    return InterestListResponse(
        interests=[InterestResponse.model_validate(i) for i in interests],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


@router.post("", response_model=InterestResponse, status_code=201)
async def create_interest(
    body: InterestRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    try:
        interest = await service.create_interest(db, body.name, body.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    logger.info("interest_created", interest_id=interest.id, admin_id=admin.id)
    return InterestResponse.model_validate(interest)


@router.put("/{interest_id}", response_model=InterestResponse)
async def update_interest(
    interest_id: int,
    body: InterestRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    interest = await _get_interest_or_404(db, interest_id)
    try:
        await service.update_interest(db, interest, body.name, body.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    await db.refresh(interest)
    return InterestResponse.model_validate(interest)


@router.delete("/{interest_id}", status_code=204)
async def delete_interest(
    interest_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    interest = await _get_interest_or_404(db, interest_id)
    try:
        await service.delete_interest(db, interest)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    logger.info("interest_deleted", interest_id=interest.id, admin_id=admin.id)
