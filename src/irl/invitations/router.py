"""Invitation endpoint: a signed-in member invites someone by email."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from irl.auth.dependencies import get_current_user
from irl.auth.rate_limit import email_limiter
from irl.auth.service import get_user_by_email
from irl.database import get_session
from irl.db.models import User
from irl.email.service import EmailService, get_email_service
from irl.invitations.schemas import InvitationRequest, InvitationResponse
from irl.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter(prefix="/api/invitations", tags=["Invitations"])


@router.post("", response_model=InvitationResponse, status_code=201)
async def send_invitation(
    body: InvitationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),
    email_service: EmailService = Depends(get_email_service),
) -> InvitationResponse:
    """Email a registration link to an address that has no account yet."""
    if await get_user_by_email(db, body.email) is not None:
        raise HTTPException(status_code=400, detail="This email address is already registered")

    if not await email_limiter(redis).allow(body.email):
        raise HTTPException(status_code=429, detail="Too many emails sent to this address, try again later")

    if not await email_service.send_invitation_email(body.email, user.email):
        logger.warning("invitation_email_failed", user_id=user.id)
        raise HTTPException(status_code=500, detail="Failed to send invitation email")

    logger.info("invitation_sent", user_id=user.id)
    return InvitationResponse(message="Invitation sent successfully")
