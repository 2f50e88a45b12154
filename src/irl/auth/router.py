"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from irl.auth.dependencies import get_current_user
from irl.auth.jwt import create_access_token
from irl.auth.rate_limit import email_limiter
from irl.auth.schemas import (
    EmailRequest,
    LoginResponse,
    MessageResponse,
    SessionResponse,
    UserResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from irl.auth.service import (
    create_magic_link_token,
    get_first_person,
    get_user_by_email,
    redeem_magic_link_token,
    register_user,
    rotate_verification_token,
    verify_email_token,
)
from irl.config import get_settings
from irl.database import get_session
from irl.db.models import User
from irl.email.service import EmailService, get_email_service
from irl.gamification.triggers import AchievementTriggers
from irl.persons.schemas import PersonSummary
from irl.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

MAGIC_LINK_SENT = "If the email exists, a sign-in link has been sent"
VERIFICATION_SENT = "If the email exists and is unverified, a verification link has been sent"


async def _session_response(db: AsyncSession, user: User) -> SessionResponse:
    person = await get_first_person(db, user.id)
    return SessionResponse(
        user=UserResponse.model_validate(user),
        person=PersonSummary.model_validate(person) if person else None,
    )


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    body: EmailRequest,
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),
    email_service: EmailService = Depends(get_email_service),
) -> UserResponse:
    """Create an account and email a verification link."""
    try:
        user, raw_token = await register_user(db, body.email)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await db.commit()

    if await email_limiter(redis).allow(user.email):
        sent = await email_service.send_verification_email(user.email, raw_token)
        if not sent:
            logger.warning("verification_email_failed", user_id=user.id)

    return UserResponse.model_validate(user)


@router.post("/verify-email", response_model=VerifyEmailResponse)
async def verify_email_endpoint(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_session),
) -> VerifyEmailResponse:
    """Verify the email address and award ``email_verified``."""
    try:
        user = await verify_email_token(db, body.token)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    awarded = await AchievementTriggers(db).award_email_verified(user.id)
    return VerifyEmailResponse(user=UserResponse.model_validate(user), awarded_achievements=awarded)


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    body: EmailRequest,
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),
    email_service: EmailService = Depends(get_email_service),
) -> MessageResponse:
    """Re-send the verification email. The response never reveals whether the account exists."""
    user = await get_user_by_email(db, body.email)
    if user is None or user.email_verified:
        return MessageResponse(message=VERIFICATION_SENT)

    if not await email_limiter(redis).allow(user.email):
        return MessageResponse(message=VERIFICATION_SENT)

    raw_token = await rotate_verification_token(db, user)
    await db.commit()
    await email_service.send_verification_email(user.email, raw_token)
    return MessageResponse(message=VERIFICATION_SENT)


@router.post("/send-magic-link", response_model=MessageResponse)
async def send_magic_link(
    body: EmailRequest,
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),
    email_service: EmailService = Depends(get_email_service),
) -> MessageResponse:
    """Email a single-use sign-in link to a verified account.

    The response is identical whether or not a link was sent.
    """
    user = await get_user_by_email(db, body.email)
    if user is None or not user.email_verified:
        return MessageResponse(message=MAGIC_LINK_SENT)

    if not await email_limiter(redis).allow(user.email):
        return MessageResponse(message=MAGIC_LINK_SENT)

    raw_token = await create_magic_link_token(db, user.email)
    await db.commit()

    if await email_service.send_magic_link_email(user.email, raw_token):
        logger.info("magic_link_sent", user_id=user.id)
    return MessageResponse(message=MAGIC_LINK_SENT)


@router.get("/verify-magic-link", response_model=LoginResponse)
async def verify_magic_link(
    token: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """Redeem a magic link: issue a bearer token and return the session."""
    if not token:
        raise HTTPException(status_code=400, detail="Token is required")

    user = await redeem_magic_link_token(db, token)
    await db.commit()
    if user is None:
        raise HTTPException(status_code=400, detail="Invalid or expired sign-in link")

    settings = get_settings()
    session = await _session_response(db, user)
    logger.info("user_logged_in", user_id=user.id, method="magic_link")
    return LoginResponse(
        user=session.user,
        person=session.person,
        access_token=create_access_token(user.id, user.email),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session_info(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SessionResponse:
    """Current user and their first person."""
    return await _session_response(db, user)


@router.post("/logout", status_code=204)
async def logout(user: User = Depends(get_current_user)):
    """Bearer tokens are stateless; the client discards its token and this records the sign-out."""
    logger.info("user_logged_out", user_id=user.id)
