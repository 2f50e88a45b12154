"""
Authentication business logic.

Account registration, email verification and magic-link tokens. Raw
tokens only ever leave this module to be emailed; the database stores
their SHA-256.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update

from irl.auth.rate_limit import normalize_email
from irl.config import get_settings
from irl.db.models import AuthenticationAttempt, Person, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str, *, include_deleted: bool = False) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    stmt = select(User).where(func.lower(User.email) == normalize_email(email))
    if not include_deleted:
        stmt = stmt.where(User.deleted.is_(False))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_first_person(db: AsyncSession, user_id: int) -> Person | None:
    """The user's oldest non-deleted person, if any."""
    result = await db.execute(
        select(Person)
        .where(Person.user_id == user_id, Person.deleted.is_(False))
        .order_by(Person.created_at.asc(), Person.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration & email verification
# ---------------------------------------------------------------------------


async def register_user(db: AsyncSession, email: str) -> tuple[User, str]:
    """
    Create an unverified user and its verification token.

    Returns (user, raw_token).

    Raises:
        ValueError: If the email is already registered.
    """
    if await get_user_by_email(db, email, include_deleted=True) is not None:
        msg = "Email already registered"
        raise ValueError(msg)

    raw_token = secrets.token_hex(32)
    user = User(
        email=normalize_email(email),
        email_verified=False,
        verification_token_hash=hash_token(raw_token),
    )
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user.id)
    return user, raw_token


async def rotate_verification_token(db: AsyncSession, user: User) -> str:
    """Replace an unverified user's verification token. Returns the new raw token."""
    raw_token = secrets.token_hex(32)
    user.verification_token_hash = hash_token(raw_token)
    await db.flush()
    return raw_token


async def verify_email_token(db: AsyncSession, raw_token: str) -> User:
    """
    Mark the token's user verified and clear the token.

    Raises:
        ValueError: If the token matches no user.
    """
    result = await db.execute(
        select(User).where(
            User.verification_token_hash == hash_token(raw_token),
            User.deleted.is_(False),
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        msg = "Invalid or expired verification token"
        raise ValueError(msg)

    user.email_verified = True
    user.verification_token_hash = None
    await db.flush()
    logger.info("email_verified", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Magic links
# ---------------------------------------------------------------------------


async def create_magic_link_token(db: AsyncSession, email: str) -> str:
    """Store a single-use sign-in token for ``email``. Returns the raw token."""
    settings = get_settings()
    raw_token = secrets.token_hex(32)
    db.add(
        AuthenticationAttempt(
            email=normalize_email(email),
            token_hash=hash_token(raw_token),
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.magic_link_ttl_minutes),
        )
    )
    await db.flush()
    return raw_token


async def redeem_magic_link_token(db: AsyncSession, raw_token: str) -> User | None:
    """
    Consume a magic-link token and return its user.

    The token is claimed with one conditional UPDATE (unused and
    unexpired), so of two concurrent redemptions only one sees a row
    count of 1. Returns None for unknown, used or expired tokens, and
    when the account no longer exists.
    """
    token_hash = hash_token(raw_token)
    now = datetime.now(timezone.utc)
    result = await db.execute(
        update(AuthenticationAttempt)
        .where(
            AuthenticationAttempt.token_hash == token_hash,
            AuthenticationAttempt.used.is_(False),
            AuthenticationAttempt.expires_at > now,
        )
        .values(used=True, used_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return None

    attempt_result = await db.execute(
        select(AuthenticationAttempt.email).where(AuthenticationAttempt.token_hash == token_hash)
    )
    email = attempt_result.scalar_one()
    return await get_user_by_email(db, email)
