"""
User service: signup/login and self-or-admin account management.

Usernames and emails are stored lowercased.  Every account created through
signup gets the ``user`` role; admins are provisioned out of band (see
``scripts/seed.py``).  Uniqueness of username and email is enforced by the
database; the router translates ``IntegrityError`` into 409.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postapi.cache import cache
from postapi.exceptions import UnauthorizedError
from postapi.models import ROLE_USER, User
from postapi.schemas import UserLimited, UserLogin, UserSignup, UserUpdate
from postapi.security import (
    IdentityClaim,
    authorize,
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


def _issue_token(user: User) -> tuple[str, UserLimited]:
    token = create_access_token(user.id, user.role, username=user.username, email=user.email)
    return token, UserLimited.model_validate(user)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username.lower()))
    return result.scalar_one_or_none()


async def username_exists(db: AsyncSession, username: str) -> bool:
    return await get_user_by_username(db, username) is not None


async def email_exists(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email.lower()))
    return result.first() is not None


# ---------------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------------

async def signup(db: AsyncSession, data: UserSignup) -> tuple[str, UserLimited]:
    """Create a ``user``-role account and return a token for it."""
    user = User(
        username=data.username.lower(),
        email=data.email.lower(),
        password_hash=hash_password(data.password),
        role=ROLE_USER,
        first_name=data.first_name,
        last_name=data.last_name,
        bio=data.bio,
        status=data.status,
        profile_picture=data.profile_picture,
    )
    db.add(user)
    await db.flush()
    logger.info("Signed up user %s (id=%s)", user.username, user.id)
    return _issue_token(user)


async def login(db: AsyncSession, data: UserLogin) -> tuple[str, UserLimited] | None:
    """Return a fresh token, or None for an unknown user or wrong password."""
    user = await get_user_by_username(db, data.username)
    if user is None or not verify_password(data.password, user.password_hash):
        return None

    user.last_login = datetime.now(timezone.utc)
    await db.flush()
    return _issue_token(user)


# ---------------------------------------------------------------------------
# Self-or-admin mutations
# ---------------------------------------------------------------------------

async def update_user(
    db: AsyncSession, user_id: int, claim: IdentityClaim, data: UserUpdate
) -> User | None:
    """
    Apply the fields explicitly set in *data* to *user_id*.

    Returns None when the user does not exist; raises ``UnauthorizedError``
    unless the caller is that user or an admin.
    """
    user = await db.get(User, user_id)
    if user is None:
        return None

    if not authorize(claim, user.id):
        logger.warning("Denied update of user %s for user_id=%s", user_id, claim.subject_id)
        raise UnauthorizedError()

    changes = data.model_dump(exclude_unset=True)
    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    if changes.get("email"):
        changes["email"] = changes["email"].lower()
    else:
        changes.pop("email", None)

    for field, value in changes.items():
        setattr(user, field, value)

    await db.flush()
    await cache.invalidate_posts(db)
    return user


async def delete_user(db: AsyncSession, user_id: int, claim: IdentityClaim) -> bool:
    """
    Remove the user row only.

    The user's posts and comments are kept; feeds render them with the
    missing-author placeholder.
    """
    user = await db.get(User, user_id)
    if user is None:
        return False

    if not authorize(claim, user.id):
        logger.warning("Denied delete of user %s for user_id=%s", user_id, claim.subject_id)
        raise UnauthorizedError()

    await db.delete(user)
    await db.flush()
    await cache.invalidate_posts(db)
    return True
