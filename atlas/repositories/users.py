"""User repository: identity lookups, get-or-create and password changes."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.errors import NotFoundError, ValidationFailed
from atlas.repositories.base import insert, new_record
from atlas.schemas import UserCreate, UserGetOrCreate, UserPasswordUpdate
from atlas.security import hash_password
from atlas.storage.models import User, utcnow

logger = logging.getLogger(__name__)


def _password_hash(params: UserGetOrCreate) -> str:
    if params.password_hash:
        return params.password_hash
    return hash_password(params.password)


async def create_user(session: AsyncSession, params: UserCreate) -> User:
    """Insert a user. A duplicate username raises ``IntegrityError``."""
    user = new_record(User, username=params.username, password_hash=_password_hash(params))
    return await insert(session, user)


async def get_user(session: AsyncSession, user_id: str) -> Optional[User]:
    return await session.get(User, user_id)


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.username.asc()))
    return list(result.scalars().all())


async def get_or_create_user(session: AsyncSession, params: UserGetOrCreate) -> User:
    """Return the user with this username, creating it if absent.

    A password is only required when the user has to be created.

    The insert uses ON CONFLICT DO NOTHING and then re-reads the row, so two
    concurrent callers with the same username both get the winner's row
    instead of a unique-constraint failure.
    """
    existing = await get_user_by_username(session, params.username)
    if existing is not None:
        return existing

    if not params.password_hash and not params.password:
        raise ValidationFailed("Invalid data: either passwordHash or password is required")

    record = new_record(User, username=params.username, password_hash=_password_hash(params))
    values = {
        "id": record.id,
        "username": record.username,
        "password_hash": record.password_hash,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }
    dialect = session.bind.dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(User).values(**values).on_conflict_do_nothing(index_elements=["username"])
    elif dialect == "sqlite":
        stmt = sqlite_insert(User).values(**values).on_conflict_do_nothing(index_elements=["username"])
    else:
        return await insert(session, record)

    result = await session.execute(stmt)
    if result.rowcount == 1:
        logger.info("Created user %s", params.username)
    else:
        logger.info("User %s created concurrently, returning existing row", params.username)

    user = await get_user_by_username(session, params.username)
    if user is None:
        raise NotFoundError(f"User {params.username!r} vanished after insert")
    return user


async def update_user_password(session: AsyncSession, params: UserPasswordUpdate) -> User:
    """Re-hash and store a new password. Unknown ids raise ``NotFoundError``."""
    user = await session.get(User, params.id)
    if user is None:
        raise NotFoundError(f"User {params.id} not found")
    user.password_hash = hash_password(params.password)
    user.updated_at = utcnow(after=user.updated_at)
    await session.flush()
    return user
