"""Shared helpers for the entity repositories."""

import logging
import uuid
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.schemas import Payload
from atlas.storage.models import Base, utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def new_record(model: type[ModelT], **fields) -> ModelT:
    """Build a row with a fresh id and matching created/updated timestamps."""
    now = utcnow()
    fields.pop("id", None)
    fields.pop("created_at", None)
    fields.pop("updated_at", None)
    return model(id=str(uuid.uuid4()), created_at=now, updated_at=now, **fields)


async def insert(session: AsyncSession, record: ModelT) -> ModelT:
    session.add(record)
    await session.flush()
    logger.debug("Created %s %s", record.__tablename__, record.id)
    return record


async def update_by_id(
    session: AsyncSession,
    model: type[ModelT],
    params: Payload,
) -> Optional[ModelT]:
    """Write only the fields the caller supplied. Missing ids are a no-op."""
    record = await session.get(model, params.id)
    if record is None:
        logger.debug("Update of missing %s %s ignored", model.__tablename__, params.id)
        return None

    changes = params.model_dump(exclude_unset=True, exclude={"id"})
    for field, value in changes.items():
        if value is not None:
            setattr(record, field, value)
    record.updated_at = utcnow(after=record.updated_at)
    await session.flush()
    return record


async def delete_by_id(session: AsyncSession, model: type[Base], record_id: str) -> None:
    result = await session.execute(delete(model).where(model.id == record_id))
    logger.debug("Deleted %d %s row(s) for %s", result.rowcount, model.__tablename__, record_id)


def by_id(fn: Callable[[AsyncSession, str], Awaitable[Any]]) -> Callable[[AsyncSession, Any], Awaitable[Any]]:
    """Adapt an ``fn(session, id)`` repository call to take an id payload."""

    async def handler(session: AsyncSession, params: Any) -> Any:
        return await fn(session, params.id)

    return handler
