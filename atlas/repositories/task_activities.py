"""Task activity repository: comments, status changes and other events."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.repositories.base import delete_by_id, insert, new_record
from atlas.schemas import TaskActivityCreate, TaskActivityFilters
from atlas.storage.models import Task, TaskActivity


async def create_task_activity(session: AsyncSession, params: TaskActivityCreate) -> TaskActivity:
    return await insert(session, new_record(TaskActivity, **params.model_dump()))


async def get_task_activity(session: AsyncSession, activity_id: str) -> Optional[TaskActivity]:
    return await session.get(TaskActivity, activity_id)


async def delete_task_activity(session: AsyncSession, activity_id: str) -> None:
    await delete_by_id(session, TaskActivity, activity_id)


async def list_task_activities(
    session: AsyncSession,
    filters: TaskActivityFilters,
) -> list[TaskActivity]:
    """List activity newest first, filtered by task, user or the task's project."""
    query = select(TaskActivity).order_by(TaskActivity.updated_at.desc(), TaskActivity.id)
    if filters.task_id:
        query = query.where(TaskActivity.task_id == filters.task_id)
    if filters.user_id:
        query = query.where(TaskActivity.user_id == filters.user_id)
    if filters.project_id:
        query = query.join(Task, Task.id == TaskActivity.task_id).where(
            Task.project_id == filters.project_id
        )
    result = await session.execute(query.limit(filters.limit).offset(filters.offset))
    return list(result.scalars().all())
