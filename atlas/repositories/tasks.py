"""Task repository.

Tasks default to a deadline two weeks out and are listed soonest
deadline first.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.repositories.base import delete_by_id, insert, new_record, update_by_id
from atlas.schemas import TaskCreate, TaskFilters, TaskUpdate
from atlas.storage.models import Task, TaskAssignee, utcnow

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE = timedelta(days=14)


async def create_task(session: AsyncSession, params: TaskCreate) -> Task:
    """Create a task. ``project_id`` must reference an existing project."""
    fields = params.model_dump()
    if fields["deadline"] is None:
        fields["deadline"] = utcnow() + DEFAULT_DEADLINE
    return await insert(session, new_record(Task, **fields))


async def get_task(session: AsyncSession, task_id: str) -> Optional[Task]:
    return await session.get(Task, task_id)


async def update_task(session: AsyncSession, params: TaskUpdate) -> Optional[Task]:
    return await update_by_id(session, Task, params)


async def delete_task(session: AsyncSession, task_id: str) -> None:
    await delete_by_id(session, Task, task_id)


async def list_tasks(session: AsyncSession, filters: TaskFilters) -> list[Task]:
    """List tasks by deadline ascending.

    Assignments are only consulted when ``assignee_id`` is given, so
    unassigned tasks still appear in project listings.
    """
    query = select(Task).order_by(Task.deadline.asc(), Task.id)
    if filters.project_id:
        query = query.where(Task.project_id == filters.project_id)
    if filters.status:
        query = query.where(Task.status == filters.status)
    if filters.assignee_id:
        query = query.where(
            exists().where(
                TaskAssignee.task_id == Task.id,
                TaskAssignee.user_id == filters.assignee_id,
            )
        )
    result = await session.execute(query.limit(filters.limit).offset(filters.offset))
    return list(result.scalars().all())
