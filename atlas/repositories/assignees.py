"""Project and task assignment repositories."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.repositories.base import delete_by_id, insert, new_record
from atlas.schemas import (
    ProjectAssigneeCreate,
    ProjectAssigneeFilters,
    TaskAssigneeCreate,
    TaskAssigneeFilters,
)
from atlas.storage.models import ProjectAssignee, TaskAssignee


async def add_project_assignee(session: AsyncSession, params: ProjectAssigneeCreate) -> ProjectAssignee:
    """Assign a user to a project. The same pair may be added twice."""
    return await insert(session, new_record(ProjectAssignee, **params.model_dump()))


async def remove_project_assignee(session: AsyncSession, assignee_id: str) -> None:
    await delete_by_id(session, ProjectAssignee, assignee_id)


async def list_project_assignees(
    session: AsyncSession,
    filters: ProjectAssigneeFilters,
) -> list[ProjectAssignee]:
    query = select(ProjectAssignee).order_by(ProjectAssignee.created_at, ProjectAssignee.id)
    if filters.project_id:
        query = query.where(ProjectAssignee.project_id == filters.project_id)
    if filters.user_id:
        query = query.where(ProjectAssignee.user_id == filters.user_id)
    result = await session.execute(query)
    return list(result.scalars().all())


async def add_task_assignee(session: AsyncSession, params: TaskAssigneeCreate) -> TaskAssignee:
    return await insert(session, new_record(TaskAssignee, **params.model_dump()))


async def remove_task_assignee(session: AsyncSession, assignee_id: str) -> None:
    await delete_by_id(session, TaskAssignee, assignee_id)


async def list_task_assignees(
    session: AsyncSession,
    filters: TaskAssigneeFilters,
) -> list[TaskAssignee]:
    query = select(TaskAssignee).order_by(TaskAssignee.created_at, TaskAssignee.id)
    if filters.task_id:
        query = query.where(TaskAssignee.task_id == filters.task_id)
    if filters.user_id:
        query = query.where(TaskAssignee.user_id == filters.user_id)
    result = await session.execute(query)
    return list(result.scalars().all())
