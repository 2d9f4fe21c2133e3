"""Task dependency repository. No cycle detection is performed."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.repositories.base import delete_by_id, insert, new_record
from atlas.schemas import TaskDependencyCreate, TaskDependencyFilters
from atlas.storage.models import TaskDependency


async def add_task_dependency(session: AsyncSession, params: TaskDependencyCreate) -> TaskDependency:
    """Record that ``task_id`` depends on ``depends_on_task_id``."""
    return await insert(session, new_record(TaskDependency, **params.model_dump()))


async def remove_task_dependency(session: AsyncSession, dependency_id: str) -> None:
    await delete_by_id(session, TaskDependency, dependency_id)


async def list_task_dependencies(
    session: AsyncSession,
    filters: TaskDependencyFilters,
) -> list[TaskDependency]:
    query = select(TaskDependency).order_by(TaskDependency.created_at, TaskDependency.id)
    if filters.task_id:
        query = query.where(TaskDependency.task_id == filters.task_id)
    if filters.depends_on_task_id:
        query = query.where(TaskDependency.depends_on_task_id == filters.depends_on_task_id)
    result = await session.execute(query)
    return list(result.scalars().all())
