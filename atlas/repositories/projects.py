"""Project repository."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.repositories.base import delete_by_id, insert, new_record, update_by_id
from atlas.schemas import ProjectCreate, ProjectFilters, ProjectUpdate
from atlas.storage.models import Project


async def create_project(session: AsyncSession, params: ProjectCreate) -> Project:
    """Create a project. ``owner_id`` must reference an existing user."""
    return await insert(session, new_record(Project, **params.model_dump()))


async def get_project(session: AsyncSession, project_id: str) -> Optional[Project]:
    return await session.get(Project, project_id)


async def update_project(session: AsyncSession, params: ProjectUpdate) -> Optional[Project]:
    return await update_by_id(session, Project, params)


async def delete_project(session: AsyncSession, project_id: str) -> None:
    await delete_by_id(session, Project, project_id)


async def list_projects(session: AsyncSession, filters: ProjectFilters) -> list[Project]:
    """List projects, most recently updated first."""
    query = select(Project).order_by(Project.updated_at.desc(), Project.id)
    if filters.owner_id:
        query = query.where(Project.owner_id == filters.owner_id)
    result = await session.execute(query.limit(filters.limit).offset(filters.offset))
    return list(result.scalars().all())
