"""Shared test fixtures."""

import pytest
import pytest_asyncio

from atlas.config import AnthropicSettings, DatabaseSettings, Settings
from atlas.repositories import create_project, create_task, get_or_create_user
from atlas.schemas import ProjectCreate, TaskCreate, UserCreate
from atlas.storage.db import Database

MEMORY_URL = "sqlite+aiosqlite://"


@pytest.fixture
def settings():
    """Settings that ignore the developer's environment and config file."""
    return Settings(
        database=DatabaseSettings(environment="development", url=MEMORY_URL),
        anthropic=AnthropicSettings(api_key=""),
    )


@pytest_asyncio.fixture
async def database():
    db = Database(MEMORY_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session_factory() as session:
        yield session


async def make_user(session, username="alice", **overrides):
    fields = {"username": username, "password_hash": "hash"}
    fields.update(overrides)
    return await get_or_create_user(session, UserCreate(**fields))


async def make_project(session, owner, name="Project", **overrides):
    fields = {"name": name, "owner_id": owner.id}
    fields.update(overrides)
    return await create_project(session, ProjectCreate(**fields))


async def make_task(session, project, title="Task", **overrides):
    fields = {"title": title, "project_id": project.id}
    fields.update(overrides)
    return await create_task(session, TaskCreate(**fields))
