"""Repository operations exposed as language-model tools.

Each ``Tool`` pairs a name and description with the pydantic payload model
that doubles as its JSON input schema. One generic adapter validates the
model's arguments, runs the handler and serialises the result.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, NamedTuple

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from atlas import repositories as repo
from atlas.errors import AtlasError, ValidationFailed
from atlas.repositories.base import by_id
from atlas.schemas import (
    EmptyParams,
    IdParams,
    Payload,
    ProjectAssigneeCreate,
    ProjectAssigneeFilters,
    ProjectCreate,
    ProjectFilters,
    ProjectUpdate,
    TaskActivityCreate,
    TaskActivityFilters,
    TaskAssigneeCreate,
    TaskAssigneeFilters,
    TaskCreate,
    TaskDependencyCreate,
    TaskDependencyFilters,
    TaskFilters,
    TaskUpdate,
    UserCreate,
    UserGetOrCreate,
    UserLookup,
    UserPasswordUpdate,
    serialize,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params: type[Payload]
    handler: Callable[[AsyncSession, Any], Awaitable[Any]]

    def definition(self) -> dict[str, Any]:
        """Anthropic tool definition for this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.params.model_json_schema(by_alias=True),
        }


class ToolResult(NamedTuple):
    content: str
    is_error: bool = False


async def _list_users(session: AsyncSession, params: EmptyParams) -> Any:
    return await repo.list_users(session)


async def _get_user_by_username(session: AsyncSession, params: UserLookup) -> Any:
    return await repo.get_user_by_username(session, params.username)


TOOLS: list[Tool] = [
    # Users
    Tool("get_user", "Fetch a user by id.", IdParams, by_id(repo.get_user)),
    Tool(
        "get_user_by_username",
        "Fetch a user by their unique username.",
        UserLookup,
        _get_user_by_username,
    ),
    Tool("list_users", "List all users ordered by username.", EmptyParams, _list_users),
    Tool(
        "create_user",
        "Create a user with a plain password or a pre-hashed passwordHash. "
        "Fails if the username is taken; use get_or_create_user when unsure.",
        UserCreate,
        repo.create_user,
    ),
    Tool(
        "get_or_create_user",
        "Return the user with this username, creating it when it does not exist. "
        "A plain password or a pre-hashed passwordHash is required only when creating.",
        UserGetOrCreate,
        repo.get_or_create_user,
    ),
    Tool(
        "update_user_password",
        "Set a new password for an existing user.",
        UserPasswordUpdate,
        repo.update_user_password,
    ),
    # Projects
    Tool(
        "create_project",
        "Create a project owned by a user. llmContext holds guidance notes for the assistant.",
        ProjectCreate,
        repo.create_project,
    ),
    Tool("get_project", "Fetch a project by id.", IdParams, by_id(repo.get_project)),
    Tool(
        "update_project",
        "Update a project. Only the fields provided are changed.",
        ProjectUpdate,
        repo.update_project,
    ),
    Tool("delete_project", "Delete a project by id.", IdParams, by_id(repo.delete_project)),
    Tool(
        "list_projects",
        "List projects, most recently updated first, optionally for one owner.",
        ProjectFilters,
        repo.list_projects,
    ),
    # Tasks
    Tool(
        "create_task",
        "Create a task in a project. The deadline defaults to two weeks from now.",
        TaskCreate,
        repo.create_task,
    ),
    Tool("get_task", "Fetch a task by id.", IdParams, by_id(repo.get_task)),
    Tool(
        "update_task",
        "Update a task (status, priority, deadline, ...). Only the fields provided are changed.",
        TaskUpdate,
        repo.update_task,
    ),
    Tool("delete_task", "Delete a task by id.", IdParams, by_id(repo.delete_task)),
    Tool(
        "list_tasks",
        "List tasks by deadline, soonest first. Filter by project, assignee or status.",
        TaskFilters,
        repo.list_tasks,
    ),
    # Dependencies
    Tool(
        "add_task_dependency",
        "Record that taskId cannot proceed until dependsOnTaskId is done.",
        TaskDependencyCreate,
        repo.add_task_dependency,
    ),
    Tool(
        "remove_task_dependency",
        "Remove a task dependency by its id.",
        IdParams,
        by_id(repo.remove_task_dependency),
    ),
    Tool(
        "list_task_dependencies",
        "List dependencies of a task, or the tasks waiting on it.",
        TaskDependencyFilters,
        repo.list_task_dependencies,
    ),
    # Assignees
    Tool(
        "add_project_assignee",
        "Add a user to a project team.",
        ProjectAssigneeCreate,
        repo.add_project_assignee,
    ),
    Tool(
        "remove_project_assignee",
        "Remove a project assignment by its id.",
        IdParams,
        by_id(repo.remove_project_assignee),
    ),
    Tool(
        "list_project_assignees",
        "List project assignments for a project or a user.",
        ProjectAssigneeFilters,
        repo.list_project_assignees,
    ),
    Tool("add_task_assignee", "Assign a user to a task.", TaskAssigneeCreate, repo.add_task_assignee),
    Tool(
        "remove_task_assignee",
        "Remove a task assignment by its id.",
        IdParams,
        by_id(repo.remove_task_assignee),
    ),
    Tool(
        "list_task_assignees",
        "List task assignments for a task or a user.",
        TaskAssigneeFilters,
        repo.list_task_assignees,
    ),
    # Activity
    Tool(
        "create_task_activity",
        "Log an activity (comment, status change, ...) on a task.",
        TaskActivityCreate,
        repo.create_task_activity,
    ),
    Tool("get_task_activity", "Fetch a task activity by id.", IdParams, by_id(repo.get_task_activity)),
    Tool(
        "delete_task_activity",
        "Delete a task activity by id.",
        IdParams,
        by_id(repo.delete_task_activity),
    ),
    Tool(
        "list_task_activities",
        "List recent activity, newest first, for a task, a user or a whole project.",
        TaskActivityFilters,
        repo.list_task_activities,
    ),
]

TOOLS_BY_NAME: dict[str, Tool] = {tool.name: tool for tool in TOOLS}


def anthropic_tools() -> list[dict[str, Any]]:
    return [tool.definition() for tool in TOOLS]


def _error(message: str) -> ToolResult:
    return ToolResult(json.dumps({"error": message}), is_error=True)


async def call_tool(session: AsyncSession, name: str, arguments: Any) -> ToolResult:
    """Run one tool call. Failures come back as an ``{"error": ...}`` result."""
    tool = TOOLS_BY_NAME.get(name)
    if tool is None:
        return _error(f"Unknown tool: {name}")

    try:
        params = tool.params.model_validate(arguments or {})
    except ValidationError as e:
        return _error(ValidationFailed.from_pydantic(e).message)

    try:
        result = await tool.handler(session, params)
    except AtlasError as e:
        return _error(e.message)
    except Exception as e:
        logger.exception("Tool %s failed", name)
        await session.rollback()
        return _error(str(getattr(e, "orig", None) or e) or "Internal error")

    return ToolResult(json.dumps(serialize(result)))
