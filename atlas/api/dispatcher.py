"""Unified dispatcher for ``{operation, entity, data}`` requests.

The envelope is validated first, then ``data`` is parsed into the payload
model registered for the ``(entity, operation)`` pair, and the matching
repository function runs. Every outcome is returned as a status code plus
a ``{status, data}`` or ``{status, error}`` body.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, NamedTuple

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from atlas import repositories as repo
from atlas.errors import (
    AtlasError,
    NotImplementedYet,
    UnsupportedOperation,
    ValidationFailed,
    build_error_payload,
    build_success_payload,
)
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
    serialize,
)

logger = logging.getLogger(__name__)

Operation = Literal["create", "read", "update", "delete", "getOrCreate"]
Entity = Literal[
    "project",
    "task",
    "user",
    "projectAssignee",
    "taskAssignee",
    "taskActivity",
    "taskDependency",
    "session",
]


class Envelope(BaseModel):
    operation: Operation
    entity: Entity
    data: dict[str, Any]


class DispatchResult(NamedTuple):
    status_code: int
    body: dict[str, Any]


Handler = Callable[[AsyncSession, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Route:
    params: type[Payload]
    handler: Handler


async def _list_users(session: AsyncSession, params: EmptyParams) -> Any:
    return await repo.list_users(session)


# "read" resolves to "get" when data carries an id and the entity has a
# single-record lookup, otherwise to "list".
ROUTES: dict[tuple[str, str], Route] = {
    ("project", "create"): Route(ProjectCreate, repo.create_project),
    ("project", "get"): Route(IdParams, by_id(repo.get_project)),
    ("project", "list"): Route(ProjectFilters, repo.list_projects),
    ("project", "update"): Route(ProjectUpdate, repo.update_project),
    ("project", "delete"): Route(IdParams, by_id(repo.delete_project)),
    ("task", "create"): Route(TaskCreate, repo.create_task),
    ("task", "get"): Route(IdParams, by_id(repo.get_task)),
    ("task", "list"): Route(TaskFilters, repo.list_tasks),
    ("task", "update"): Route(TaskUpdate, repo.update_task),
    ("task", "delete"): Route(IdParams, by_id(repo.delete_task)),
    ("user", "create"): Route(UserCreate, repo.create_user),
    ("user", "getOrCreate"): Route(UserGetOrCreate, repo.get_or_create_user),
    ("user", "get"): Route(IdParams, by_id(repo.get_user)),
    ("user", "list"): Route(EmptyParams, _list_users),
    ("projectAssignee", "create"): Route(ProjectAssigneeCreate, repo.add_project_assignee),
    ("projectAssignee", "list"): Route(ProjectAssigneeFilters, repo.list_project_assignees),
    ("projectAssignee", "delete"): Route(IdParams, by_id(repo.remove_project_assignee)),
    ("taskAssignee", "create"): Route(TaskAssigneeCreate, repo.add_task_assignee),
    ("taskAssignee", "list"): Route(TaskAssigneeFilters, repo.list_task_assignees),
    ("taskAssignee", "delete"): Route(IdParams, by_id(repo.remove_task_assignee)),
    ("taskActivity", "create"): Route(TaskActivityCreate, repo.create_task_activity),
    ("taskActivity", "get"): Route(IdParams, by_id(repo.get_task_activity)),
    ("taskActivity", "list"): Route(TaskActivityFilters, repo.list_task_activities),
    ("taskActivity", "delete"): Route(IdParams, by_id(repo.delete_task_activity)),
    ("taskDependency", "create"): Route(TaskDependencyCreate, repo.add_task_dependency),
    ("taskDependency", "list"): Route(TaskDependencyFilters, repo.list_task_dependencies),
    ("taskDependency", "delete"): Route(IdParams, by_id(repo.remove_task_dependency)),
}


def resolve_route(envelope: Envelope) -> Route:
    """Find the route for an envelope or raise the matching error."""
    if envelope.entity == "session":
        raise NotImplementedYet("Session CRUD not implemented")

    op = envelope.operation
    if op == "read":
        has_get = (envelope.entity, "get") in ROUTES
        op = "get" if envelope.data.get("id") and has_get else "list"

    route = ROUTES.get((envelope.entity, op))
    if route is None:
        raise UnsupportedOperation(
            f"Operation '{envelope.operation}' is not supported for entity '{envelope.entity}'"
        )
    return route


async def handle(session: AsyncSession, envelope: Envelope) -> Any:
    """Run a validated envelope and return JSON-safe data."""
    route = resolve_route(envelope)
    try:
        params = route.params.model_validate(envelope.data)
    except ValidationError as e:
        raise ValidationFailed.from_pydantic(e) from e
    result = await route.handler(session, params)
    return serialize(result)


async def dispatch(session: AsyncSession, body: Any) -> DispatchResult:
    """Validate, route and execute one request body."""
    try:
        envelope = Envelope.model_validate(body)
    except ValidationError:
        return DispatchResult(400, build_error_payload("Invalid request body", 400))

    try:
        data = await handle(session, envelope)
    except AtlasError as e:
        logger.info("%s %s rejected: %s", envelope.operation, envelope.entity, e.message)
        return DispatchResult(e.status_code, e.to_payload())
    except Exception as e:
        logger.exception("%s %s failed", envelope.operation, envelope.entity)
        await session.rollback()
        message = str(getattr(e, "orig", None) or e) or "Internal error"
        return DispatchResult(500, build_error_payload(message, 500))

    return DispatchResult(200, build_success_payload(data))
