"""Pydantic payload and response models.

Every ``(operation, entity)`` pair that the dispatcher or a tool accepts
has its own payload model. Field names are snake_case in Python and
camelCase on the wire (``projectId``, ``llmContext``, ``passwordHash``).
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from atlas.storage import models

DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 100


class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IdParams(Payload):
    id: str = Field(min_length=1, description="Record id")


class PageParams(Payload):
    limit: int = Field(DEFAULT_LIST_LIMIT, ge=1, description="Maximum rows to return")
    offset: int = Field(0, ge=0, description="Rows to skip")

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        return min(v, MAX_LIST_LIMIT)


def _coerce_deadline(value: Any) -> Any:
    """Numbers are epoch milliseconds; everything else is left to pydantic."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError("deadline out of range") from e
    return value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Deadline = Annotated[datetime, BeforeValidator(_coerce_deadline), AfterValidator(_as_utc)]


# --- Users ---

class UserGetOrCreate(Payload):
    """Only ``username`` is needed to find an existing user; a secret is needed to create one."""

    username: str = Field(min_length=1)
    password_hash: Optional[str] = Field(None, description="Pre-hashed password")
    password: Optional[str] = Field(None, description="Plain password, hashed before storage")


class UserCreate(UserGetOrCreate):
    @model_validator(mode="after")
    def require_secret(self) -> "UserCreate":
        if not self.password_hash and not self.password:
            raise ValueError("either passwordHash or password is required")
        return self


class UserLookup(Payload):
    username: str = Field(min_length=1)


class UserPasswordUpdate(Payload):
    id: str = Field(min_length=1)
    password: str = Field(min_length=1)


# --- Projects ---

class ProjectCreate(Payload):
    name: str = Field(min_length=1)
    description: str = ""
    llm_context: str = Field("", description="Guidance text for model-driven tooling")
    owner_id: str = Field(min_length=1, description="Id of the owning user")


class ProjectUpdate(IdParams):
    name: Optional[str] = None
    description: Optional[str] = None
    llm_context: Optional[str] = None
    owner_id: Optional[str] = None


class ProjectFilters(PageParams):
    owner_id: Optional[str] = None


# --- Tasks ---

class TaskCreate(Payload):
    title: str = Field(min_length=1)
    priority: int = 2
    status: str = "todo"
    deadline: Optional[Deadline] = Field(
        None, description="ISO timestamp or epoch milliseconds; defaults to 14 days from now"
    )
    description: str = ""
    llm_context: str = ""
    project_id: str = Field(min_length=1)


class TaskUpdate(IdParams):
    title: Optional[str] = None
    priority: Optional[int] = None
    status: Optional[str] = None
    deadline: Optional[Deadline] = None
    description: Optional[str] = None
    llm_context: Optional[str] = None
    project_id: Optional[str] = None


class TaskFilters(PageParams):
    project_id: Optional[str] = None
    assignee_id: Optional[str] = Field(None, description="Only tasks assigned to this user")
    status: Optional[str] = None


# --- Assignments, dependencies, activity ---

class ProjectAssigneeCreate(Payload):
    project_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class ProjectAssigneeFilters(Payload):
    project_id: Optional[str] = None
    user_id: Optional[str] = None


class TaskAssigneeCreate(Payload):
    task_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class TaskAssigneeFilters(Payload):
    task_id: Optional[str] = None
    user_id: Optional[str] = None


class TaskDependencyCreate(Payload):
    task_id: str = Field(min_length=1, description="The dependent task")
    depends_on_task_id: str = Field(min_length=1, description="The task it waits on")


class TaskDependencyFilters(Payload):
    task_id: Optional[str] = None
    depends_on_task_id: Optional[str] = None


class TaskActivityCreate(Payload):
    task_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    action: str = Field(min_length=1)
    llm_context: str = ""


class TaskActivityFilters(PageParams):
    task_id: Optional[str] = None
    user_id: Optional[str] = None
    project_id: Optional[str] = None


class EmptyParams(Payload):
    pass


# --- Responses ---

class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: datetime
    updated_at: datetime


class UserResponse(Record):
    username: str


class SessionResponse(Record):
    user_id: str
    expires_at: datetime


class ProjectResponse(Record):
    name: str
    description: str = ""
    llm_context: str = ""
    owner_id: str


class TaskResponse(Record):
    title: str
    priority: int = 2
    status: str = "todo"
    deadline: datetime
    description: str = ""
    llm_context: str = ""
    project_id: str


class TaskDependencyResponse(Record):
    task_id: str
    depends_on_task_id: str


class ProjectAssigneeResponse(Record):
    project_id: str
    user_id: str


class TaskAssigneeResponse(Record):
    task_id: str
    user_id: str


class TaskActivityResponse(Record):
    task_id: str
    user_id: str
    action: str
    llm_context: str = ""


RESPONSE_MODELS: dict[type, type[Record]] = {
    models.User: UserResponse,
    models.Session: SessionResponse,
    models.Project: ProjectResponse,
    models.Task: TaskResponse,
    models.TaskDependency: TaskDependencyResponse,
    models.ProjectAssignee: ProjectAssigneeResponse,
    models.TaskAssignee: TaskAssigneeResponse,
    models.TaskActivity: TaskActivityResponse,
}


def serialize(result: Any) -> Any:
    """Render ORM rows as JSON-safe camelCase dicts. ``None`` becomes ``{}``."""
    if result is None:
        return {}
    if isinstance(result, (list, tuple)):
        return [serialize(item) for item in result]
    response_model = RESPONSE_MODELS.get(type(result))
    if response_model is None:
        return result
    return response_model.model_validate(result).model_dump(mode="json", by_alias=True)
