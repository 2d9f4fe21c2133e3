"""Entity repositories: one async function per persistence operation."""

from atlas.repositories.assignees import (
    add_project_assignee,
    add_task_assignee,
    list_project_assignees,
    list_task_assignees,
    remove_project_assignee,
    remove_task_assignee,
)
from atlas.repositories.projects import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    update_project,
)
from atlas.repositories.task_activities import (
    create_task_activity,
    delete_task_activity,
    get_task_activity,
    list_task_activities,
)
from atlas.repositories.task_dependencies import (
    add_task_dependency,
    list_task_dependencies,
    remove_task_dependency,
)
from atlas.repositories.tasks import create_task, delete_task, get_task, list_tasks, update_task
from atlas.repositories.users import (
    create_user,
    get_or_create_user,
    get_user,
    get_user_by_username,
    list_users,
    update_user_password,
)

__all__ = [
    "add_project_assignee",
    "add_task_assignee",
    "add_task_dependency",
    "create_project",
    "create_task",
    "create_task_activity",
    "create_user",
    "delete_project",
    "delete_task",
    "delete_task_activity",
    "get_or_create_user",
    "get_project",
    "get_task",
    "get_task_activity",
    "get_user",
    "get_user_by_username",
    "list_project_assignees",
    "list_projects",
    "list_task_activities",
    "list_task_assignees",
    "list_task_dependencies",
    "list_tasks",
    "list_users",
    "remove_project_assignee",
    "remove_task_assignee",
    "remove_task_dependency",
    "update_project",
    "update_task",
    "update_user_password",
]
