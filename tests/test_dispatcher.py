"""Tests for the unified {operation, entity, data} dispatcher."""

import pytest

from atlas.api.dispatcher import ROUTES, Envelope, dispatch, resolve_route
from atlas.errors import NotImplementedYet, UnsupportedOperation


async def call(session, operation, entity, data=None):
    return await dispatch(session, {"operation": operation, "entity": entity, "data": data or {}})


class TestResolveRoute:
    def test_read_with_id_resolves_to_get(self):
        route = resolve_route(Envelope(operation="read", entity="task", data={"id": "t1"}))
        assert route is ROUTES[("task", "get")]

    def test_read_without_id_resolves_to_list(self):
        route = resolve_route(Envelope(operation="read", entity="task", data={"projectId": "p1"}))
        assert route is ROUTES[("task", "list")]

    def test_read_with_id_on_list_only_entity(self):
        route = resolve_route(Envelope(operation="read", entity="taskAssignee", data={"id": "a1"}))
        assert route is ROUTES[("taskAssignee", "list")]

    def test_session_is_not_implemented(self):
        with pytest.raises(NotImplementedYet):
            resolve_route(Envelope(operation="read", entity="session", data={}))

    def test_unsupported_pair(self):
        with pytest.raises(UnsupportedOperation):
            resolve_route(Envelope(operation="update", entity="user", data={}))


class TestDispatchScenario:
    @pytest.mark.asyncio
    async def test_user_project_task_flow(self, session):
        """getOrCreate a user, give them a project and a task, then read it all back."""
        result = await call(session, "getOrCreate", "user", {"username": "alice", "passwordHash": "h"})
        assert result.status_code == 200
        assert result.body["status"] == "success"
        alice = result.body["data"]
        assert alice["username"] == "alice"
        assert "passwordHash" not in alice
        assert "password_hash" not in alice

        result = await call(session, "create", "project", {"name": "P", "ownerId": alice["id"]})
        assert result.status_code == 200
        project = result.body["data"]
        assert project["ownerId"] == alice["id"]
        assert project["createdAt"] == project["updatedAt"]

        result = await call(session, "create", "task", {"title": "T", "projectId": project["id"]})
        assert result.status_code == 200
        task = result.body["data"]
        assert task["status"] == "todo"
        assert task["deadline"]

        result = await call(session, "read", "task", {"projectId": project["id"]})
        assert [t["id"] for t in result.body["data"]] == [task["id"]]

        result = await call(session, "read", "task", {"id": task["id"]})
        assert result.body["data"]["title"] == "T"

        result = await call(session, "update", "task", {"id": task["id"], "status": "done"})
        assert result.body["data"]["status"] == "done"
        assert result.body["data"]["title"] == "T"

        result = await call(session, "delete", "task", {"id": task["id"]})
        assert result.status_code == 200
        result = await call(session, "read", "task", {"id": task["id"]})
        assert result.body["data"] == {}

    @pytest.mark.asyncio
    async def test_get_or_create_returns_same_user(self, session):
        first = await call(session, "getOrCreate", "user", {"username": "bob", "password": "pw"})
        second = await call(session, "getOrCreate", "user", {"username": "bob", "password": "other"})
        assert first.body["data"]["id"] == second.body["data"]["id"]

    @pytest.mark.asyncio
    async def test_get_or_create_existing_user_by_username_only(self, session):
        created = await call(session, "getOrCreate", "user", {"username": "alice", "passwordHash": "h"})
        found = await call(session, "getOrCreate", "user", {"username": "alice"})
        assert found.status_code == 200
        assert found.body["data"]["id"] == created.body["data"]["id"]

    @pytest.mark.asyncio
    async def test_get_or_create_new_user_without_secret(self, session):
        result = await call(session, "getOrCreate", "user", {"username": "nobody"})
        assert result.status_code == 400
        assert "passwordHash or password" in result.body["error"]["message"]

    @pytest.mark.asyncio
    async def test_empty_project_list(self, session):
        result = await call(session, "read", "project")
        assert result.status_code == 200
        assert result.body == {"status": "success", "data": []}

    @pytest.mark.asyncio
    async def test_read_missing_id_returns_empty_object(self, session):
        result = await call(session, "read", "project", {"id": "missing"})
        assert result.status_code == 200
        assert result.body["data"] == {}

    @pytest.mark.asyncio
    async def test_caller_supplied_id_is_ignored(self, session):
        user = await call(session, "getOrCreate", "user", {"username": "dan", "passwordHash": "h"})
        result = await call(
            session, "create", "project", {"id": "mine", "name": "P", "ownerId": user.body["data"]["id"]}
        )
        assert result.body["data"]["id"] != "mine"


class TestDispatchErrors:
    @pytest.mark.asyncio
    async def test_unknown_operation_is_invalid_body(self, session):
        result = await call(session, "frobnicate", "project")
        assert result.status_code == 400
        assert result.body == {
            "status": "error",
            "error": {"message": "Invalid request body", "code": 400},
        }

    @pytest.mark.asyncio
    async def test_non_object_body(self, session):
        result = await dispatch(session, ["not", "an", "object"])
        assert result.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_data_is_invalid_body(self, session):
        result = await dispatch(session, {"operation": "read", "entity": "project"})
        assert result.status_code == 400

    @pytest.mark.asyncio
    async def test_unsupported_operation(self, session):
        result = await call(session, "update", "user", {"id": "u1"})
        assert result.status_code == 400
        assert result.body["error"]["code"] == 400
        assert "not supported" in result.body["error"]["message"]

    @pytest.mark.asyncio
    async def test_session_entity_is_501(self, session):
        result = await call(session, "create", "session", {"userId": "u1"})
        assert result.status_code == 501
        assert result.body["error"]["code"] == 501

    @pytest.mark.asyncio
    async def test_missing_required_field(self, session):
        result = await call(session, "create", "project", {"ownerId": "u1"})
        assert result.status_code == 400
        assert result.body["error"]["message"].startswith("Invalid data")

    @pytest.mark.asyncio
    async def test_out_of_range_deadline_is_400(self, session):
        user = await call(session, "getOrCreate", "user", {"username": "erin", "passwordHash": "h"})
        project = await call(session, "create", "project", {"name": "P", "ownerId": user.body["data"]["id"]})
        result = await call(
            session, "create", "task", {"title": "T", "projectId": project.body["data"]["id"], "deadline": 1e20}
        )
        assert result.status_code == 400
        assert "deadline out of range" in result.body["error"]["message"]

    @pytest.mark.asyncio
    async def test_foreign_key_failure_is_500(self, session):
        result = await call(session, "create", "project", {"name": "P", "ownerId": "nobody"})
        assert result.status_code == 500
        assert result.body["status"] == "error"
        assert result.body["error"]["code"] == 500

    @pytest.mark.asyncio
    async def test_session_usable_after_failure(self, session):
        await call(session, "create", "project", {"name": "P", "ownerId": "nobody"})
        result = await call(session, "read", "project")
        assert result.status_code == 200
