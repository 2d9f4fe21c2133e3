"""Tests for the language-model tool registry."""

import json

import pytest

from atlas.tools import TOOLS, TOOLS_BY_NAME, anthropic_tools, call_tool

from tests.conftest import make_project, make_task, make_user


class TestToolDefinitions:
    def test_names_are_unique(self):
        assert len(TOOLS_BY_NAME) == len(TOOLS)

    def test_covers_every_entity(self):
        names = set(TOOLS_BY_NAME)
        for expected in (
            "create_user",
            "get_or_create_user",
            "create_project",
            "list_tasks",
            "add_task_dependency",
            "add_project_assignee",
            "add_task_assignee",
            "list_task_activities",
        ):
            assert expected in names

    def test_definitions_are_anthropic_shaped(self):
        for definition in anthropic_tools():
            assert set(definition) == {"name", "description", "input_schema"}
            assert definition["input_schema"]["type"] == "object"
            assert definition["description"]

    def test_schema_uses_camel_case(self):
        schema = TOOLS_BY_NAME["create_task"].definition()["input_schema"]
        assert "projectId" in schema["properties"]
        assert "llmContext" in schema["properties"]
        assert set(schema["required"]) == {"title", "projectId"}


class TestCallTool:
    @pytest.mark.asyncio
    async def test_get_or_create_user(self, session):
        result = await call_tool(session, "get_or_create_user", {"username": "alice", "password": "pw"})
        assert not result.is_error
        data = json.loads(result.content)
        assert data["username"] == "alice"
        assert "passwordHash" not in data

    @pytest.mark.asyncio
    async def test_list_tasks_for_project(self, session):
        user = await make_user(session)
        project = await make_project(session, user)
        await make_task(session, project, title="Write docs")

        result = await call_tool(session, "list_tasks", {"projectId": project.id})
        assert [t["title"] for t in json.loads(result.content)] == ["Write docs"]

    @pytest.mark.asyncio
    async def test_get_missing_record(self, session):
        result = await call_tool(session, "get_project", {"id": "missing"})
        assert not result.is_error
        assert json.loads(result.content) == {}

    @pytest.mark.asyncio
    async def test_unknown_tool(self, session):
        result = await call_tool(session, "drop_tables", {})
        assert result.is_error
        assert "Unknown tool" in json.loads(result.content)["error"]

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, session):
        result = await call_tool(session, "create_project", {"name": "No owner"})
        assert result.is_error
        assert json.loads(result.content)["error"].startswith("Invalid data")

    @pytest.mark.asyncio
    async def test_out_of_range_deadline(self, session):
        user = await make_user(session)
        project = await make_project(session, user)
        result = await call_tool(session, "create_task", {"title": "T", "projectId": project.id, "deadline": 1e20})
        assert result.is_error
        assert "deadline out of range" in json.loads(result.content)["error"]

    @pytest.mark.asyncio
    async def test_get_or_create_existing_user_by_username_only(self, session):
        alice = await make_user(session, "alice")
        result = await call_tool(session, "get_or_create_user", {"username": "alice"})
        assert not result.is_error
        assert json.loads(result.content)["id"] == alice.id

    @pytest.mark.asyncio
    async def test_create_user(self, session):
        result = await call_tool(session, "create_user", {"username": "dana", "password": "pw"})
        assert not result.is_error
        assert json.loads(result.content)["username"] == "dana"

    @pytest.mark.asyncio
    async def test_create_user_requires_secret(self, session):
        result = await call_tool(session, "create_user", {"username": "dana"})
        assert result.is_error

    @pytest.mark.asyncio
    async def test_application_error(self, session):
        result = await call_tool(session, "update_user_password", {"id": "missing", "password": "x"})
        assert result.is_error
        assert "not found" in json.loads(result.content)["error"]

    @pytest.mark.asyncio
    async def test_database_error_is_reported(self, session):
        result = await call_tool(session, "create_task", {"title": "Orphan", "projectId": "nope"})
        assert result.is_error
        assert json.loads(result.content)["error"]

    @pytest.mark.asyncio
    async def test_list_users_takes_no_arguments(self, session):
        await make_user(session, "zed")
        result = await call_tool(session, "list_users", None)
        assert [u["username"] for u in json.loads(result.content)] == ["zed"]
