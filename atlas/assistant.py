"""Project-management assistant driven by Claude tool use."""

import logging
import time
from typing import Any, Optional

import anthropic
from sqlalchemy.ext.asyncio import AsyncSession

from atlas.config import Settings, get_settings
from atlas.errors import ConfigurationError
from atlas.tools import anthropic_tools, call_tool

logger = logging.getLogger(__name__)

ASSISTANT_SYSTEM = """You are an expert project management assistant that helps a project manager stay on top of their work.
You have tools for querying and updating users, projects, tasks, assignments, task activity and task dependencies.

Use the tools to fetch what is relevant, then answer with a brief, focused summary: key facts, next steps and anything urgent.
Keep narration short. Combine results from several tools when that gives a better overview, but favour clarity over completeness.
Ids are opaque strings; never invent them. Look records up first when you only know a name."""


def _content_to_params(block: Any) -> Optional[dict]:
    """Rebuild an assistant content block as a request param."""
    if block.type == "text":
        return {"type": "text", "text": block.text}
    if block.type == "tool_use":
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    return None


def _response_text(response: Any) -> str:
    return "\n".join(block.text for block in response.content if block.type == "text").strip()


def _split_conversation(conversation: list[dict]) -> tuple[str, list[dict]]:
    """Pull system messages out of the conversation into the system prompt."""
    system_parts = [ASSISTANT_SYSTEM]
    messages = []
    for message in conversation:
        if message["role"] == "system":
            system_parts.append(str(message["content"]))
        else:
            messages.append({"role": message["role"], "content": message["content"]})
    return "\n\n".join(system_parts), messages


async def run_assistant(
    session: AsyncSession,
    conversation: list[dict],
    settings: Optional[Settings] = None,
    client: Optional[anthropic.AsyncAnthropic] = None,
) -> str:
    """Answer the last turn of ``conversation``, calling tools as needed.

    Successful tool calls are committed as they happen so a later failing
    call does not undo them.
    """
    settings = settings or get_settings()
    if client is None:
        if not settings.anthropic.api_key:
            raise ConfigurationError("AI environment not configured")
        client = anthropic.AsyncAnthropic(api_key=settings.anthropic.api_key)

    system, messages = _split_conversation(conversation)
    tools = anthropic_tools()
    start_time = time.time()
    response = None

    for round_no in range(1, settings.anthropic.max_tool_rounds + 1):
        response = await client.messages.create(
            model=settings.anthropic.model,
            max_tokens=settings.anthropic.max_tokens,
            system=system,
            tools=tools,
            messages=messages,
        )
        if response.stop_reason != "tool_use":
            break

        messages.append({
            "role": "assistant",
            "content": [p for p in map(_content_to_params, response.content) if p is not None],
        })
        results = []
        for block in response.content:
            if block.type != "tool_use":
                continue
            outcome = await call_tool(session, block.name, block.input)
            if not outcome.is_error:
                await session.commit()
            logger.info("Tool %s (round %d)%s", block.name, round_no, " failed" if outcome.is_error else "")
            results.append({
                "type": "tool_result",
                "tool_use_id": block.id,
                "content": outcome.content,
                "is_error": outcome.is_error,
            })
        messages.append({"role": "user", "content": results})
    else:
        logger.warning("Assistant stopped after %d tool rounds", settings.anthropic.max_tool_rounds)

    latency_ms = int((time.time() - start_time) * 1000)
    logger.info("Assistant answered in %d ms", latency_ms)

    text = _response_text(response) if response is not None else ""
    if not text and response is not None and response.stop_reason == "tool_use":
        return "I ran out of tool calls before finishing. Please narrow the request."
    return text
