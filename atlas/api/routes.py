"""FastAPI HTTP API for Atlas."""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Literal, Optional, Union

import anthropic
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from atlas.api.dispatcher import dispatch
from atlas.assistant import run_assistant
from atlas.config import Settings, get_settings
from atlas.errors import ConfigurationError, build_error_payload
from atlas.storage.db import Database

logger = logging.getLogger(__name__)

router = APIRouter()


class ConversationMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: Union[str, list[dict[str, Any]]]


class AssistantRequest(BaseModel):
    conversation: list[ConversationMessage]


class AssistantResponse(BaseModel):
    status: str
    response: str


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/db")
async def unified_db(request: Request):
    """Single CRUD endpoint dispatching on ``{operation, entity, data}``."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(status_code=400, content=build_error_payload("Invalid request body", 400))

    async with request.app.state.database.session() as session:
        result = await dispatch(session, body)
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.get("/ai")
async def assistant_status(request: Request):
    configured = bool(request.app.state.settings.anthropic.api_key)
    message = "AI endpoint ready" if configured else "AI environment not configured"
    return {"status": "success", "response": message}


@router.post("/ai", response_model=AssistantResponse)
async def assistant(payload: AssistantRequest, request: Request):
    """Answer a conversation using the Atlas tools."""
    settings: Settings = request.app.state.settings
    conversation = [m.model_dump() for m in payload.conversation]
    try:
        async with request.app.state.database.session() as session:
            text = await run_assistant(session, conversation, settings=settings)
    except ConfigurationError as e:
        return JSONResponse(status_code=500, content={"status": "error", "message": e.message})
    except anthropic.APIError as e:
        logger.error("Model call failed: %s", e)
        return JSONResponse(status_code=502, content={"status": "error", "message": str(e)})
    return AssistantResponse(status="success", response=text)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the app. Settings and the database are resolved once, here."""
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.create_all()
        yield
        await database.dispose()

    app = FastAPI(
        title="Atlas API",
        description="Unified CRUD endpoint and AI assistant for Atlas project data",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app
