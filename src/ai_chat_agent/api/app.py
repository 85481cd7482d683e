"""
FastAPI application factory.

Manages the lifecycle of:
- Database connection and message store
- Session manager (registry of live chat agents)
"""

import base64
import binascii
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from urllib.parse import quote

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from ..agent import Attachment, SessionManager, parse_strategy
from ..agent.strategies import StrategyConfig
from ..catalog import DEFAULT_MODEL, MODELS
from ..config import Settings, get_settings
from ..errors import InvalidStrategyError, NothingToRetryError, ProviderError
from ..llm import LLMFactory, llm_factory_for
from ..models import init_database
from ..store import MessageStore

logger = structlog.get_logger()

VERSION = "0.1.0"


class AttachmentIn(BaseModel):
    """A base64-encoded file sent with a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    media_type: str = Field(alias="mediaType")
    data: str


class ChatRequest(BaseModel):
    """Chat turn request."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1)
    session_id: str | None = Field(default=None, alias="sessionId")
    model: str | None = None
    strategy: dict[str, Any] | None = None
    attachments: list[AttachmentIn] = Field(default_factory=list)


class ActionRequest(BaseModel):
    """Session action request."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
    action: str
    branch_id: str | None = Field(default=None, alias="branchId")


def get_session_manager(request: Request) -> SessionManager:
    manager = getattr(request.app.state, "sessions", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return manager


def _parse_strategy(data: dict[str, Any] | None, settings: Settings) -> StrategyConfig | None:
    if data is None:
        return None
    try:
        return parse_strategy(data, min_window=settings.min_window_size)
    except InvalidStrategyError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _decode_attachments(items: list[AttachmentIn]) -> list[Attachment]:
    attachments = []
    for item in items:
        try:
            data = base64.b64decode(item.data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid attachment data: {item.filename}") from e
        attachments.append(Attachment(filename=item.filename, media_type=item.media_type, data=data))
    return attachments


def _content_disposition(filename: str) -> str:
    """Inline disposition header, RFC 5987 encoded when the name is not plain ASCII."""
    quoted = quote(filename)
    if quoted != filename:
        return f"inline; filename*=utf-8''{quoted}"
    return f'inline; filename="{filename}"'


def create_app(
    settings: Settings | None = None,
    llm_factory: LLMFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    factory = llm_factory or llm_factory_for(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        session_maker = await init_database(settings.database_url)
        logger.info("Database initialized", url=settings.database_url)

        app.state.store = MessageStore(session_maker)
        app.state.sessions = SessionManager(app.state.store, settings, factory)

        yield

        app.state.sessions = None
        await session_maker.kw["bind"].dispose()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="Conversation context management backend for an LLM chat UI",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Health & Models
    # ------------------------------------------------------------------ #
    @app.get("/api/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        sessions = getattr(request.app.state, "sessions", None)
        return {
            "status": "healthy",
            "version": VERSION,
            "llm_configured": bool(
                settings.deepseek_api_key
                or settings.openrouter_api_key
                or settings.anthropic_api_key
            ),
            "active_sessions": len(sessions.active_session_ids()) if sessions else 0,
        }

    @app.get("/api/models")
    async def list_models():
        """List the model registry."""
        return {
            "models": [m.to_dict() for m in MODELS],
            "default": settings.default_model or DEFAULT_MODEL.id,
        }

    # ------------------------------------------------------------------ #
    # Chat
    # ------------------------------------------------------------------ #
    @app.post("/api/chat")
    async def chat(
        body: ChatRequest,
        sessions: SessionManager = Depends(get_session_manager),
    ):
        """Run one chat turn."""
        strategy = _parse_strategy(body.strategy, settings)
        attachments = _decode_attachments(body.attachments)

        try:
            turn = await sessions.process_message(
                body.message,
                session_id=body.session_id,
                model=body.model,
                strategy=strategy,
                attachments=attachments,
            )
        except ProviderError as e:
            raise HTTPException(status_code=502, detail=f"Provider error ({e.model}): {e}") from e

        return turn.to_dict()

    @app.post("/api/chat/actions")
    async def chat_action(
        body: ActionRequest,
        sessions: SessionManager = Depends(get_session_manager),
    ):
        """Session actions: new chat, checkpoint, branch switch, retry."""
        if not body.session_id:
            raise HTTPException(status_code=400, detail="sessionId required")

        if body.action == "new-chat":
            sessions.new_chat(body.session_id)
            return {"success": True}

        if body.action == "checkpoint":
            branches = await sessions.checkpoint(body.session_id)
            return {"branches": [b.to_dict() for b in branches]}

        if body.action == "switch-branch":
            if not body.branch_id:
                raise HTTPException(status_code=400, detail="branchId required")
            result = await sessions.switch_branch(body.session_id, body.branch_id)
            if result is None:
                raise HTTPException(status_code=404, detail="Branch not found")
            return result.to_dict()

        if body.action == "retry":
            try:
                turn = await sessions.retry(body.session_id)
            except NothingToRetryError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            except ProviderError as e:
                raise HTTPException(status_code=502, detail=f"Provider error ({e.model}): {e}") from e
            return turn.to_dict()

        raise HTTPException(status_code=400, detail=f"Unknown action: {body.action}")

    @app.get("/api/chat/{session_id}")
    async def get_history(
        session_id: str,
        sessions: SessionManager = Depends(get_session_manager),
    ):
        """Persisted history of a session with attachment metadata."""
        messages = await sessions.store.list_messages_with_files(session_id)
        return {"messages": [m.to_dict() for m in messages]}

    @app.get("/api/chat/{session_id}/context")
    async def get_context(
        session_id: str,
        sessions: SessionManager = Depends(get_session_manager),
    ):
        """In-memory context state of a live session."""
        agent = sessions.get_agent(session_id)
        if agent is None:
            raise HTTPException(status_code=404, detail="Session not active")
        return agent.context_snapshot()

    # ------------------------------------------------------------------ #
    # Files
    # ------------------------------------------------------------------ #
    @app.get("/api/files/{file_id}")
    async def get_file(
        file_id: int,
        sessions: SessionManager = Depends(get_session_manager),
    ):
        """Serve a stored attachment."""
        stored = await sessions.store.get_file(file_id)
        if stored is None:
            raise HTTPException(status_code=404, detail="File not found")

        return Response(
            content=stored.data,
            media_type=stored.media_type,
            headers={
                "Content-Disposition": _content_disposition(stored.filename),
                "Cache-Control": "public, max-age=31536000, immutable",
            },
        )

    return app
