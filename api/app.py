"""FastAPI application exposing the chat pipeline over HTTP."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager

import pydantic
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from core.errors import ChatError
from core.models import ChatRequest
from service.chat_service import ChatService
from storage.vector_store import VectorStore

logger = logging.getLogger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def client_identity(request: Request) -> str:
    """Rate-limit identity: first forwarded address, else client-ip header."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    return first or request.headers.get("client-ip") or "unknown"


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the chat service on startup and close the store on shutdown."""
    if getattr(app.state, "chat_service", None) is None:
        app.state.chat_service = ChatService(VectorStore.from_settings())
        logger.info("Chat service initialized")

    yield

    store = app.state.chat_service.vector_store
    if store is not None:
        await store.close()
        logger.info("Vector store connection closed")


async def _chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    if exc.status_code < 500:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    logger.error("Chat request failed (%d): %s", exc.status_code, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Internal server error", "details": str(exc)},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)},
    )


def create_app(service: ChatService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Optional pre-built ChatService (built at startup if None)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Teachings RAG API",
        description="Retrieval-augmented chat over a corpus of spiritual teachings",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.chat_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ChatError, _chat_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.options("/api/chat")
    async def chat_preflight() -> dict:
        return {}

    @app.api_route("/api/chat", methods=["GET", "PUT", "PATCH", "DELETE"])
    async def chat_method_not_allowed() -> JSONResponse:
        return JSONResponse(status_code=405, content={"error": "Method Not Allowed"})

    @app.post("/api/chat")
    async def chat(
        request: Request,
        stream: str | None = None,
        chat_service: ChatService = Depends(get_chat_service),
    ):
        """Answer a chat message as JSON, or as server-sent events with ``?stream=1``."""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = {}
        if not isinstance(body, dict):
            body = {}

        try:
            chat_request = ChatRequest.model_validate(body)
        except pydantic.ValidationError as e:
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid request", "details": str(e)},
            )

        response = await chat_service.handle(chat_request, client_identity(request))

        if stream == "1":
            return StreamingResponse(
                chat_service.stream_events(response),
                media_type="text/event-stream",
                headers=SSE_HEADERS,
            )
        return JSONResponse(content=response.model_dump(by_alias=True, mode="json"))

    return app
