from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, HTTPException, Response, UploadFile

from codenexus.api.handlers.languages import list_languages_handler
from codenexus.api.handlers.session import get_session_handler, get_state_handler, start_run_handler
from codenexus.api.schemas import (
    ChangeLanguageRequest,
    EditCodeRequest,
    ErrorResponse,
    HealthResponse,
    ListLanguagesResponse,
    SessionResponse,
    SetStdinRequest,
    StartRunResponse,
    StateResponse,
)
from codenexus.domain.errors import DomainValidationError
from codenexus.services.session import EditorSession


def build_app(
    *,
    session: EditorSession,
    run_id: str,
    service_mode: str = "stub",
    on_shutdown: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    logger = logging.getLogger("runtime")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        del app
        logger.info("control api started", extra={"service": "api", "run_id": run_id})

        yield

        session.orchestrator.invalidate(reason="shutdown")
        if on_shutdown is not None:
            await on_shutdown()

        logger.info("control api stopped", extra={"service": "api", "run_id": run_id})

    app = FastAPI(title="codenexus", version="0.1.0", lifespan=lifespan)

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service_mode=service_mode)

    @app.get("/languages", response_model=ListLanguagesResponse, tags=["Editor"])
    async def list_languages() -> ListLanguagesResponse:
        return await list_languages_handler()

    @app.get("/session", response_model=SessionResponse, tags=["Editor"])
    async def get_session() -> SessionResponse:
        return await get_session_handler(session=session)

    @app.put("/session/language", response_model=SessionResponse, tags=["Editor"])
    async def change_language(request: ChangeLanguageRequest) -> SessionResponse:
        session.change_language(request.language)
        return await get_session_handler(session=session)

    @app.put("/session/code", response_model=SessionResponse, tags=["Editor"])
    async def edit_code(request: EditCodeRequest) -> SessionResponse:
        session.edit_code(request.code)
        return await get_session_handler(session=session)

    @app.put("/session/stdin", response_model=SessionResponse, tags=["Editor"])
    async def set_stdin(request: SetStdinRequest) -> SessionResponse:
        session.set_stdin(request.stdin)
        return await get_session_handler(session=session)

    @app.post(
        "/session/upload/code",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Editor"],
    )
    async def upload_code(file: UploadFile = File(...)) -> SessionResponse:
        payload = await file.read()
        try:
            session.upload_code(filename=file.filename or "", payload=payload)
        except DomainValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return await get_session_handler(session=session)

    @app.post(
        "/session/upload/stdin",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Editor"],
    )
    async def upload_stdin(file: UploadFile = File(...)) -> SessionResponse:
        payload = await file.read()
        try:
            session.upload_stdin(filename=file.filename or "input.txt", payload=payload)
        except DomainValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return await get_session_handler(session=session)

    @app.get("/session/download", tags=["Editor"])
    async def download_code() -> Response:
        filename, payload = session.export_code()
        return Response(
            content=payload,
            media_type="text/plain",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post(
        "/session/run",
        status_code=202,
        response_model=StartRunResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Runs"],
    )
    async def start_run() -> StartRunResponse:
        try:
            return await start_run_handler(session=session)
        except DomainValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.get("/state", response_model=StateResponse, tags=["Runs"])
    async def get_state() -> StateResponse:
        return await get_state_handler(session=session)

    return app
