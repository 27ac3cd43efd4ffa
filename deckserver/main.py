from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from slideshow import (
    AlreadyRunningError,
    DeckController,
    DeckError,
    EmptyDeckNameError,
    MalformedHeaderError,
    NotRunningError,
    ProcessLauncher,
    SubprocessLauncher,
)

from . import __version__ as APP_VERSION
from . import decks, schemas, streams
from .config import ServerConfig

logger = logging.getLogger(__name__)

STOP_COMMAND = "stop"
UNPROCESSABLE_CONTENT = 422


def _status_for(exc: DeckError) -> int:
    if isinstance(exc, EmptyDeckNameError):
        return status.HTTP_406_NOT_ACCEPTABLE
    if isinstance(exc, (AlreadyRunningError, NotRunningError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, MalformedHeaderError):
        return UNPROCESSABLE_CONTENT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _requester(request: Request) -> str:
    if request.client is None:
        return "-"
    return f"{request.client.host}:{request.client.port}"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _errors(*codes: int) -> Dict[int, Dict[str, Any]]:
    """OpenAPI description of the {"error": ...} bodies a route can return."""

    return {code: {"model": schemas.ErrorResponse} for code in codes}


def get_controller(request: Request) -> DeckController:
    return request.app.state.controller


def get_config(request: Request) -> ServerConfig:
    return request.app.state.config


def create_app(
    config: Optional[ServerConfig] = None,
    *,
    launcher: Optional[ProcessLauncher] = None,
    controller: Optional[DeckController] = None,
) -> FastAPI:
    """Build the application.

    ``launcher`` and ``controller`` are injectable so the tests can run
    without spawning real viewer processes.  There is no module level
    app; serve it with ``python -m deckserver`` or
    ``uvicorn --factory deckserver.main:create_app``.

    Raises :class:`ValueError` for an unusable configuration.
    """

    config = config or ServerConfig.from_env()
    config.validate()
    if controller is None:
        launcher = launcher or SubprocessLauncher(cwd=config.deck_dir)
        controller = DeckController(launcher, config=config.controller_config())

    app = FastAPI(
        title="sex",
        description="Slide execution: remote control for deck presentations",
        version=APP_VERSION,
    )
    app.state.config = config
    app.state.controller = controller

    @app.exception_handler(DeckError)
    async def deck_error_handler(request: Request, exc: DeckError) -> JSONResponse:
        logger.warning("%s %s", _requester(request), exc)
        return _error(_status_for(exc), str(exc))

    @app.exception_handler(OSError)
    async def os_error_handler(request: Request, exc: OSError) -> JSONResponse:
        logger.error("%s %s", _requester(request), exc)
        if isinstance(exc, FileNotFoundError):
            return _error(status.HTTP_404_NOT_FOUND, str(exc))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    def _deck_command(
        request: Request,
        controller: DeckController,
        name: str,
        cmd: Optional[str],
    ):
        logger.info("%s %s %r %r", _requester(request), request.method, name, cmd)
        if not cmd:
            return _error(status.HTTP_400_BAD_REQUEST, "deck: need a command")
        if cmd == STOP_COMMAND:
            stopped = controller.stop()
            return schemas.DeckStopResponse(stop=str(stopped.pid))
        started = controller.start(decks.require_name(name), cmd)
        return schemas.DeckStartResponse(
            deckpid=str(started.pid),
            deck=started.deck,
            duration=started.duration,
        )

    deck_command_errors = _errors(
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_406_NOT_ACCEPTABLE,
        status.HTTP_409_CONFLICT,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    @app.get(
        "/deck",
        response_model=schemas.DeckList,
        responses=_errors(status.HTTP_500_INTERNAL_SERVER_ERROR),
    )
    def list_decks(request: Request, config: ServerConfig = Depends(get_config)):
        logger.info("%s list decks", _requester(request))
        return schemas.DeckList(decks=decks.list_decks(config.deck_dir, config.file_pattern))

    @app.post("/deck", responses=deck_command_errors)
    def control_active_deck(
        request: Request,
        cmd: Optional[str] = None,
        controller: DeckController = Depends(get_controller),
    ):
        return _deck_command(request, controller, "", cmd)

    @app.post("/deck/{name}", responses=deck_command_errors)
    def control_deck(
        name: str,
        request: Request,
        cmd: Optional[str] = None,
        controller: DeckController = Depends(get_controller),
    ):
        return _deck_command(request, controller, name, cmd)

    @app.delete("/deck", responses=_errors(status.HTTP_406_NOT_ACCEPTABLE))
    def remove_unnamed_deck(request: Request):
        logger.warning("%s delete error: specify a name", _requester(request))
        return _error(status.HTTP_406_NOT_ACCEPTABLE, "deck delete: specify a name")

    @app.delete(
        "/deck/{name}",
        response_model=schemas.RemoveResponse,
        responses=_errors(status.HTTP_404_NOT_FOUND, status.HTTP_406_NOT_ACCEPTABLE),
    )
    def remove_deck(name: str, request: Request, config: ServerConfig = Depends(get_config)):
        target = decks.remove_deck(config.deck_dir, decks.require_name(name, "deck delete: specify a name"))
        logger.info("%s remove %s", _requester(request), target.name)
        return schemas.RemoveResponse(remove=target.name)

    @app.api_route(
        "/upload",
        methods=["POST", "PUT"],
        response_model=schemas.UploadResponse,
        responses=_errors(status.HTTP_406_NOT_ACCEPTABLE, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )
    async def upload_deck(
        request: Request,
        deck: Optional[str] = Header(default=None),
        config: ServerConfig = Depends(get_config),
    ):
        name = decks.require_name(deck, "upload: no deckpath")
        target, size = await run_in_threadpool(
            decks.write_deck, config.deck_dir, name, streams.body_chunks(request)
        )
        logger.info("%s write: %r, %d bytes", _requester(request), target.name, size)
        return schemas.UploadResponse(upload=target.name)

    @app.post(
        "/table",
        response_model=schemas.TableResponse,
        responses=_errors(
            status.HTTP_406_NOT_ACCEPTABLE,
            UNPROCESSABLE_CONTENT,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        ),
    )
    async def make_table_deck(
        request: Request,
        deck: Optional[str] = Header(default=None),
        config: ServerConfig = Depends(get_config),
    ):
        name = decks.require_name(deck, "table: no deckpath")
        lines = streams.split_lines(streams.body_chunks(request))
        target, rows = await run_in_threadpool(decks.write_table, config.deck_dir, name, lines)
        logger.info("%s table %s (%d rows)", _requester(request), target.name, rows)
        return schemas.TableResponse(table=target.name)

    @app.post(
        "/media",
        response_model=schemas.MediaResponse,
        responses=_errors(
            status.HTTP_406_NOT_ACCEPTABLE,
            status.HTTP_409_CONFLICT,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        ),
    )
    def play_media(
        request: Request,
        media: Optional[str] = Header(default=None),
        controller: DeckController = Depends(get_controller),
    ):
        logger.info("%s media: running %s", _requester(request), media)
        started = controller.play_media(decks.require_name(media, "media: need a media file"))
        return schemas.MediaResponse(deckpid=str(started.pid), media=started.media)

    @app.get("/health", response_model=schemas.HealthResponse)
    def health_check(controller: DeckController = Depends(get_controller)):
        state = controller.state
        return schemas.HealthResponse(
            status="ok",
            version=APP_VERSION,
            running=state.running,
            deckpid=None if state.active_pid is None else str(state.active_pid),
        )

    return app

