from __future__ import annotations
import logging
from typing import Optional

import socketio
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from . import storage
from .config import GameSettings
from .game import GameController
from .gateway import SocketIOGateway
from .handlers import ConnectionHandler
from .logging_config import setup_logging
from .question_source import QuestionSource, build_source
from .registry import SessionRegistry
from .schemas import SessionInfoOut
from .utils import share_link

logger = logging.getLogger(__name__)


def create_app(settings: Optional[GameSettings] = None, source: Optional[QuestionSource] = None,
               registry: Optional[SessionRegistry] = None):
    """Build the FastAPI app, the Socket.IO server and the ASGI app that serves both."""
    settings = settings or GameSettings.from_env()
    registry = registry or SessionRegistry()

    # --- FastAPI app ---
    app = FastAPI(title="Trivia Rooms API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Socket.IO server (ASGI) ---
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins="*" if settings.cors_origins == ["*"] else settings.cors_origins,
    )
    controller = GameController(
        registry=registry,
        gateway=SocketIOGateway(sio),
        source=source or build_source(settings),
        settings=settings,
        link_builder=lambda code: share_link(settings, code),
    )
    ConnectionHandler(controller).register(sio)

    @app.get("/health")
    async def health():
        return {"status": "ok", "sessions": len(registry)}

    @app.get("/api/session/{code}", response_model=SessionInfoOut)
    async def get_session(code: str):
        info = controller.describe(code)
        if not info:
            raise HTTPException(404, "Session not found")
        return info

    @app.get("/api/question_sets")
    async def question_sets():
        items = storage.list_question_sets(settings.data_dir)
        return {"items": [{"name": n, "count": c} for n, c in items]}

    app.state.settings = settings
    app.state.controller = controller
    app.state.sio = sio

    # Compose ASGI app so that both HTTP and Socket.IO share the same server
    asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
    return app, asgi_app


def run() -> None:
    settings = GameSettings.from_env()
    setup_logging(settings.log_level)
    _, asgi_app = create_app(settings)
    logger.info("server listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(asgi_app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
