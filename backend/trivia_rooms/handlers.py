from __future__ import annotations
import logging
from typing import Any, Optional, Type, TypeVar

import socketio
from pydantic import BaseModel, ValidationError

from .errors import UserError
from .game import GameController
from .schemas import CreateRoomIn, ErrorOut, JoinRoomIn, LeaveRoomIn, StartGameIn, SubmitAnswerIn

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse_payload(model: Type[M], data: Any) -> M:
    """Validate an inbound event payload, raising UserError on a bad shape."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise UserError("Invalid payload")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise UserError(f"Invalid payload: {fields}") from exc


class ConnectionHandler:
    """Maps Socket.IO connection events onto the game controller."""

    def __init__(self, controller: GameController):
        self.controller = controller

    async def _reject(self, sid: str, exc: UserError) -> None:
        logger.debug("rejected message from %s: %s", sid, exc)
        await self.controller.gateway.send(sid, "error_message", ErrorOut(message=str(exc)).model_dump())

    async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
        logger.info("client connected %s", sid)

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        logger.info("client disconnected %s", sid)
        # remove from any games
        await self.controller.leave(sid)

    async def on_create_room(self, sid: str, data: Any = None) -> None:
        try:
            msg = parse_payload(CreateRoomIn, data)
        except UserError as exc:
            await self._reject(sid, exc)
            return
        await self.controller.create(sid, msg.name, msg.avatar)

    async def on_join_room(self, sid: str, data: Any = None) -> None:
        try:
            msg = parse_payload(JoinRoomIn, data)
        except UserError as exc:
            await self._reject(sid, exc)
            return
        await self.controller.join(sid, msg.code, msg.name, msg.avatar)

    async def on_start_game(self, sid: str, data: Any = None) -> None:
        try:
            msg = parse_payload(StartGameIn, data)
        except UserError:
            # host-only action; anything malformed is ignored like a non-host start
            return
        await self.controller.start(sid, msg.code)

    async def on_submit_answer(self, sid: str, data: Any = None) -> None:
        try:
            msg = parse_payload(SubmitAnswerIn, data)
        except UserError as exc:
            await self._reject(sid, exc)
            return
        await self.controller.submit_answer(sid, msg.code, msg.answer)

    async def on_leave_room(self, sid: str, data: Any = None) -> None:
        try:
            msg = parse_payload(LeaveRoomIn, data)
        except UserError as exc:
            await self._reject(sid, exc)
            return
        await self.controller.leave(sid, msg.code)

    def register(self, sio: socketio.AsyncServer, namespace: str = "/") -> None:
        sio.on("connect", self.on_connect, namespace=namespace)
        sio.on("disconnect", self.on_disconnect, namespace=namespace)
        sio.on("create_room", self.on_create_room, namespace=namespace)
        sio.on("join_room", self.on_join_room, namespace=namespace)
        sio.on("start_game", self.on_start_game, namespace=namespace)
        sio.on("submit_answer", self.on_submit_answer, namespace=namespace)
        sio.on("leave_room", self.on_leave_room, namespace=namespace)
