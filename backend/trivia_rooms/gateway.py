from __future__ import annotations
from typing import Any, Dict, Protocol

import socketio


def room_name(code: str) -> str:
    return f"session:{code}"


class Gateway(Protocol):
    """Outbound side of the transport: per-session channels plus direct sends."""

    async def broadcast(self, code: str, event: str, payload: Dict[str, Any]) -> None: ...

    async def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None: ...

    async def subscribe(self, connection_id: str, code: str) -> None: ...

    async def unsubscribe(self, connection_id: str, code: str) -> None: ...

    async def close(self, code: str) -> None: ...


class SocketIOGateway:
    """Gateway over Socket.IO rooms, one room per session code."""

    def __init__(self, sio: socketio.AsyncServer):
        self.sio = sio

    async def broadcast(self, code: str, event: str, payload: Dict[str, Any]) -> None:
        await self.sio.emit(event, payload, room=room_name(code))

    async def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
        await self.sio.emit(event, payload, to=connection_id)

    async def subscribe(self, connection_id: str, code: str) -> None:
        await self.sio.enter_room(connection_id, room_name(code))

    async def unsubscribe(self, connection_id: str, code: str) -> None:
        await self.sio.leave_room(connection_id, room_name(code))

    async def close(self, code: str) -> None:
        await self.sio.close_room(room_name(code))
