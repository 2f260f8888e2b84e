from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Inbound (client -> server) ---
class _Inbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _RoomScoped(_Inbound):
    code: str = Field(alias="roomId", min_length=1)

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("room code is blank")
        return v


class CreateRoomIn(_Inbound):
    name: Optional[str] = None
    avatar: Optional[str] = None


class JoinRoomIn(_RoomScoped):
    name: Optional[str] = None
    avatar: Optional[str] = None


class StartGameIn(_RoomScoped):
    pass


class SubmitAnswerIn(_RoomScoped):
    answer: str


class LeaveRoomIn(_RoomScoped):
    pass


# --- Outbound (server -> client) ---
class _Outbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RoomCreatedOut(_Outbound):
    code: str = Field(serialization_alias="roomId")
    link: str


class ErrorOut(_Outbound):
    message: str


class PlayerOut(_Outbound):
    name: str
    score: int
    avatar: Optional[str] = None


class PlayerListOut(_Outbound):
    players: List[PlayerOut]


class GameStartedOut(_Outbound):
    total: int


class QuestionOut(_Outbound):
    index: int  # 1-based
    total: int
    question: str
    choices: List[str]
    duration: int
    remaining: float


class AnswerRejectedOut(_Outbound):
    reason: str


class ScoreOut(_Outbound):
    name: str
    score: int


class RevealOut(_Outbound):
    correct_answer: str = Field(serialization_alias="correctAnswer")
    scoreboard: List[ScoreOut]


class GameOverOut(_Outbound):
    rankings: List[ScoreOut]


class SessionInfoOut(_Outbound):
    code: str
    phase: str
    players: List[PlayerOut]
    index: int
    total: int
