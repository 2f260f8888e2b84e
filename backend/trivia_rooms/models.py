from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class Phase(str, Enum):
    WAITING = "waiting"
    QUESTION_ACTIVE = "question_active"
    REVEAL = "reveal"
    FINISHED = "finished"


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    correct_answer: str
    incorrect_answers: List[str]
    choices: List[str]  # correct + incorrect, shuffled once at fetch time


class Participant(BaseModel):
    name: str
    score: int = 0
    avatar: Optional[str] = None
    seq: int = 0  # join order, breaks ranking ties


class SubmittedAnswer(BaseModel):
    answer: str
    received_at: float


class Session(BaseModel):
    code: str
    host_id: str
    players: Dict[str, Participant] = Field(default_factory=dict)  # connection id -> participant
    questions: List[Question] = Field(default_factory=list)
    current_index: int = -1
    question_started_at: Optional[float] = None
    answers: Dict[str, SubmittedAnswer] = Field(default_factory=dict)  # current question only
    phase: Phase = Phase.WAITING
    starting: bool = False  # question fetch in flight

    # Pending deadline / reveal-pause timer; at most one per session.
    _timer: Any = PrivateAttr(default=None)
    _join_seq: int = PrivateAttr(default=0)

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def timer(self) -> Any:
        return self._timer

    def set_timer(self, handle: Any) -> None:
        """Replace the pending timer, cancelling whatever was there before."""
        if self._timer is not None and self._timer is not handle:
            self._timer.cancel()
        self._timer = handle

    def cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def release_timer(self) -> None:
        # the timer has fired; nothing left to cancel
        self._timer = None

    def add_player(self, connection_id: str, name: str, avatar: Optional[str]) -> Participant:
        self._join_seq += 1
        player = Participant(name=name, avatar=avatar, seq=self._join_seq)
        self.players[connection_id] = player
        return player

    def player_list(self) -> List[Dict[str, Any]]:
        return [{"name": p.name, "score": p.score, "avatar": p.avatar} for p in self.players.values()]
