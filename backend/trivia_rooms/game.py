from __future__ import annotations
import logging
from typing import Awaitable, Callable, Optional

from . import scoring
from .config import GameSettings
from .errors import QuestionSourceError
from .gateway import Gateway
from .models import Phase, Session, SubmittedAnswer
from .question_source import QuestionSource
from .registry import SessionRegistry
from .schemas import (
    AnswerRejectedOut,
    ErrorOut,
    GameOverOut,
    GameStartedOut,
    PlayerListOut,
    QuestionOut,
    RevealOut,
    RoomCreatedOut,
    SessionInfoOut,
)
from .timers import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_HOST_NAME = "Host"
DEFAULT_PLAYER_NAME = "Player"


class GameController:
    """Session state machine: WAITING -> QUESTION_ACTIVE <-> REVEAL -> FINISHED.

    Every handler does its state mutations before its first ``await``, so the
    event loop never observes a half-updated session. The only slow await is
    the question fetch in :meth:`start`.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        gateway: Gateway,
        source: QuestionSource,
        settings: Optional[GameSettings] = None,
        scheduler: Optional[Scheduler] = None,
        link_builder: Optional[Callable[[str], str]] = None,
    ):
        self.registry = registry
        self.gateway = gateway
        self.source = source
        self.settings = settings or GameSettings()
        self.scheduler = scheduler or AsyncioScheduler()
        self.link_builder = link_builder or (lambda code: f"/?room={code}")

    # --- lobby ---
    async def create(self, connection_id: str, name: Optional[str] = None, avatar: Optional[str] = None) -> Session:
        session = self.registry.create(connection_id, (name or "").strip() or DEFAULT_HOST_NAME, avatar or None)
        await self.gateway.subscribe(connection_id, session.code)
        created = RoomCreatedOut(code=session.code, link=self.link_builder(session.code))
        await self.gateway.send(connection_id, "room_created", created.model_dump(by_alias=True))
        await self._publish_players(session)
        return session

    async def join(self, connection_id: str, code: str, name: Optional[str] = None,
                   avatar: Optional[str] = None) -> Optional[Session]:
        session = self.registry.find(code)
        if not session:
            await self._error(connection_id, "Room not found")
            return None
        session.add_player(connection_id, (name or "").strip() or DEFAULT_PLAYER_NAME, avatar or None)
        logger.info("session %s: %s joined (%d players)", session.code, connection_id, len(session.players))
        await self.gateway.subscribe(connection_id, session.code)
        await self._publish_players(session)
        # Late joiners see the question already on screen
        if session.phase is Phase.QUESTION_ACTIVE:
            await self.gateway.send(connection_id, "question", self._question_payload(session))
        return session

    async def leave(self, connection_id: str, code: Optional[str] = None) -> None:
        """Drop a connection from one session, or from every session it is in."""
        if code is not None:
            found = self.registry.find(code)
            sessions = [found] if found and connection_id in found.players else []
        else:
            sessions = self.registry.sessions_for(connection_id)

        for session in sessions:
            session.players.pop(connection_id, None)
            session.answers.pop(connection_id, None)
            empty = not session.players
            if empty:
                self.registry.remove(session.code)
            logger.info("session %s: %s left (%d players)", session.code, connection_id, len(session.players))
            await self.gateway.unsubscribe(connection_id, session.code)
            if empty:
                await self.gateway.close(session.code)
            else:
                await self._publish_players(session)

    # --- game flow ---
    async def start(self, connection_id: str, code: str) -> bool:
        session = self.registry.find(code)
        if not session:
            return False
        if session.host_id != connection_id or session.phase is not Phase.WAITING or session.starting:
            logger.debug("session %s: start from %s ignored (phase=%s starting=%s)",
                         session.code, connection_id, session.phase.value, session.starting)
            return False

        session.starting = True
        try:
            questions = await self.source.fetch(self.settings.question_count)
        except QuestionSourceError as exc:
            logger.warning("session %s: failed fetching questions: %s", session.code, exc)
            questions = None
        finally:
            session.starting = False

        if self.registry.find(session.code) is not session:
            logger.info("session %s: removed while questions were loading", session.code)
            return False
        if not questions:
            await self.gateway.broadcast(session.code, "error_message",
                                         ErrorOut(message="Failed to fetch questions").model_dump())
            return False

        session.questions = list(questions)
        self._open_question(session, 0)
        logger.info("session %s: game started with %d questions", session.code, session.total)
        await self.gateway.broadcast(session.code, "game_started", GameStartedOut(total=session.total).model_dump())
        await self._publish_question(session)
        return True

    async def submit_answer(self, connection_id: str, code: str, answer: str) -> None:
        session = self.registry.find(code)
        if not session or session.phase is not Phase.QUESTION_ACTIVE or session.question_started_at is None:
            return
        if connection_id not in session.players:
            await self._error(connection_id, "You are not in this room")
            return
        now = self.scheduler.now()
        elapsed = now - session.question_started_at
        if elapsed > self.settings.question_duration:
            await self.gateway.send(connection_id, "answer_rejected", AnswerRejectedOut(reason="timeout").model_dump())
            return
        # accept first answer only
        if connection_id in session.answers:
            return
        session.answers[connection_id] = SubmittedAnswer(answer=answer, received_at=now)
        await self.gateway.send(connection_id, "answer_received", {})

    def describe(self, code: str) -> Optional[SessionInfoOut]:
        session = self.registry.find(code)
        if not session:
            return None
        return SessionInfoOut(
            code=session.code,
            phase=session.phase.value,
            players=session.player_list(),
            index=session.current_index,
            total=session.total,
        )

    # --- transitions ---
    def _open_question(self, session: Session, index: int) -> None:
        session.current_index = index
        session.answers = {}
        session.question_started_at = self.scheduler.now()
        session.phase = Phase.QUESTION_ACTIVE
        self._arm(session, self.settings.question_duration, self._end_question, "deadline")

    async def _end_question(self, session: Session) -> None:
        question = session.current_question
        if question is None or session.phase is not Phase.QUESTION_ACTIVE:
            return
        awarded = scoring.score_current_question(
            session, question, self.settings.question_duration,
            self.settings.base_points, self.settings.bonus_per_second,
        )
        board = scoring.scoreboard(session.players.values())
        session.answers = {}
        session.question_started_at = None
        session.phase = Phase.REVEAL
        last = session.current_index + 1 >= session.total
        pause = self.settings.final_pause if last else self.settings.reveal_pause
        self._arm(session, pause, self._after_reveal, "reveal")
        logger.info("session %s: question %d revealed, %d correct", session.code, session.current_index + 1, len(awarded))
        reveal = RevealOut(correct_answer=question.correct_answer, scoreboard=board)
        await self.gateway.broadcast(session.code, "reveal", reveal.model_dump(by_alias=True))

    async def _after_reveal(self, session: Session) -> None:
        if session.current_index + 1 >= session.total:
            await self._finish(session)
            return
        self._open_question(session, session.current_index + 1)
        await self._publish_question(session)

    async def _finish(self, session: Session) -> None:
        session.phase = Phase.FINISHED
        session.current_index = session.total
        ranked = scoring.rankings(session.players.values())
        self.registry.remove(session.code)
        logger.info("session %s: game over", session.code)
        await self.gateway.broadcast(session.code, "game_over", GameOverOut(rankings=ranked).model_dump())
        await self.gateway.close(session.code)

    # --- timers ---
    def _arm(self, session: Session, delay: float, action: Callable[[Session], Awaitable[None]], tag: str) -> None:
        """Replace the session's pending timer with one that runs ``action`` after ``delay``."""
        handle = None
        index = session.current_index

        async def fire() -> None:
            if self.registry.find(session.code) is not session or session.timer is not handle:
                logger.debug("[timer-abort] session=%s %s index=%d is stale", session.code, tag, index)
                return
            logger.debug("[timer-fire] session=%s %s index=%d", session.code, tag, index)
            session.release_timer()
            await action(session)

        handle = self.scheduler.call_later(delay, fire)
        session.set_timer(handle)
        logger.debug("[timer-set] session=%s %s index=%d delay=%ss", session.code, tag, index, delay)

    # --- outbound helpers ---
    def _question_payload(self, session: Session) -> dict:
        q = session.current_question
        duration = self.settings.question_duration
        elapsed = self.scheduler.now() - (session.question_started_at or self.scheduler.now())
        return QuestionOut(
            index=session.current_index + 1,
            total=session.total,
            question=q.prompt,
            choices=list(q.choices),
            duration=duration,
            remaining=max(0.0, float(duration) - max(0.0, elapsed)),
        ).model_dump()

    async def _publish_question(self, session: Session) -> None:
        await self.gateway.broadcast(session.code, "question", self._question_payload(session))

    async def _publish_players(self, session: Session) -> None:
        await self.gateway.broadcast(session.code, "player_list", PlayerListOut(players=session.player_list()).model_dump())

    async def _error(self, connection_id: str, message: str) -> None:
        await self.gateway.send(connection_id, "error_message", ErrorOut(message=message).model_dump())
