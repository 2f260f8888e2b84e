from __future__ import annotations
import logging
import secrets
import string
from typing import Callable, Dict, Iterator, List, Optional

from .models import Session

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: Optional[str]) -> str:
    return str(code or "").strip().upper()


class SessionRegistry:
    """Process-wide table of live sessions keyed by code.

    All mutations run synchronously inside a single event handler on the
    event loop, so no locking is needed.
    """

    def __init__(self, code_factory: Callable[[], str] = generate_code):
        self._sessions: Dict[str, Session] = {}
        self._code_factory = code_factory

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_code(code) in self._sessions

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def _unique_code(self) -> str:
        while True:
            code = normalize_code(self._code_factory())
            if code and code not in self._sessions:
                return code
            logger.debug("session code collision on %s, regenerating", code)

    def create(self, host_id: str, host_name: str, host_avatar: Optional[str] = None) -> Session:
        code = self._unique_code()
        session = Session(code=code, host_id=host_id)
        session.add_player(host_id, host_name, host_avatar)
        self._sessions[code] = session
        logger.info("session %s created by %s", code, host_id)
        return session

    def find(self, code: Optional[str]) -> Optional[Session]:
        return self._sessions.get(normalize_code(code))

    def remove(self, code: Optional[str]) -> Optional[Session]:
        session = self._sessions.pop(normalize_code(code), None)
        if session is None:
            return None
        session.cancel_timer()
        logger.info("session %s removed", session.code)
        return session

    def sessions_for(self, connection_id: str) -> List[Session]:
        return [s for s in self._sessions.values() if connection_id in s.players]

    def clear(self) -> None:
        for session in list(self._sessions.values()):
            session.cancel_timer()
        self._sessions.clear()
