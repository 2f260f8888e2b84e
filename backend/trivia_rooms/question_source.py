"""Question providers.

Every provider returns fully normalized :class:`Question` records. Provider
text is passed through untouched (Open Trivia DB sends HTML entities);
decoding is left to the display side so the stored correct answer compares
equal to what clients send back.
"""
from __future__ import annotations
import logging
import random
from typing import Any, Dict, List, Optional, Protocol

import httpx

from . import storage
from .config import GameSettings
from .errors import QuestionSourceError
from .models import Question

logger = logging.getLogger(__name__)


class QuestionSource(Protocol):
    async def fetch(self, amount: int) -> List[Question]: ...


def normalize(record: Dict[str, Any], rng: Optional[random.Random] = None) -> Question:
    """Turn a provider record into a Question with a shuffled choice set."""
    try:
        prompt = record["question"]
        correct = record["correct_answer"]
        incorrect = list(record["incorrect_answers"])
    except (KeyError, TypeError) as exc:
        raise QuestionSourceError(f"Malformed question record: {exc}") from exc
    if not isinstance(prompt, str) or not isinstance(correct, str) or not all(isinstance(c, str) for c in incorrect):
        raise QuestionSourceError("Malformed question record: non-text field")
    choices = [correct, *incorrect]
    (rng or random).shuffle(choices)
    return Question(prompt=prompt, correct_answer=correct, incorrect_answers=incorrect, choices=choices)


class OpenTriviaSource:
    """Multiple-choice questions from the Open Trivia DB HTTP API."""

    def __init__(self, base_url: str = "https://opentdb.com", timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 rng: Optional[random.Random] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._rng = rng

    async def fetch(self, amount: int) -> List[Question]:
        params = {"amount": amount, "type": "multiple"}
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                         transport=self._transport) as client:
                res = await client.get("/api.php", params=params)
                res.raise_for_status()
                body = res.json()
        except httpx.HTTPError as exc:
            raise QuestionSourceError(f"Question provider request failed: {exc}") from exc
        except ValueError as exc:
            raise QuestionSourceError("Question provider returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise QuestionSourceError("Question provider returned an unexpected payload")
        # 0 = success; anything else (no results, rate limit, bad params) is a failure
        code = body.get("response_code", 0)
        if code != 0:
            raise QuestionSourceError(f"Question provider response_code={code}")
        results = body.get("results")
        if not isinstance(results, list) or len(results) < amount:
            raise QuestionSourceError("Question provider returned too few questions")
        return [normalize(r, self._rng) for r in results[:amount]]


class QuestionBankSource:
    """Questions from a named local question set (see :mod:`storage`)."""

    def __init__(self, name: str, data_dir: Optional[str] = None,
                 rng: Optional[random.Random] = None):
        self.name = name
        self.data_dir = data_dir
        self._rng = rng

    async def fetch(self, amount: int) -> List[Question]:
        try:
            records = storage.load_question_set(self.name, self.data_dir)
        except (OSError, ValueError) as exc:
            raise QuestionSourceError(f"Question set {self.name!r} is unreadable") from exc
        if records is None:
            raise QuestionSourceError(f"Question set {self.name!r} not found")
        if not isinstance(records, list) or not records:
            raise QuestionSourceError(f"Question set {self.name!r} is empty")
        rng = self._rng or random
        picked = rng.sample(records, min(amount, len(records)))
        return [normalize(r, self._rng) for r in picked]


def build_source(settings: GameSettings) -> QuestionSource:
    kind = settings.question_source
    if kind.startswith("bank:"):
        name = kind.split(":", 1)[1]
        logger.info("using local question set %r", name)
        return QuestionBankSource(name, settings.data_dir)
    if kind != "opentdb":
        logger.warning("unknown QUESTION_SOURCE %r, falling back to opentdb", kind)
    return OpenTriviaSource(settings.opentdb_url, settings.fetch_timeout)
