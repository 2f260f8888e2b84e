"""Shared fixtures: a hand-cranked clock, a recording gateway and a canned question source."""
import asyncio
import itertools
import json
from collections import defaultdict

import pytest

from trivia_rooms.config import GameSettings
from trivia_rooms.errors import QuestionSourceError
from trivia_rooms.game import GameController
from trivia_rooms.models import Question
from trivia_rooms.registry import SessionRegistry


# ---------------------------------------------------------------------------
# Manual scheduler
# ---------------------------------------------------------------------------

class ManualTimer:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Clock that only moves when a test says so; timers fire in order during advance()."""

    def __init__(self, start=1000.0):
        self._now = start
        self.timers = []

    def now(self):
        return self._now

    def call_later(self, delay, callback):
        timer = ManualTimer(self._now + delay, callback)
        self.timers.append(timer)
        return timer

    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def skip(self, seconds):
        """Move the clock without running timers (a busy event loop)."""
        self._now += seconds

    async def advance(self, seconds):
        target = self._now + seconds
        while True:
            due = [t for t in self.pending() if t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._now = max(self._now, timer.when)
            timer.fired = True
            await timer.callback()
        self._now = target


# ---------------------------------------------------------------------------
# Recording gateway
# ---------------------------------------------------------------------------

class RecordingGateway:
    def __init__(self):
        self.messages = []  # (kind, target, event, payload)
        self.members = defaultdict(set)
        self.closed = []

    async def broadcast(self, code, event, payload):
        self.messages.append(("room", code, event, payload))

    async def send(self, connection_id, event, payload):
        self.messages.append(("to", connection_id, event, payload))

    async def subscribe(self, connection_id, code):
        self.members[code].add(connection_id)

    async def unsubscribe(self, connection_id, code):
        self.members[code].discard(connection_id)

    async def close(self, code):
        self.closed.append(code)
        self.members.pop(code, None)

    def broadcasts(self, event, code=None):
        return [p for kind, target, ev, p in self.messages
                if kind == "room" and ev == event and (code is None or target == code)]

    def sent_to(self, connection_id, event):
        return [p for kind, target, ev, p in self.messages
                if kind == "to" and ev == event and target == connection_id]

    def events(self):
        return [ev for _, _, ev, _ in self.messages]


# ---------------------------------------------------------------------------
# Question source
# ---------------------------------------------------------------------------

def make_questions(n):
    return [
        Question(
            prompt=f"Question {i + 1}?",
            correct_answer="right",
            incorrect_answers=["wrong", "nope", "never"],
            choices=["wrong", "right", "nope", "never"],
        )
        for i in range(n)
    ]


class StaticSource:
    def __init__(self, questions=None, error=None):
        self.questions = questions if questions is not None else make_questions(10)
        self.error = error
        self.calls = 0
        self.gate = None  # optional asyncio.Event to hold fetches open

    async def fetch(self, amount):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.questions[:amount]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def clock():
    return ManualScheduler()


@pytest.fixture()
def gateway():
    return RecordingGateway()


@pytest.fixture()
def registry():
    codes = itertools.chain(["ABC123"], (f"X{i:05d}" for i in itertools.count()))
    return SessionRegistry(code_factory=lambda: next(codes))


@pytest.fixture()
def source():
    return StaticSource()


@pytest.fixture()
def failing_source():
    return StaticSource(error=QuestionSourceError("provider down"))


@pytest.fixture()
def settings():
    return GameSettings(question_count=2, question_duration=15, base_points=500,
                        bonus_per_second=10, reveal_pause=2.0, final_pause=1.5)


@pytest.fixture()
def controller(registry, gateway, source, settings, clock):
    return GameController(registry, gateway, source, settings=settings, scheduler=clock,
                          link_builder=lambda code: f"http://test/?room={code}")


@pytest.fixture()
def questions():
    return make_questions


@pytest.fixture()
def gate():
    return asyncio.Event()


@pytest.fixture()
def write_qset(tmp_path):
    """Write a question bank file under tmp_path the way an operator would."""
    def write(name, records):
        qdir = tmp_path / "question_sets"
        qdir.mkdir(exist_ok=True)
        (qdir / f"{name}.json").write_text(json.dumps(records), encoding="utf-8")
        return str(tmp_path)
    return write
