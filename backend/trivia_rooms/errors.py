from __future__ import annotations


class TriviaError(Exception):
    """Base class for errors raised by the trivia core."""


class UserError(TriviaError):
    """A client sent something we cannot act on (bad code, bad payload).

    Always reported back to the offending connection only.
    """


class QuestionSourceError(TriviaError):
    """The question provider could not deliver a batch."""
