from __future__ import annotations
import math
from typing import Dict, Iterable, List

from .models import Participant, Question, Session


def points_for(elapsed: float, duration: float, base_points: int, bonus_per_second: int) -> int:
    """Points for a correct answer given ``elapsed`` seconds after the question opened.

    base + whole seconds remaining * bonus; never below base.
    """
    elapsed = max(0.0, elapsed)
    remaining = max(0, math.floor(duration - elapsed))
    return base_points + remaining * bonus_per_second


def score_current_question(session: Session, question: Question, duration: float,
                           base_points: int, bonus_per_second: int) -> Dict[str, int]:
    """Apply scoring for the active question and return points awarded per connection id.

    Only current participants are scored; answers from connections that left are dropped.
    """
    awarded: Dict[str, int] = {}
    started = session.question_started_at
    if started is None:
        return awarded
    for cid, player in session.players.items():
        submitted = session.answers.get(cid)
        if submitted is None or submitted.answer != question.correct_answer:
            continue
        pts = points_for(submitted.received_at - started, duration, base_points, bonus_per_second)
        player.score += pts
        awarded[cid] = pts
    return awarded


def scoreboard(players: Iterable[Participant]) -> List[Dict]:
    return [{"name": p.name, "score": p.score} for p in players]


def rankings(players: Iterable[Participant]) -> List[Dict]:
    # Sort by: score desc, join order asc
    ordered = sorted(players, key=lambda p: (-(p.score or 0), p.seq))
    return scoreboard(ordered)
