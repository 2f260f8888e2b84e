from __future__ import annotations
import json
import os
from typing import Dict, List, Optional, Tuple


def get_data_dir(base: Optional[str] = None) -> str:
    base = base or os.getenv("QUIZ_DATA_DIR")
    if not base:
        base = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "data"))
    os.makedirs(os.path.join(base, "question_sets"), exist_ok=True)
    return base


# --- Question set (bank) helpers ---
def _sanitized_name(name: str) -> str:
    # allow alnum, dash, underscore only; lowercased
    safe = ''.join(ch for ch in name if ch.isalnum() or ch in ('-', '_')).strip('-_').lower()
    return safe or 'untitled'


def _qset_path(name: str, base: Optional[str] = None) -> str:
    return os.path.join(get_data_dir(base), "question_sets", f"{_sanitized_name(name)}.json")


def load_question_set(name: str, base: Optional[str] = None) -> Optional[List[Dict]]:
    """Return the raw records of a question set, or None if it does not exist.

    Raises ``ValueError`` if the file is not valid JSON.
    """
    path = _qset_path(name, base)
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def list_question_sets(base: Optional[str] = None) -> List[Tuple[str, int]]:
    qdir = os.path.join(get_data_dir(base), "question_sets")
    out: List[Tuple[str, int]] = []
    for name in os.listdir(qdir):
        if not name.endswith('.json'):
            continue
        try:
            with open(os.path.join(qdir, name), 'r', encoding='utf-8') as f:
                arr = json.load(f)
                count = len(arr) if isinstance(arr, list) else 0
        except (OSError, ValueError):
            count = 0
        out.append((name[:-5], count))
    # sort by name
    out.sort(key=lambda t: t[0])
    return out
