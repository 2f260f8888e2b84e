from __future__ import annotations
import os
from typing import List, Optional

from pydantic import BaseModel


class GameSettings(BaseModel):
    # Game rules
    question_count: int = 10
    question_duration: int = 15  # seconds
    base_points: int = 500
    bonus_per_second: int = 10
    reveal_pause: float = 2.0  # seconds between reveal and next question
    final_pause: float = 1.5  # seconds between last reveal and game over

    # Question provider
    question_source: str = "opentdb"  # opentdb | bank:<set name>
    opentdb_url: str = "https://opentdb.com"
    fetch_timeout: float = 10.0
    data_dir: Optional[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    public_base_url: Optional[str] = None
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "GameSettings":
        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            question_count=int(os.getenv("QUESTION_COUNT", "10")),
            question_duration=int(os.getenv("QUESTION_DURATION_SEC", "15")),
            base_points=int(os.getenv("BASE_POINTS", "500")),
            bonus_per_second=int(os.getenv("BONUS_PER_SECOND", "10")),
            reveal_pause=float(os.getenv("REVEAL_PAUSE_SEC", "2.0")),
            final_pause=float(os.getenv("FINAL_PAUSE_SEC", "1.5")),
            question_source=os.getenv("QUESTION_SOURCE", "opentdb"),
            opentdb_url=os.getenv("OPENTDB_URL", "https://opentdb.com").rstrip("/"),
            fetch_timeout=float(os.getenv("FETCH_TIMEOUT_SEC", "10")),
            data_dir=os.getenv("QUIZ_DATA_DIR") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            public_base_url=(os.getenv("PUBLIC_BASE_URL") or "").rstrip("/") or None,
            cors_origins=origins or ["*"],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
