from __future__ import annotations
import logging

_CONSOLE_FMT = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)-24s | %(message)s",
    datefmt="%H:%M:%S",
)

_CONFIGURED = False


def setup_logging(level: str | int = logging.INFO) -> None:
    """Attach a console handler to the root logger. Safe to call more than once."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    _CONFIGURED = True

    root = logging.getLogger()
    root.setLevel(level)
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(_CONSOLE_FMT)
    root.addHandler(console)

    # engineio/socketio are chatty at INFO
    logging.getLogger("engineio").setLevel(logging.WARNING)
    logging.getLogger("socketio").setLevel(logging.WARNING)
