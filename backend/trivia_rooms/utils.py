from __future__ import annotations
import socket
from typing import Optional

from .config import GameSettings


def local_ip() -> Optional[str]:
    """Best-effort LAN IPv4 address of this machine, or None."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # no packet is sent; connect() on UDP only picks the outbound interface
        s.connect(("10.255.255.255", 1))
        addr = s.getsockname()[0]
    except OSError:
        return None
    finally:
        s.close()
    if not addr or addr.startswith("127."):
        return None
    return addr


def share_link(settings: GameSettings, code: str) -> str:
    base = settings.public_base_url or f"http://{local_ip() or 'localhost'}:{settings.port}"
    return f"{base}/?room={code}"
