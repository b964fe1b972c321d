"""User-Agent pool used to vary marketplace requests."""

from __future__ import annotations

import random
from pathlib import Path
from threading import Lock
from typing import Iterable, List

DEFAULT_USER_AGENTS = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 11_0 like Mac OS X) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/43.0.1355.1599 Mobile Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_14_0) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/75.0.3770.100 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/18.2 Safari/605.1.15",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8 Pro Build/AP2A.240905.003; ) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/130.0.6723.107 Mobile Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/126.0.0.0 Safari/537.36",
)


class UserAgentPool:
    """Return random user agents from the configured pool."""

    def __init__(self, user_agents: Iterable[str] | None = None, file_path: Path | None = None) -> None:
        self._lock = Lock()
        self._uas: List[str] = []
        if user_agents:
            self._uas.extend(ua.strip() for ua in user_agents if ua.strip())
        if file_path and file_path.exists():
            lines = file_path.read_text(encoding="utf-8").splitlines()
            self._uas.extend(line.strip() for line in lines if line.strip())
        if not self._uas:
            self._uas = list(DEFAULT_USER_AGENTS)

    def get(self) -> str:
        with self._lock:
            return random.choice(self._uas)

    def refresh(self, user_agents: Iterable[str]) -> None:
        cleaned = [ua.strip() for ua in user_agents if ua.strip()]
        with self._lock:
            self._uas = cleaned or list(DEFAULT_USER_AGENTS)


__all__ = ["DEFAULT_USER_AGENTS", "UserAgentPool"]
