"""Win-count stores backing the leaderboard."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 20

Score = Tuple[str, int]


class WinStoreError(RuntimeError):
    """The win-count store could not be read or written."""


def normalize_username(username: str) -> str:
    name = username.strip()
    if not name:
        raise ValueError("Username cannot be empty")
    if len(name) > MAX_USERNAME_LENGTH:
        raise ValueError(
            f"Username must be at most {MAX_USERNAME_LENGTH} characters"
        )
    return name


def rank_scores(wins: Dict[str, int]) -> List[Score]:
    """Most wins first; ties broken by username."""
    return sorted(wins.items(), key=lambda item: (-item[1], item[0]))


class WinStore:
    """Interface of the leaderboard backend.

    Implementations raise :class:`WinStoreError` when the backend is
    unavailable; callers treat that as transient.
    """

    def list_scores(self) -> List[Score]:
        raise NotImplementedError

    def get_wins(self, username: str) -> int:
        raise NotImplementedError

    def record_win(self, username: str) -> None:
        raise NotImplementedError


class InMemoryWinStore(WinStore):
    def __init__(self) -> None:
        self._wins: Dict[str, int] = {}
        self._lock = threading.Lock()

    def list_scores(self) -> List[Score]:
        with self._lock:
            return rank_scores(self._wins)

    def get_wins(self, username: str) -> int:
        name = normalize_username(username)
        with self._lock:
            return self._wins.get(name, 0)

    def record_win(self, username: str) -> None:
        name = normalize_username(username)
        with self._lock:
            self._wins[name] = self._wins.get(name, 0) + 1
            logger.debug("Recorded win for %s (total %d)", name, self._wins[name])


class JsonFileWinStore(WinStore):
    """Persists ``{username: wins}`` as a JSON object on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, int]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise WinStoreError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise WinStoreError(f"{self.path} does not hold a JSON object")
        try:
            return {str(name): int(wins) for name, wins in data.items()}
        except (TypeError, ValueError) as exc:
            raise WinStoreError(f"Malformed win count in {self.path}") from exc

    def _save(self, wins: Dict[str, int]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(wins, indent=2, sort_keys=True), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise WinStoreError(f"Cannot write {self.path}: {exc}") from exc

    def list_scores(self) -> List[Score]:
        with self._lock:
            return rank_scores(self._load())

    def get_wins(self, username: str) -> int:
        name = normalize_username(username)
        with self._lock:
            return self._load().get(name, 0)

    def record_win(self, username: str) -> None:
        name = normalize_username(username)
        with self._lock:
            wins = self._load()
            wins[name] = wins.get(name, 0) + 1
            self._save(wins)
        logger.debug("Recorded win for %s in %s", name, self.path)
