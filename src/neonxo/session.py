"""Game session controller: human moves, paced computer turns, win recording."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .ai import MinimaxAI
from .config import DEFAULT_SPEED, SpeedPreset, get_speed
from .game import COMPUTER, EMPTY, HUMAN, Outcome, TicTacToeGame
from .leaderboard import WinStore, WinStoreError, normalize_username

logger = logging.getLogger(__name__)

STATUS_LABELS: Dict[Outcome, str] = {
    Outcome.IN_PROGRESS: "playing",
    Outcome.HUMAN_WINS: "won",
    Outcome.COMPUTER_WINS: "lost",
    Outcome.DRAW: "draw",
}


class IllegalMoveError(ValueError):
    """A request that the current session state does not allow."""


def _clean_username(username: str) -> str:
    if not username.strip():
        return ""
    return normalize_username(username)


@dataclass
class GameSession:
    """One human-vs-computer game plus the player's display name.

    The human plays ``X`` and always opens. At most one computer turn is
    in flight at a time (``ai_pending``).
    """

    store: WinStore
    ai: MinimaxAI = field(default_factory=MinimaxAI)
    username: str = ""
    speed: str = DEFAULT_SPEED
    game: TicTacToeGame = field(default_factory=TicTacToeGame)
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    ai_started_at: Optional[float] = None
    win_recorded: bool = False
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _unrecorded: List[str] = field(default_factory=list, repr=False)
    _generation: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        get_speed(self.speed)
        self.username = _clean_username(self.username)

    # ---- derived state ----

    @property
    def preset(self) -> SpeedPreset:
        return get_speed(self.speed)

    @property
    def status(self) -> str:
        return STATUS_LABELS[self.game.outcome]

    @property
    def thinking(self) -> bool:
        """True once a computer turn has run longer than the preset threshold."""
        if not self.ai_pending or self.ai_started_at is None:
            return False
        elapsed_ms = (self.clock() - self.ai_started_at) * 1000.0
        return elapsed_ms > self.preset.thinking_threshold_ms

    @property
    def unrecorded_wins(self) -> int:
        return len(self._unrecorded)

    # ---- commands ----

    def apply_human_move(self, cell: int) -> bool:
        """Play ``cell`` for the human.

        Returns True when a computer turn is now due; the caller is then
        expected to invoke :meth:`run_computer_turn`.
        """
        with self.lock:
            game = self.game
            if game.finished:
                raise IllegalMoveError("Game already finished")
            if self.ai_pending:
                raise IllegalMoveError("AI is completing its move")
            if game.current_player != HUMAN:
                raise IllegalMoveError("It is not your turn")
            if cell not in game.available_moves():
                raise IllegalMoveError("Move is not allowed on this turn")

            game.play_move(cell)
            self.move_log.append({"player": HUMAN, "cell": cell})
            self._after_move()

            due = not game.finished and game.current_player == COMPUTER
            if due:
                self.ai_pending = True
                self.ai_started_at = self.clock()
            return due

    def run_computer_turn(
        self, sleep: Callable[[float], None] = time.sleep
    ) -> Optional[int]:
        """Compute and apply the computer's move, padded to the preset delay."""
        with self.lock:
            if not self.ai_pending:
                return None
            generation = self._generation
            if self.game.finished or self.game.current_player != COMPUTER:
                self.ai_pending = False
                self.ai_started_at = None
                return None
            board = self.game.snapshot()

        try:
            started = time.perf_counter()
            move = self.ai.choose_move(board)
            elapsed = time.perf_counter() - started
            sleep(max(0.0, self.preset.ai_delay_ms / 1000.0 - elapsed))

            with self.lock:
                if generation != self._generation:
                    # Reset while the computer was thinking.
                    return None
                if move is None or self.game.cells[move] != EMPTY:
                    return None
                self.game.play_move(move)
                self.move_log.append({"player": COMPUTER, "cell": move})
                self._after_move()
                return move
        finally:
            with self.lock:
                if generation == self._generation:
                    self.ai_pending = False
                    self.ai_started_at = None

    def reset(self) -> None:
        with self.lock:
            self.game = TicTacToeGame()
            self.move_log = []
            self.ai_pending = False
            self.ai_started_at = None
            self.win_recorded = False
            self._generation += 1

    def set_username(self, username: str) -> None:
        name = _clean_username(username)
        with self.lock:
            self.username = name

    def set_speed(self, speed: str) -> None:
        get_speed(speed)
        with self.lock:
            self.speed = speed

    def retry_win_records(self) -> int:
        """Re-send wins the store rejected earlier. Returns how many remain."""
        with self.lock:
            while self._unrecorded:
                try:
                    self.store.record_win(self._unrecorded[0])
                except WinStoreError as exc:
                    logger.warning("Win store still unavailable: %s", exc)
                    break
                self._unrecorded.pop(0)
            return len(self._unrecorded)

    # ---- helpers ----

    def _after_move(self) -> None:
        outcome = self.game.outcome
        if not outcome.terminal:
            return
        logger.info(
            "Game over: %s (player %s)", outcome.value, self.username or "<anonymous>"
        )
        if outcome is Outcome.HUMAN_WINS and self.username and not self.win_recorded:
            self.win_recorded = True
            try:
                self.store.record_win(self.username)
            except WinStoreError as exc:
                logger.warning(
                    "Could not record win for %s, will retry: %s", self.username, exc
                )
                self._unrecorded.append(self.username)
