"""Core rules for 3x3 tic-tac-toe: marks, outcomes and the game state holder."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"

HUMAN: Player = "X"
COMPUTER: Player = "O"
EMPTY = " "

BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Outcome(str, Enum):
    IN_PROGRESS = "in_progress"
    HUMAN_WINS = "human_wins"
    COMPUTER_WINS = "computer_wins"
    DRAW = "draw"

    @property
    def terminal(self) -> bool:
        return self is not Outcome.IN_PROGRESS


def winner_of(board: Sequence[str]) -> Optional[Player]:
    """Return the mark owning a completed line, if any."""
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return v
    return None


def evaluate(board: Sequence[str]) -> Outcome:
    """Classify a board. Shared by the session controller and the search."""
    winner = winner_of(board)
    if winner == HUMAN:
        return Outcome.HUMAN_WINS
    if winner == COMPUTER:
        return Outcome.COMPUTER_WINS
    if EMPTY not in board:
        return Outcome.DRAW
    return Outcome.IN_PROGRESS


def legal_moves(board: Sequence[str]) -> List[int]:
    """Indices of empty cells, ascending."""
    return [i for i, c in enumerate(board) if c == EMPTY]


def validate_board(board: Sequence[str]) -> None:
    """Reject boards no legal game could produce.

    The human moves first, so ``X`` may lead ``O`` by at most one mark and
    never trail it.
    """
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")
    for idx, cell in enumerate(board):
        if cell not in (HUMAN, COMPUTER, EMPTY):
            raise ValueError(f"Invalid mark {cell!r} at cell {idx}")
    imbalance = list(board).count(HUMAN) - list(board).count(COMPUTER)
    if imbalance not in (0, 1):
        raise ValueError(
            f"Mark counts out of balance: X leads O by {imbalance}"
        )


def other(player: Player) -> Player:
    return COMPUTER if player == HUMAN else HUMAN


@dataclass
class TicTacToeGame:
    # Server-internal: 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)
    current_player: Player = HUMAN

    # ---- API used by the session controller ----

    @property
    def outcome(self) -> Outcome:
        return evaluate(self.cells)

    @property
    def winner(self) -> Optional[Player]:
        return winner_of(self.cells)

    @property
    def finished(self) -> bool:
        return self.outcome.terminal

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return legal_moves(self.cells)

    def play_move(self, cell: int) -> None:
        """Place the current player's mark and pass the turn."""
        if self.finished:
            raise ValueError("Game already finished")
        if not 0 <= cell < BOARD_SIZE:
            raise ValueError(f"Cell {cell} is off the board")
        if self.cells[cell] != EMPTY:
            raise ValueError("Cell already occupied")
        self.cells[cell] = self.current_player
        self.current_player = other(self.current_player)

    def snapshot(self) -> List[str]:
        return list(self.cells)

    def clone(self) -> "TicTacToeGame":
        return TicTacToeGame(cells=self.snapshot(), current_player=self.current_player)
