"""Alpha-beta minimax with move ordering + an evaluation cache for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import math
import random

from .game import (
    BOARD_SIZE,
    COMPUTER,
    EMPTY,
    HUMAN,
    Outcome,
    Player,
    TicTacToeGame,
    evaluate,
    legal_moves,
    validate_board,
)

logger = logging.getLogger(__name__)

WIN_SCORE = 10
DEFAULT_CACHE_CAPACITY = 1000

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)
OPENING_MOVES: Tuple[int, ...] = (CENTER,) + CORNERS

# Cache entry flags
EXACT, LOWER, UPPER = 0, 1, 2

CacheKey = Tuple[str, bool]


@dataclass
class CacheEntry:
    # Stored relative to the cached position, so the same entry is valid
    # whatever depth the position is reached at.
    score: int
    flag: int


@dataclass
class EvaluationCache:
    """Bounded memo of search results keyed by (board, maximizing).

    There is no eviction policy: once ``capacity`` entries are held the
    whole cache is dropped before the next insert.
    """

    capacity: int = DEFAULT_CACHE_CAPACITY
    _entries: Dict[CacheKey, CacheEntry] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: CacheKey, entry: CacheEntry) -> None:
        if len(self._entries) >= self.capacity:
            logger.debug("Evaluation cache full (%d entries), clearing", len(self))
            self._entries.clear()
        self._entries[key] = entry

    def clear(self) -> None:
        self._entries.clear()


def board_key(board: Sequence[str]) -> str:
    return "".join(board)


def _move_priority(move: int) -> int:
    if move == CENTER:
        return 0
    if move in CORNERS:
        return 1
    return 2


def order_moves(moves: Sequence[int]) -> List[int]:
    """Center first, then corners, then edges; ascending within each group."""
    return sorted(moves, key=_move_priority)


def _to_node(score: int, depth: int) -> int:
    if score > 0:
        return score + depth
    if score < 0:
        return score - depth
    return 0


def _from_node(score: int, depth: int) -> int:
    if score > 0:
        return score - depth
    if score < 0:
        return score + depth
    return 0


@dataclass
class MinimaxAI:
    """Unbeatable computer opponent.

    The computer always plays ``O`` and maximizes; the human plays ``X``.
    Scores are ``10 - depth`` for a computer win, ``depth - 10`` for a
    human win and ``0`` for a draw, so faster wins and slower losses are
    preferred.

    Public surface:
      - choose_move(board) -> cell index or None when the board is full
      - choose(game) -> same, for a game whose turn belongs to the computer
    """

    cache: EvaluationCache = field(default_factory=EvaluationCache)
    rng: random.Random = field(default_factory=random.Random, repr=False)
    player: Player = field(default=COMPUTER, init=False)

    # ---- public API ----

    def choose(self, game: TicTacToeGame) -> Optional[int]:
        if game.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        return self.choose_move(game.cells)

    def choose_move(self, board: Sequence[str]) -> Optional[int]:
        validate_board(board)
        # The caller's board is never touched; all place/undo happens here.
        work = list(board)
        moves = legal_moves(work)
        if not moves:
            return None

        if len(moves) == BOARD_SIZE:
            move = self.rng.choice(OPENING_MOVES)
            logger.debug("Opening move %d", move)
            return move

        win = self.find_critical_move(work, COMPUTER)
        if win is not None:
            logger.debug("Winning move %d", win)
            return win

        block = self.find_critical_move(work, HUMAN)
        if block is not None:
            logger.debug("Blocking move %d", block)
            return block

        best_score = -math.inf
        best_move = moves[0]
        for move, score in self.score_moves(work).items():
            if score > best_score:
                best_score, best_move = score, move
        logger.debug(
            "Search move %d (score %s, cache %d entries)",
            best_move,
            best_score,
            len(self.cache),
        )
        return best_move

    def score_moves(self, board: Sequence[str]) -> Dict[int, int]:
        """Full-window search score for each legal computer move, by index."""
        work = list(board)
        scores: Dict[int, int] = {}
        for move in legal_moves(work):
            work[move] = COMPUTER
            scores[move] = self.search(work, 0, False)
            work[move] = EMPTY
        return scores

    @staticmethod
    def find_critical_move(board: List[str], player: Player) -> Optional[int]:
        """First empty cell (ascending) that completes a line for ``player``."""
        target = (
            Outcome.COMPUTER_WINS if player == COMPUTER else Outcome.HUMAN_WINS
        )
        for move in legal_moves(board):
            board[move] = player
            won = evaluate(board) is target
            board[move] = EMPTY
            if won:
                return move
        return None

    # ---- core search ----

    def search(
        self,
        board: List[str],
        depth: int,
        maximizing: bool,
        alpha: float = -math.inf,
        beta: float = math.inf,
    ) -> int:
        outcome = evaluate(board)
        if outcome is Outcome.COMPUTER_WINS:
            return WIN_SCORE - depth
        if outcome is Outcome.HUMAN_WINS:
            return depth - WIN_SCORE
        if outcome is Outcome.DRAW:
            return 0

        key = (board_key(board), maximizing)

        # Cache probe
        hit = self.cache.get(key)
        if hit is not None:
            cached = _from_node(hit.score, depth)
            if hit.flag == EXACT:
                return cached
            if hit.flag == LOWER:
                alpha = max(alpha, cached)
            elif hit.flag == UPPER:
                beta = min(beta, cached)
            if alpha >= beta:
                return cached
        alpha_orig, beta_orig = alpha, beta

        moves = order_moves(legal_moves(board))

        if maximizing:
            value = -math.inf
            for move in moves:
                board[move] = COMPUTER
                score = self.search(board, depth + 1, False, alpha, beta)
                board[move] = EMPTY
                value = max(value, score)
                alpha = max(alpha, value)
                if beta <= alpha:
                    break
        else:
            value = math.inf
            for move in moves:
                board[move] = HUMAN
                score = self.search(board, depth + 1, True, alpha, beta)
                board[move] = EMPTY
                value = min(value, score)
                beta = min(beta, value)
                if beta <= alpha:
                    break

        if value <= alpha_orig:
            flag = UPPER
        elif value >= beta_orig:
            flag = LOWER
        else:
            flag = EXACT
        result = int(value)
        self.cache.put(key, CacheEntry(score=_to_node(result, depth), flag=flag))
        return result
