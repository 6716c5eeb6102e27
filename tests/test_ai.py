"""Tests for the minimax AI."""

from itertools import combinations
import random

import pytest

from neonxo.ai import (
    EXACT,
    OPENING_MOVES,
    CacheEntry,
    EvaluationCache,
    MinimaxAI,
    order_moves,
)
from neonxo.game import (
    WINNING_LINES,
    Outcome,
    TicTacToeGame,
    evaluate,
    legal_moves,
    winner_of,
)

from conftest import PinnedRandom, board_from


def _computer_to_move_boards(max_marks=9):
    """Every reachable, undecided board where the computer (O) moves next."""
    seen = set()
    found = []
    frontier = [tuple(" " * 9)]
    while frontier:
        board = frontier.pop()
        if board in seen:
            continue
        seen.add(board)
        if evaluate(board) is not Outcome.IN_PROGRESS:
            continue
        marks = 9 - board.count(" ")
        to_move = "X" if board.count("X") == board.count("O") else "O"
        if to_move == "O":
            found.append(list(board))
        if marks >= max_marks:
            continue
        for move in legal_moves(board):
            child = list(board)
            child[move] = to_move
            frontier.append(tuple(child))
    return sorted(found)


def _assert_never_loses(ai, board):
    assert evaluate(board) is not Outcome.HUMAN_WINS
    if evaluate(board).terminal:
        return
    move = ai.choose_move(board)
    assert move is not None
    assert board[move] == " "
    after = list(board)
    after[move] = "O"
    outcome = evaluate(after)
    assert outcome is not Outcome.HUMAN_WINS
    if outcome.terminal:
        return
    for reply in legal_moves(after):
        child = list(after)
        child[reply] = "X"
        _assert_never_loses(ai, child)


def test_never_loses_when_human_opens():
    ai = MinimaxAI()
    for first in range(9):
        board = [" "] * 9
        board[first] = "X"
        _assert_never_loses(ai, board)


@pytest.mark.parametrize("opening", OPENING_MOVES)
def test_never_loses_when_computer_opens(opening):
    ai = MinimaxAI()
    board = [" "] * 9
    board[opening] = "O"
    for reply in legal_moves(board):
        child = list(board)
        child[reply] = "X"
        _assert_never_loses(ai, child)


@pytest.mark.parametrize("line", WINNING_LINES)
def test_takes_immediate_win_on_every_line(line):
    a, b, c = line
    others = [i for i in range(9) if i not in line]
    for human_cells in combinations(others, 3):
        board = [" "] * 9
        board[a] = board[b] = "O"
        for idx in human_cells:
            board[idx] = "X"
        if winner_of(board) is None:
            break
    else:
        pytest.fail("no legal setup found")

    assert MinimaxAI().choose_move(board) == c


@pytest.mark.parametrize("line", WINNING_LINES)
def test_blocks_immediate_loss_on_every_line(line):
    a, b, c = line
    board = [" "] * 9
    board[a] = board[b] = "X"
    board[next(i for i in range(9) if i not in line)] = "O"

    assert MinimaxAI().choose_move(board) == c


def test_prefers_win_over_block():
    # O can win at 5; X threatens 2.
    board = board_from("XX.OO.X..")
    assert MinimaxAI().choose_move(board) == 5


def test_answers_corner_opening_with_center():
    assert MinimaxAI().choose_move(board_from("X........")) == 4


def test_defends_opposite_corners_with_an_edge():
    # Taking a corner here loses to a fork.
    move = MinimaxAI().choose_move(board_from("X...O...X"))
    assert move in (1, 3, 5, 7)


def test_full_board_has_no_move():
    assert MinimaxAI().choose_move(board_from("XOXXOOOXX")) is None


def test_opening_draws_from_strategic_cells():
    for seed in range(20):
        ai = MinimaxAI(rng=random.Random(seed))
        assert ai.choose_move([" "] * 9) in OPENING_MOVES


def test_opening_can_be_pinned():
    ai = MinimaxAI(rng=PinnedRandom())
    assert ai.choose_move([" "] * 9) == 4


def test_choose_move_leaves_caller_board_untouched():
    board = board_from("X...O...X")
    before = list(board)
    MinimaxAI().choose_move(board)
    assert board == before


def test_choose_move_rejects_malformed_board():
    ai = MinimaxAI()
    with pytest.raises(ValueError):
        ai.choose_move([" "] * 8)
    with pytest.raises(ValueError):
        ai.choose_move(board_from("OO......."))


def test_choose_requires_computer_turn():
    with pytest.raises(ValueError, match="turn"):
        MinimaxAI().choose(TicTacToeGame())


def test_choose_uses_game_board():
    game = TicTacToeGame()
    game.play_move(0)
    assert MinimaxAI().choose(game) == 4


def test_deterministic_away_from_opening():
    ai = MinimaxAI()
    for board in _computer_to_move_boards(max_marks=5):
        assert ai.choose_move(board) == ai.choose_move(board)


def test_cache_is_transparent():
    warm = MinimaxAI()
    for board in _computer_to_move_boards(max_marks=3):
        move = warm.choose_move(board)
        scores = warm.score_moves(board)
        cold = MinimaxAI()
        assert cold.choose_move(board) == move
        assert cold.score_moves(board) == scores
        warm.cache.clear()
        assert warm.choose_move(board) == move
        assert warm.score_moves(board) == scores


def test_tiny_cache_gives_same_moves():
    tiny = MinimaxAI(cache=EvaluationCache(capacity=3))
    roomy = MinimaxAI()
    for board in _computer_to_move_boards(max_marks=3):
        assert tiny.choose_move(board) == roomy.choose_move(board)
    assert len(tiny.cache) <= 3


def test_cache_clears_when_full():
    cache = EvaluationCache(capacity=2)
    cache.put(("a", True), CacheEntry(score=1, flag=EXACT))
    cache.put(("b", True), CacheEntry(score=2, flag=EXACT))
    assert len(cache) == 2
    cache.put(("c", False), CacheEntry(score=3, flag=EXACT))
    assert len(cache) == 1
    assert cache.get(("a", True)) is None
    assert cache.get(("c", False)).score == 3


def test_search_stays_within_default_capacity():
    ai = MinimaxAI()
    for board in _computer_to_move_boards(max_marks=3):
        ai.choose_move(board)
        assert len(ai.cache) <= 1000


def test_search_scores_terminal_boards_by_depth():
    ai = MinimaxAI()
    assert ai.search(board_from("OOOXX.X.."), 3, True) == 7
    assert ai.search(board_from("XXXOO...."), 3, False) == -7
    assert ai.search(board_from("XOXXOOOXX"), 5, True) == 0


def test_search_prefers_faster_win():
    ai = MinimaxAI()
    scores = ai.score_moves(board_from("XX.OO.X.."))
    assert scores[5] == 10
    assert max(scores.values()) == scores[5]
    assert all(-10 <= score <= 10 for score in scores.values())


def test_search_restores_board():
    ai = MinimaxAI()
    board = board_from("X...O....")
    ai.search(board, 0, False)
    assert board == board_from("X...O....")


def test_order_moves_center_corners_edges():
    assert order_moves(range(9)) == [4, 0, 2, 6, 8, 1, 3, 5, 7]
    assert order_moves([1, 2, 7, 8]) == [2, 8, 1, 7]


def _perfect_human_move(ai, board):
    best = None
    best_score = None
    for move in legal_moves(board):
        board[move] = "X"
        score = ai.search(board, 0, True)
        board[move] = " "
        if best_score is None or score < best_score:
            best, best_score = move, score
    return best


def _play_out(ai, board, to_move):
    while not evaluate(board).terminal:
        if to_move == "O":
            move = ai.choose_move(board)
            board[move] = "O"
            to_move = "X"
        else:
            board[_perfect_human_move(ai, board)] = "X"
            to_move = "O"
    return evaluate(board)


def test_computer_opening_at_center_then_corner_reply():
    ai = MinimaxAI(rng=PinnedRandom())
    board = [" "] * 9
    board[ai.choose_move(board)] = "O"
    assert board[4] == "O"
    board[0] = "X"

    reply = ai.choose_move(board)
    board[reply] = "O"
    assert ai.search(board, 0, False) >= 0
    assert _play_out(ai, board, "X") is Outcome.DRAW


def test_optimal_play_ends_in_draw():
    ai = MinimaxAI()
    assert _play_out(ai, [" "] * 9, "X") is Outcome.DRAW
