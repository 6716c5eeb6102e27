"""Shared helpers for the Neon tic-tac-toe test suite."""

from __future__ import annotations

from typing import List

import pytest

from neonxo import ui
from neonxo.leaderboard import InMemoryWinStore


def board_from(text: str) -> List[str]:
    """Build a board from a 9-char string using ``.`` for empty cells."""
    assert len(text) == 9
    return [" " if ch == "." else ch for ch in text]


class PinnedRandom:
    """Stand-in random source that always picks the first candidate."""

    def choice(self, seq):
        return seq[0]


@pytest.fixture(autouse=True)
def fresh_store(monkeypatch):
    store = InMemoryWinStore()
    monkeypatch.setattr(ui, "WIN_STORE", store)
    ui.SESSIONS.clear()
    return store


class ScriptedAI:
    """Plays the first empty cell from a fixed preference list."""

    def __init__(self, preferences):
        self.preferences = preferences

    def choose_move(self, board):
        for cell in self.preferences:
            if board[cell] == " ":
                return cell
        return None
