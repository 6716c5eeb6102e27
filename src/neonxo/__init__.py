"""Neon tic-tac-toe package exposing game rules, the AI, and the web application."""

from .ai import EvaluationCache, MinimaxAI
from .game import Outcome, TicTacToeGame, evaluate, legal_moves
from .ui import app

__all__ = [
    "EvaluationCache",
    "MinimaxAI",
    "Outcome",
    "TicTacToeGame",
    "app",
    "evaluate",
    "legal_moves",
]
