"""FastAPI-powered web UI for playing Neon tic-tac-toe in the browser."""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import EvaluationCache, MinimaxAI
from .config import SPEED_PRESETS, Settings, load_settings
from .leaderboard import (
    InMemoryWinStore,
    JsonFileWinStore,
    WinStore,
    WinStoreError,
    normalize_username,
)
from .session import GameSession, IllegalMoveError


def build_win_store(settings: Settings) -> WinStore:
    if settings.leaderboard_path:
        return JsonFileWinStore(settings.leaderboard_path)
    return InMemoryWinStore()


SETTINGS = load_settings()
WIN_STORE: WinStore = build_win_store(SETTINGS)
SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Neon Tic-Tac-Toe", description="Play an unbeatable AI in the browser")


def _check_speed(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in SPEED_PRESETS:
        raise ValueError(
            f"Unsupported AI speed {value!r}. "
            f"Choose one of {', '.join(SPEED_PRESETS)}."
        )
    return value


def _check_username(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return value
    return normalize_username(value)


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    username: Optional[str] = Field(default=None, description="Display name")
    speed: Optional[str] = Field(default=None, description="AI pacing preset")

    @field_validator("speed")
    @classmethod
    def ensure_supported_speed(cls, value: Optional[str]) -> Optional[str]:
        return _check_speed(value)

    @field_validator("username")
    @classmethod
    def ensure_valid_username(cls, value: Optional[str]) -> Optional[str]:
        return _check_username(value)


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell: int = Field(alias="cellIndex", ge=0, le=8)


class UsernameRequest(BaseModel):
    username: str = ""

    @field_validator("username")
    @classmethod
    def ensure_valid_username(cls, value: str) -> str:
        return _check_username(value) or ""


class SpeedRequest(BaseModel):
    speed: str

    @field_validator("speed")
    @classmethod
    def ensure_known_speed(cls, value: str) -> str:
        _check_speed(value)
        return value


def _create_session(username: Optional[str], speed: Optional[str]) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    ai = MinimaxAI(cache=EvaluationCache(capacity=SETTINGS.cache_capacity))
    session = GameSession(
        store=WIN_STORE,
        ai=ai,
        username=username or "",
        speed=speed or SETTINGS.default_speed,
    )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return
    session.run_computer_turn()


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        state: Dict[str, object] = {
            "id": game_id,
            "cells": [c if c in ("X", "O") else "" for c in game.cells],
            "currentPlayer": game.current_player,
            "status": session.status,
            "winner": game.winner,
            "availableMoves": game.available_moves(),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
            "thinking": session.thinking,
            "username": session.username,
            "speed": session.speed,
            "unrecordedWins": session.unrecorded_wins,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.username, request.speed)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    try:
        computer_due = session.apply_human_move(request.cell)
    except IllegalMoveError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if computer_due:
        background_tasks.add_task(_run_ai_turn, game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    session.reset()
    return _serialize_session(game_id, session)


@app.put("/api/game/{game_id}/username")
def update_username(game_id: str, request: UsernameRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    session.set_username(request.username)
    return _serialize_session(game_id, session)


@app.put("/api/game/{game_id}/speed")
def update_speed(game_id: str, request: SpeedRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    session.set_speed(request.speed)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/record-win")
def retry_record_win(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    session.retry_win_records()
    return _serialize_session(game_id, session)


@app.get("/api/leaderboard")
def get_leaderboard() -> List[Dict[str, object]]:
    try:
        scores = WIN_STORE.list_scores()
    except WinStoreError as exc:
        raise HTTPException(status_code=503, detail="Leaderboard unavailable") from exc
    return [{"username": name, "wins": wins} for name, wins in scores]


@app.get("/api/leaderboard/{username}")
def get_player_wins(username: str) -> Dict[str, object]:
    try:
        name = normalize_username(username)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    try:
        wins = WIN_STORE.get_wins(name)
    except WinStoreError as exc:
        raise HTTPException(status_code=503, detail="Leaderboard unavailable") from exc
    return {"username": name, "wins": wins}


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Neon Tic-Tac-Toe</title>
    <style>
      body { background: #0b0b1a; color: #e6e6ff; font-family: system-ui, sans-serif;
             display: flex; flex-direction: column; align-items: center; }
      #board { display: grid; grid-template-columns: repeat(3, 96px); gap: 8px; margin: 24px; }
      .cell { width: 96px; height: 96px; font-size: 56px; font-weight: bold;
              background: #15152b; border: 2px solid #2de2e6; color: #2de2e6; cursor: pointer; }
      .cell.o { color: #ff3cac; border-color: #ff3cac; }
      #status { font-size: 20px; min-height: 28px; }
      table { margin-top: 16px; border-collapse: collapse; }
      td, th { padding: 4px 12px; }
    </style>
  </head>
  <body>
    <h1>Neon Tic-Tac-Toe</h1>
    <div>
      <input id=\"username\" maxlength=\"20\" placeholder=\"Your name\" />
      <button id=\"save-name\">Save</button>
      <select id=\"speed\">
        <option value=\"fast\">Fast</option>
        <option value=\"normal\">Normal</option>
        <option value=\"smooth\">Smooth</option>
      </select>
    </div>
    <div id=\"status\"></div>
    <div id=\"board\"></div>
    <button id=\"reset\">New game</button>
    <table>
      <thead><tr><th>Player</th><th>Wins</th></tr></thead>
      <tbody id=\"leaderboard\"></tbody>
    </table>
    <script>
      const MESSAGES = { won: "You won!", lost: "AI wins!", draw: "Draw!" };
      let state = null;

      async function api(path, method = "GET", body = undefined) {
        const response = await fetch(path, {
          method,
          headers: { "Content-Type": "application/json" },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        if (!response.ok) {
          throw new Error((await response.json()).detail || response.statusText);
        }
        return response.json();
      }

      function render() {
        const board = document.getElementById("board");
        board.replaceChildren();
        state.cells.forEach((value, index) => {
          const cell = document.createElement("button");
          cell.className = "cell" + (value === "O" ? " o" : "");
          cell.textContent = value;
          cell.onclick = () => play(index);
          board.appendChild(cell);
        });
        let message = MESSAGES[state.status];
        if (!message) {
          if (state.thinking) message = "AI is thinking...";
          else message = state.currentPlayer === "X" ? "Your turn (X)" : "AI's turn (O)";
        }
        document.getElementById("status").textContent = message;
        document.getElementById("speed").value = state.speed;
      }

      async function refreshLeaderboard() {
        const rows = await api("/api/leaderboard");
        const body = document.getElementById("leaderboard");
        body.replaceChildren();
        for (const row of rows) {
          const tr = document.createElement("tr");
          for (const value of [row.username, row.wins]) {
            const td = document.createElement("td");
            td.textContent = String(value);
            tr.appendChild(td);
          }
          body.appendChild(tr);
        }
      }

      async function poll() {
        while (state.aiPending) {
          await new Promise((resolve) => setTimeout(resolve, 50));
          state = await api(`/api/game/${state.id}`);
          render();
        }
        if (state.status !== "playing") refreshLeaderboard();
      }

      async function play(index) {
        if (state.status !== "playing" || state.aiPending || state.cells[index]) return;
        state = await api(`/api/game/${state.id}/move`, "POST", { cellIndex: index });
        render();
        poll();
      }

      document.getElementById("reset").onclick = async () => {
        state = await api(`/api/game/${state.id}/reset`, "POST");
        render();
      };
      document.getElementById("save-name").onclick = async () => {
        const username = document.getElementById("username").value;
        state = await api(`/api/game/${state.id}/username`, "PUT", { username });
        localStorage.setItem("tictactoe_username", state.username);
        render();
      };
      document.getElementById("speed").onchange = async (event) => {
        state = await api(`/api/game/${state.id}/speed`, "PUT", { speed: event.target.value });
        render();
      };

      (async () => {
        const username = localStorage.getItem("tictactoe_username") || undefined;
        document.getElementById("username").value = username || "";
        state = await api("/api/game", "POST", { username });
        render();
        refreshLeaderboard();
      })();
    </script>
  </body>
</html>
"""
