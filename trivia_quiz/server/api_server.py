"""FastAPI server exposing the running quiz to a browser on the local network."""

from __future__ import annotations

from threading import Thread
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from trivia_quiz.constants.about import APP_NAME, APP_VERSION
from trivia_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_quiz.server.session_bridge import SessionBridge

_PLAYER_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>TriviaQuiz</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; }
      button:disabled { opacity: 0.5; cursor: not-allowed; }
      .options { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 0.75rem; margin: 1rem 0; }
      .option.correct { background: #16a34a; }
      .option.incorrect { background: #dc2626; }
      .meta { display: flex; justify-content: space-between; color: #94a3b8; }
      .timer-track { width: 100%; height: 0.6rem; background: rgba(250, 204, 21, 0.25); border-radius: 999px; overflow: hidden; }
      #timer-fill { height: 100%; background: #facc15; transform-origin: left center; transition: transform 200ms linear; }
      #timer-fill.warning { background: #f97316; }
      #timer-fill.critical { background: #ef4444; }
      #error { color: #fca5a5; min-height: 1.25rem; }
    </style>
  </head>
  <body>
    <section class="card" id="idle-card">
      <h1>TriviaQuiz</h1>
      <p>Answer each question before the clock runs out.</p>
      <button id="start-button">Start</button>
    </section>
    <section class="card hidden" id="question-card">
      <div class="meta"><span id="progress"></span><span id="score"></span></div>
      <h2 id="question-text"></h2>
      <div class="timer-track"><div id="timer-fill"></div></div>
      <p id="timer-label"></p>
      <div class="options" id="options"></div>
      <button id="next-button" disabled>Next</button>
    </section>
    <section class="card hidden" id="result-card">
      <h2>Your score: <span id="final-score"></span></h2>
      <p id="result-message"></p>
      <p id="result-stats"></p>
      <ul id="recent"></ul>
      <button id="restart-button">Play again</button>
    </section>
    <p id="error"></p>
    <script>
      const labels = ['A', 'B', 'C'];
      const cards = {
        idle: document.getElementById('idle-card'),
        in_progress: document.getElementById('question-card'),
        finished: document.getElementById('result-card'),
      };
      const optionsEl = document.getElementById('options');
      const timerFill = document.getElementById('timer-fill');

      async function send(path, body) {
        await fetch(path, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : null,
        });
        setTimeout(refresh, 100);
      }

      function renderQuestion(state) {
        document.getElementById('progress').textContent =
          `Question ${state.current_index + 1} of ${state.total_questions}`;
        document.getElementById('score').textContent = `Score: ${state.score}`;
        document.getElementById('question-text').textContent = state.question.text;
        timerFill.style.transform = `scaleX(${state.progress_ratio})`;
        timerFill.className = state.timer_level;
        document.getElementById('timer-label').textContent =
          state.answered && state.remaining_seconds <= 0 ? 'Time is up' : `${state.remaining_seconds}s`;
        optionsEl.innerHTML = '';
        labels.forEach((label) => {
          const button = document.createElement('button');
          button.className = `option ${state.option_marks[label]}`;
          button.textContent = `${label}. ${state.question.options[label]}`;
          button.disabled = state.answered;
          button.addEventListener('click', () => send('/api/answer', { label }));
          optionsEl.appendChild(button);
        });
        document.getElementById('next-button').disabled = !state.answered;
      }

      function renderResult(state) {
        const result = state.result;
        if (!result) {
          document.getElementById('final-score').textContent = state.score;
          document.getElementById('result-stats').textContent = 'Saving your score...';
          return;
        }
        document.getElementById('final-score').textContent = result.score;
        document.getElementById('result-message').textContent = result.message;
        document.getElementById('result-stats').textContent = result.stats.count <= 1
          ? 'First attempt'
          : `Attempt ${result.stats.count} | Best: ${result.stats.max_score} | Average: ${result.stats.average}`;
        const recentEl = document.getElementById('recent');
        recentEl.innerHTML = '';
        result.recent.forEach((attempt) => {
          const item = document.createElement('li');
          item.textContent = `${new Date(attempt.recorded_at).toLocaleString()}  ${attempt.score} points`;
          recentEl.appendChild(item);
        });
      }

      async function refresh() {
        try {
          const response = await fetch('/api/state');
          const state = await response.json();
          Object.entries(cards).forEach(([phase, card]) => card.classList.toggle('hidden', phase !== state.phase));
          if (state.phase === 'in_progress' && state.question) renderQuestion(state);
          if (state.phase === 'finished') renderResult(state);
          document.getElementById('error').textContent = state.last_error || '';
        } catch (error) {
          document.getElementById('error').textContent = 'Connection lost. Retrying…';
        }
      }

      document.getElementById('start-button').addEventListener('click', () => send('/api/start'));
      document.getElementById('next-button').addEventListener('click', () => send('/api/next'));
      document.getElementById('restart-button').addEventListener('click', () => send('/api/restart'));
      refresh();
      setInterval(refresh, 500);
    </script>
  </body>
</html>
"""


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    label: Literal["A", "B", "C"]


def _get_bridge_dependency(bridge: SessionBridge):
    def dependency() -> SessionBridge:
        return bridge

    return dependency


def create_api_app(bridge: SessionBridge) -> FastAPI:
    """Create a FastAPI application wired to the provided session bridge."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    bridge_dep = _get_bridge_dependency(bridge)

    def _queue(bridge: SessionBridge, command: str, label: str | None = None) -> dict[str, str]:
        try:
            bridge.request_command(command, label)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"status": "accepted", "command": command}

    @app.get("/", response_class=HTMLResponse)
    def serve_player_page() -> str:
        return _PLAYER_PAGE_HTML

    @app.get("/api/state")
    def get_state(session_bridge: SessionBridge = Depends(bridge_dep)) -> dict[str, object]:
        return session_bridge.snapshot_payload()

    @app.post("/api/start", status_code=202)
    def start_session(session_bridge: SessionBridge = Depends(bridge_dep)) -> dict[str, str]:
        return _queue(session_bridge, "start")

    @app.post("/api/answer", status_code=202)
    def submit_answer(
        payload: AnswerPayload,
        session_bridge: SessionBridge = Depends(bridge_dep),
    ) -> dict[str, str]:
        return _queue(session_bridge, "answer", payload.label)

    @app.post("/api/next", status_code=202)
    def next_question(session_bridge: SessionBridge = Depends(bridge_dep)) -> dict[str, str]:
        return _queue(session_bridge, "next")

    @app.post("/api/restart", status_code=202)
    def restart_session(session_bridge: SessionBridge = Depends(bridge_dep)) -> dict[str, str]:
        return _queue(session_bridge, "restart")

    return app


def start_api_server(
    bridge: SessionBridge,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(bridge)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="TriviaQuizApiServer", daemon=True)
    thread.start()
    return thread
