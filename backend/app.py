"""Flask backend serving crucible searches over HTTP and SocketIO.

Two ways to run a search:

* ``POST /api/solve/crucible`` answers synchronously with the cost and path.
* ``POST /api/run/crucible`` starts a background task and streams snapshots
  through WebSocket events using Flask-SocketIO (which falls back to polling if
  WebSocket is unavailable).

Configuration defaults live in ``app.config`` and can be overridden from
``FLASK_``-prefixed environment variables, e.g. ``FLASK_CRUCIBLE_MAX_EXPANSIONS``.
"""
from __future__ import annotations

from threading import Lock
from typing import Dict, Any

from flask import Flask, request, jsonify
from flask_socketio import SocketIO
from flask_cors import CORS

from algorithms.loss_grid import LossGrid, MalformedGrid
from backend.algorithms.crucible import (
    CrucibleSearch,
    NoPathFound,
    PRESETS,
    SearchLimitExceeded,
    SearchParameters,
)

app = Flask(__name__)
app.config["SECRET_KEY"] = "change-me"  # in production override via env
app.config["CRUCIBLE_SNAPSHOT_INTERVAL"] = 50
app.config["CRUCIBLE_MAX_EXPANSIONS"] = 2_000_000
app.config.from_prefixed_env()
socketio = SocketIO(app, cors_allowed_origins="*")

# Enable CORS for /api/* endpoints so that frontend localhost:5173 can POST
CORS(app, resources={r"/api/*": {"origins": "*"}})

# keep track of started searches (id -> "running" | "done" | "failed")
_runs: Dict[str, str] = {}
_runs_lock = Lock()


def _request_data() -> Dict[str, Any]:
    data = request.get_json(force=True)
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def _int_field(data, name: str, default: int) -> int:
    value = data.get(name, default)
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"'{name}' must be an integer, got {value!r}")
    return int(value)


def _parse_grid(data) -> LossGrid:
    """Grid is either a list of digit strings or a single newline-separated string."""
    raw = data.get("grid")
    if raw is None:
        raise MalformedGrid("request has no 'grid'")
    if isinstance(raw, str):
        return LossGrid.from_text(raw)
    if not isinstance(raw, list):
        raise MalformedGrid("'grid' must be a string or a list of rows")
    if all(isinstance(line, str) for line in raw):
        return LossGrid.from_lines(raw)
    return LossGrid(raw)


def _parse_params(data) -> SearchParameters:
    preset = data.get("preset")
    if preset is not None:
        if preset not in PRESETS:
            raise ValueError(f"unknown preset {preset!r}; expected one of {sorted(PRESETS)}")
        return PRESETS[preset]
    return SearchParameters(
        min_moves=_int_field(data, "min_moves", 0),
        max_moves=_int_field(data, "max_moves", 3),
    )


def _make_search(data) -> CrucibleSearch:
    return CrucibleSearch(
        grid=_parse_grid(data),
        params=_parse_params(data),
        snapshot_interval=_int_field(data, "snapshot_interval", app.config["CRUCIBLE_SNAPSHOT_INTERVAL"]),
        max_expansions=app.config["CRUCIBLE_MAX_EXPANSIONS"],
    )


# --------------------------------------------------------
# Error responses
# --------------------------------------------------------

@app.errorhandler(ValueError)
def bad_request(err):
    # MalformedGrid is a ValueError too
    return jsonify({"status": "error", "error": str(err)}), 400


@app.errorhandler(NoPathFound)
def no_path(err):
    return jsonify({"status": "no_path", "error": str(err)}), 422


@app.errorhandler(SearchLimitExceeded)
def limit_exceeded(err):
    return jsonify({"status": "aborted", "error": str(err)}), 422


# --------------------------------------------------------
# Crucible endpoints
# --------------------------------------------------------

@app.route("/api/solve/crucible", methods=["POST"])
def solve_crucible():
    data = _request_data()
    search = _make_search(data)
    result = search.solve()
    app.logger.info(
        "crucible solved %r (min=%d, max=%d): cost=%d after %d expansions",
        search.grid, search.params.min_moves, search.params.max_moves, result.cost, result.expanded,
    )
    payload = result.to_dict()
    payload["status"] = "done"
    return jsonify(payload)


@app.route("/api/run/crucible", methods=["POST"])
def run_crucible():
    data = _request_data()
    search = _make_search(data)
    run_id = str(data.get("run_id", f"crucible_{id(search)}"))

    def _set_status(status: str):
        with _runs_lock:
            _runs[run_id] = status

    def _background_task():
        # the engine lives only as long as this task
        history = []
        try:
            for snap in search.run_iter():
                history.append(snap)
        except (NoPathFound, SearchLimitExceeded) as e:
            app.logger.warning("crucible run %s failed: %s", run_id, e)
            _set_status("failed")
            socketio.emit("crucible_failed", {"run_id": run_id, "error": str(e)})
            return

        # Emit entire history at once
        socketio.emit("crucible_history", {"run_id": run_id, "history": history})

        result = search.result
        app.logger.info("crucible run %s done: cost=%d", run_id, result.cost)
        _set_status("done")
        socketio.emit("crucible_done", {"run_id": run_id, **result.to_dict()})

    app.logger.info("starting crucible run %s on %r", run_id, search.grid)
    _set_status("running")
    socketio.start_background_task(_background_task)

    return jsonify({"status": "started", "run_id": run_id})


@app.route("/api/runs", methods=["GET"])
def list_runs():
    """Map of run id -> status for every started run."""
    with _runs_lock:
        return jsonify(dict(_runs))


if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=5000, debug=True)
