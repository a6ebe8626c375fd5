"""Flask backend for the CHIP-8 web console."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from flask import Flask, jsonify, render_template, request
from flask_cors import CORS

# Ensure imports work when running as a module or script
CURRENT_DIR = Path(__file__).parent
PARENT_DIR = CURRENT_DIR.parent
if str(CURRENT_DIR) not in sys.path:
    sys.path.insert(0, str(CURRENT_DIR))
if str(PARENT_DIR) not in sys.path:
    sys.path.insert(0, str(PARENT_DIR))

try:  # pragma: no cover - exercised under WSGI
    from .console_service import init_app, service
except ImportError:  # pragma: no cover - direct script execution
    from console_service import init_app, service  # type: ignore

app = Flask(__name__)
app.config["TESTING"] = bool(os.environ.get("CHIP8_CONSOLE_TESTING"))

# Restrict CORS by default; allow opt-in via config/env
allowed_origins = app.config.get("WEB_ALLOWED_ORIGINS") or os.environ.get(
    "CHIP8_CONSOLE_ALLOWED_ORIGINS"
)
if allowed_origins:
    if isinstance(allowed_origins, str):
        origins = [
            origin.strip() for origin in allowed_origins.split(",") if origin.strip()
        ]
    else:
        origins = allowed_origins
    if origins:
        CORS(app, resources={r"/api/*": {"origins": origins}})


def initialize_console() -> None:
    """Helper used by tests/CLI."""
    service.ensure_console()


# Ensure console is ready under WSGI servers
init_app(app)


@app.route("/")
def index():
    """Serve the console page."""
    return render_template("index.html")


@app.route("/api/v1/state", methods=["GET"])
def get_state():
    """Return current console state snapshot."""
    return jsonify(service.snapshot_state())


@app.route("/api/v1/control", methods=["POST"])
def control_console():
    """Run one of the console commands (toggle_run/step/reset/toggle_turbo)."""
    data = request.get_json(silent=True) or {}
    command = data.get("command")
    if not command:
        return jsonify({"error": "Missing command"}), 400

    if not service.command(command):
        return jsonify({"error": service.status()["error"]}), 400
    return jsonify({"status": "ok", "console": service.status()})


@app.route("/api/v1/key", methods=["POST"])
def handle_key():
    """Forward a physical key event to the keypad."""
    data = request.get_json(silent=True) or {}
    key = data.get("key")
    if not key:
        return jsonify({"error": "Missing key"}), 400

    action = data.get("action", "down")
    if action not in ("down", "up"):
        return jsonify({"error": f"Invalid action: {action}"}), 400

    forwarded = service.key_event(key, action)
    return jsonify({"status": "ok", "forwarded": forwarded})


@app.route("/api/v1/rom", methods=["POST"])
def load_rom():
    """Load a program image uploaded as the ``rom`` form field."""
    upload = request.files.get("rom")
    if upload is None:
        return jsonify({"error": "Missing rom file"}), 400

    if not service.load_rom(upload):
        return jsonify({"error": service.status()["error"]}), 400
    return jsonify({"status": "loaded", "console": service.status()})


if __name__ == "__main__":
    initialize_console()
    print("Starting CHIP-8 console at http://localhost:8080")
    app.run(debug=False, host="0.0.0.0", port=8080)
