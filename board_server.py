#!/usr/bin/env python3
"""
Task Board Server
-----------------
JSON API over the taskboard package. Authentication is delegated to an
upstream auth proxy that forwards the signed-in user as X-User-Id together
with the shared X-API-Key. The active workspace is kept in the
active_workspace_id cookie.

Usage:
    python board_server.py --config taskboard.yaml
    python board_server.py --db /var/lib/taskboard/board.db --port 3000

API (every response is {success, data} or {success, error}):
    GET    /api/board                         → tasks, columns, tags, workspaces, stats
    GET    /api/tasks?q=&tag=                 → active tasks (filtered)
    GET    /api/tasks/archived                → archived tasks
    POST   /api/tasks                         { text, description }
    PUT    /api/tasks/<id>                    { description, due_date, priority,
                                                tag_ids, subtasks, notes }
    POST   /api/tasks/<id>/status             { status }
    DELETE /api/tasks/<id>
    POST   /api/tasks/<id>/restore
    POST   /api/tasks/archive-completed
    POST   /api/tasks/<id>/notes              { text }
    DELETE /api/tasks/<id>/notes/<note_id>
    POST   /api/tasks/<id>/subtasks/<sid>/toggle
    GET    /api/tags
    POST   /api/tags                          { name, color }
    DELETE /api/tags/<id>
    GET    /api/workspaces
    POST   /api/workspaces                    { name }
    POST   /api/workspaces/<id>/switch
    POST   /api/workspaces/<id>/invites       → { token, expires_at, ... }
    POST   /api/invites/<token>/join
    POST   /api/session/sign-out
    GET    /health
"""

import argparse
import logging
import os
import sys
from typing import Optional

from flask import Flask, g, jsonify, request

from taskboard.actions import ActionResult, BoardActions, board_action
from taskboard.auth import CookiePreferences, HeaderAuth
from taskboard.config import Config
from taskboard.events import BOARD_CHANGED, BoardEvents
from taskboard.queries import BoardCache, BoardQueries, board_columns, board_stats, filter_tasks
from taskboard.store import BoardStore
from taskboard.workspace import WorkspaceResolver

logger = logging.getLogger("board_server")

# Failure type → HTTP status
STATUS_CODES = {
    "ValidationError": 400,
    "DuplicateTagName": 400,
    "InviteExpired": 400,
    "InviteNotFound": 404,
    "Unauthenticated": 401,
    "NotAMember": 403,
    "NotFound": 404,
    "StorageError": 500,
}


def respond(result: ActionResult, success_code: int = 200):
    if result.success:
        return jsonify(result.to_dict()), success_code
    return jsonify(result.to_dict()), STATUS_CODES.get(result.error_type, 500)


def body(**fields):
    """
    JSON request body merged with route parameters.

    Non-object bodies are returned unmerged so the validator rejects them with
    "Invalid payload".
    """
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return payload
    return {**payload, **fields}


def create_app(config: Optional[Config] = None) -> Flask:
    """Build the Flask app with one shared store, event bridge and read cache."""
    config = config or Config.load()
    app = Flask(__name__)

    store = BoardStore(config.db_path, timeout=config.busy_timeout_secs)
    events = BoardEvents()
    cache = BoardCache() if config.read_cache else None
    if cache is not None:
        events.subscribe(BOARD_CHANGED, cache.invalidate)

    app.config["BOARD_CONFIG"] = config
    app.extensions["taskboard"] = {"store": store, "events": events, "cache": cache}

    if not config.api_secret:
        logger.warning("api_secret is not set; every request will be unauthenticated")

    # ── Per-request services ─────────────────────────────────────────────────

    @app.before_request
    def bind_services():
        auth = HeaderAuth(request.headers, config.api_secret)
        g.preferences = CookiePreferences(request.cookies)
        resolver = WorkspaceResolver(store, g.preferences, config)
        g.actions = BoardActions(store, resolver, auth, events)
        g.queries = BoardQueries(store, resolver, auth, cache)

    @app.after_request
    def write_cookies(response):
        preferences = g.get("preferences")
        return preferences.apply(response) if preferences else response

    # ── Reads ────────────────────────────────────────────────────────────────

    @board_action("Failed to load board")
    def load_board(query: str, tag_ids: list) -> dict:
        queries: BoardQueries = g.queries
        tasks = filter_tasks(queries.list_active_tasks(), query, tag_ids)
        return {
            "active_workspace_id": queries.active_workspace_id(),
            "tasks": [t.to_dict() for t in tasks],
            "columns": {
                status.value: [t.id for t in column]
                for status, column in board_columns(tasks).items()
            },
            "tags": [t.to_dict() for t in queries.list_tags()],
            "workspaces": [w.to_dict() for w in queries.list_workspaces()],
            "stats": board_stats(tasks),
        }

    @board_action("Failed to load tasks")
    def load_tasks(query: str, tag_ids: list) -> list:
        tasks = filter_tasks(g.queries.list_active_tasks(), query, tag_ids)
        return [t.to_dict() for t in tasks]

    @board_action("Failed to load tags")
    def load_tags() -> list:
        return [t.to_dict() for t in g.queries.list_tags()]

    @board_action("Failed to load workspaces")
    def load_workspaces() -> list:
        return [w.to_dict() for w in g.queries.list_workspaces()]

    @app.route("/api/board")
    def api_board():
        return respond(load_board(request.args.get("q", ""), request.args.getlist("tag")))

    @app.route("/api/tasks", methods=["GET"])
    def api_tasks():
        return respond(load_tasks(request.args.get("q", ""), request.args.getlist("tag")))

    @app.route("/api/tasks/archived", methods=["GET"])
    def api_archived_tasks():
        return respond(g.actions.fetch_archived_tasks())

    @app.route("/api/tags", methods=["GET"])
    def api_tags():
        return respond(load_tags())

    @app.route("/api/workspaces", methods=["GET"])
    def api_workspaces():
        return respond(load_workspaces())

    # ── Task mutations ───────────────────────────────────────────────────────

    @app.route("/api/tasks", methods=["POST"])
    def api_create_task():
        return respond(g.actions.create_task(body()), 201)

    @app.route("/api/tasks/archive-completed", methods=["POST"])
    def api_archive_completed():
        return respond(g.actions.archive_completed_tasks())

    @app.route("/api/tasks/<task_id>", methods=["PUT"])
    def api_update_task(task_id):
        return respond(g.actions.update_task(body(id=task_id)))

    @app.route("/api/tasks/<task_id>/status", methods=["POST"])
    def api_update_task_status(task_id):
        return respond(g.actions.update_task_status(body(id=task_id)))

    @app.route("/api/tasks/<task_id>", methods=["DELETE"])
    def api_delete_task(task_id):
        return respond(g.actions.delete_task(task_id))

    @app.route("/api/tasks/<task_id>/restore", methods=["POST"])
    def api_restore_task(task_id):
        return respond(g.actions.restore_task(task_id))

    @app.route("/api/tasks/<task_id>/notes", methods=["POST"])
    def api_add_note(task_id):
        return respond(g.actions.add_note(body(task_id=task_id)), 201)

    @app.route("/api/tasks/<task_id>/notes/<note_id>", methods=["DELETE"])
    def api_delete_note(task_id, note_id):
        return respond(g.actions.delete_note({"task_id": task_id, "note_id": note_id}))

    @app.route("/api/tasks/<task_id>/subtasks/<subtask_id>/toggle", methods=["POST"])
    def api_toggle_subtask(task_id, subtask_id):
        return respond(g.actions.toggle_subtask({"task_id": task_id, "subtask_id": subtask_id}))

    # ── Tag mutations ────────────────────────────────────────────────────────

    @app.route("/api/tags", methods=["POST"])
    def api_create_tag():
        return respond(g.actions.create_tag(body()), 201)

    @app.route("/api/tags/<tag_id>", methods=["DELETE"])
    def api_delete_tag(tag_id):
        return respond(g.actions.delete_tag(tag_id))

    # ── Workspaces ───────────────────────────────────────────────────────────

    @app.route("/api/workspaces", methods=["POST"])
    def api_create_workspace():
        return respond(g.actions.create_workspace(body()), 201)

    @app.route("/api/workspaces/<workspace_id>/switch", methods=["POST"])
    def api_switch_workspace(workspace_id):
        return respond(g.actions.switch_workspace(workspace_id))

    @app.route("/api/workspaces/<workspace_id>/invites", methods=["POST"])
    def api_generate_invite(workspace_id):
        return respond(g.actions.generate_invite_link({"workspace_id": workspace_id}), 201)

    @app.route("/api/invites/<token>/join", methods=["POST"])
    def api_join_workspace(token):
        return respond(g.actions.join_workspace({"token": token}))

    @app.route("/api/session/sign-out", methods=["POST"])
    def api_sign_out():
        return respond(g.actions.sign_out())

    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "db": store.db_path,
            "schema_version": store.schema_version(),
        })

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Task Board Server")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to board.db (overrides TASKBOARD_DB env var)")
    parser.add_argument("--config", help="Path to taskboard.yaml")
    args = parser.parse_args()

    if args.db:
        os.environ["TASKBOARD_DB"] = args.db

    config = Config.load(args.config)
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port

    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format="%(asctime)s [board] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = create_app(config)

    print(f"""
╔═══════════════════════════════════════╗
║  Task Board Server                    ║
╠═══════════════════════════════════════╣
║  URL:  http://{config.host}:{config.port:<20}║
║  DB:   {config.db_path:<31}║
║  Env:  {config.environment:<31}║
╚═══════════════════════════════════════╝
""")

    app.run(host=config.host, port=config.port, debug=False, threaded=True)
