#!/usr/bin/env python3
"""
Import a legacy task export into a workspace.

Usage:
    python import_legacy.py tasks.json --user USER_ID
    python import_legacy.py export.json --user USER_ID --workspace WORKSPACE_ID --db board.db

Without --workspace the user's earliest workspace is used (created if the
user has none yet). Run once per export; re-running imports the tasks again.
"""
import argparse
import json
import logging
import sys

from taskboard.auth import MemoryPreferences
from taskboard.config import Config
from taskboard.errors import BoardError
from taskboard.legacy import import_legacy
from taskboard.store import BoardStore
from taskboard.workspace import WorkspaceResolver

logger = logging.getLogger("import_legacy")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import a legacy task export")
    parser.add_argument("export", help="Path to the exported JSON file")
    parser.add_argument("--user", required=True, help="User id that will own the tasks")
    parser.add_argument("--workspace", help="Target workspace id (must be a member)")
    parser.add_argument("--db", help="Path to board.db (overrides TASKBOARD_DB env var)")
    parser.add_argument("--config", help="Path to taskboard.yaml")
    args = parser.parse_args(argv)

    config = Config.load(args.config)
    if args.db:
        config.db_path = args.db
        config.resolve_paths()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [import] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logger.info(f"Importing {args.export} for user {args.user} into {config.db_path}")
    with open(args.export, "r", encoding="utf-8") as f:
        payload = json.load(f)

    store = BoardStore(config.db_path, timeout=config.busy_timeout_secs)
    resolver = WorkspaceResolver(store, MemoryPreferences(), config)
    try:
        if args.workspace:
            resolver.require_membership(args.user, args.workspace)
            workspace_id = args.workspace
        else:
            workspace_id = resolver.resolve_active_workspace(args.user)
        count = import_legacy(store, workspace_id, args.user, payload)
    except BoardError as e:
        print(f"Import failed: {e.message}", file=sys.stderr)
        return 1

    print(f"Imported {count} tasks into workspace {workspace_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
