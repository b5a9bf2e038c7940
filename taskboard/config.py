# Task board configuration
# Override via taskboard.yaml, TASKBOARD_* environment variables, or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

CONFIG_PATH = Path(__file__).parent.parent / "taskboard.yaml"

# Environment variable -> config field
ENV_OVERRIDES = {
    "TASKBOARD_DB": "db_path",
    "TASKBOARD_API_SECRET": "api_secret",
    "TASKBOARD_ENV": "environment",
    "TASKBOARD_LOG_LEVEL": "log_level",
}


@dataclass
class Config:
    """Runtime configuration for the board server and services."""

    # Storage
    db_path: str = "~/.local/share/taskboard/board.db"
    busy_timeout_secs: float = 5.0

    # Auth proxy shared secret (X-API-Key); empty rejects every request
    api_secret: str = ""

    # Workspaces
    default_workspace_name: str = "Personal"
    invite_ttl_days: int = 7

    # Sticky workspace cookie
    workspace_cookie: str = "active_workspace_id"
    cookie_max_age: int = 60 * 60 * 24 * 365

    # Behavior
    environment: str = "development"
    read_cache: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def resolve_paths(self):
        """Expand ~ in the database path."""
        if self.db_path != ":memory:":
            self.db_path = str(Path(self.db_path).expanduser())

    def apply_env(self, environ=None):
        """Apply TASKBOARD_* environment overrides."""
        environ = os.environ if environ is None else environ
        for env_name, attr in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if value:
                setattr(self, attr, value)

    @classmethod
    def load(cls, path: Optional[str] = None, environ=None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                data = yaml.safe_load(f) or {}
            cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k)})
        else:
            cfg = cls()
        cfg.apply_env(environ)
        cfg.resolve_paths()
        return cfg
