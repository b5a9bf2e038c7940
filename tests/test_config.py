"""
Tests for Config loading and TASKBOARD_* overrides.
"""
from pathlib import Path

from taskboard.config import Config


def test_defaults():
    config = Config()
    assert config.default_workspace_name == "Personal"
    assert config.invite_ttl_days == 7
    assert config.workspace_cookie == "active_workspace_id"
    assert not config.is_production


def test_missing_file_uses_defaults(tmp_path):
    config = Config.load(str(tmp_path / "missing.yaml"), environ={})
    assert config.port == 3000
    assert config.db_path == str(Path("~/.local/share/taskboard/board.db").expanduser())


def test_yaml_values_and_unknown_keys(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text(
        "db_path: /srv/board.db\n"
        "invite_ttl_days: 3\n"
        "environment: production\n"
        "telegram_token: ignored\n"
    )
    config = Config.load(str(path), environ={})
    assert config.db_path == "/srv/board.db"
    assert config.invite_ttl_days == 3
    assert config.is_production
    assert not hasattr(config, "telegram_token")


def test_environment_overrides_yaml(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("db_path: /srv/board.db\napi_secret: from-file\n")
    config = Config.load(str(path), environ={
        "TASKBOARD_DB": "/tmp/override.db",
        "TASKBOARD_API_SECRET": "from-env",
        "TASKBOARD_LOG_LEVEL": "",
    })
    assert config.db_path == "/tmp/override.db"
    assert config.api_secret == "from-env"
    assert config.log_level == "INFO"


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("")
    assert Config.load(str(path), environ={}).host == "127.0.0.1"
