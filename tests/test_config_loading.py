"""Tests for configuration loading system."""

import json
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from src.config.settings import (
    Settings,
    deep_merge,
    load_all_configs,
    load_schema,
    validate_config_section,
)


class StubLogger:
    """Capture structured logging calls."""

    def __init__(self) -> None:
        self.debug_calls: list[tuple[str, dict[str, Any]]] = []
        self.info_calls: list[tuple[str, dict[str, Any]]] = []
        self.warning_calls: list[tuple[str, dict[str, Any]]] = []
        self.error_calls: list[tuple[str, dict[str, Any]]] = []

    def debug(self, event: str, **kwargs: Any) -> None:
        self.debug_calls.append((event, kwargs))

    def info(self, event: str, **kwargs: Any) -> None:
        self.info_calls.append((event, kwargs))

    def warning(self, event: str, **kwargs: Any) -> None:
        self.warning_calls.append((event, kwargs))

    def error(self, event: str, **kwargs: Any) -> None:
        self.error_calls.append((event, kwargs))


REPO_ROOT = Path(__file__).resolve().parents[1]
MAIN_SCHEMA = json.loads(
    (REPO_ROOT / "config" / "schemas" / "main.schema.json").read_text(encoding="utf-8")
)


@pytest.fixture
def config_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory with config/ and config/schemas/."""
    (tmp_path / "config" / "schemas").mkdir(parents=True)
    monkeypatch.chdir(tmp_path)
    for name in (
        "SLACK_BOT_TOKEN",
        "AUTHORIZED_STATS_USERS",
        "COOLDOWN_MS",
        "DB_PATH",
        "DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def write_main(root: Path, config: dict[str, Any]) -> None:
    with open(root / "config" / "main.yaml", "w", encoding="utf-8") as f:
        yaml.dump(config, f)


def test_deep_merge_nested() -> None:
    base = {"stats": {"months_back": 3, "top_n": 5}}
    override = {"stats": {"top_n": 10}, "server": {"port": 8080}}

    assert deep_merge(base, override) == {
        "stats": {"months_back": 3, "top_n": 10},
        "server": {"port": 8080},
    }


def test_deep_merge_lists_replaced() -> None:
    """Lists are replaced, not merged."""
    base = {"stats": {"authorized_users": ["U1", "U2"]}}
    override = {"stats": {"authorized_users": ["U3"]}}

    assert deep_merge(base, override) == {"stats": {"authorized_users": ["U3"]}}


def test_load_schema_missing(config_root: Path) -> None:
    assert load_schema("nonexistent_schema_xyz") == {}


def test_validate_config_section_invalid(config_root: Path) -> None:
    (config_root / "config/schemas/main.schema.json").write_text(
        json.dumps(MAIN_SCHEMA), encoding="utf-8"
    )

    with pytest.raises(ValueError, match="Config validation failed"):
        validate_config_section({"kudos": {"cooldown_ms": -1}}, "main")
    with pytest.raises(ValueError, match="Config validation failed"):
        validate_config_section({"unknown_section": {}}, "main")

    validate_config_section({"kudos": {"cooldown_ms": 1500}}, "main")


def test_load_all_configs_no_config_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Env-only deployments have no config directory at all."""
    monkeypatch.chdir(tmp_path)

    assert load_all_configs() == {}


def test_load_all_configs_main_first_then_others(config_root: Path) -> None:
    write_main(config_root, {"stats": {"top_n": 5, "months_back": 3}})
    with open(config_root / "config" / "a_local.yaml", "w", encoding="utf-8") as f:
        yaml.dump({"stats": {"top_n": 10}}, f)

    config = load_all_configs()

    assert config == {"stats": {"top_n": 10, "months_back": 3}}


def test_load_all_configs_logs_structured_warning(
    config_root: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Config loader should emit structured warnings when files fail to load."""
    logger_stub = StubLogger()
    monkeypatch.setattr("src.config.settings.logger", logger_stub)
    main_path = config_root / "config" / "main.yaml"
    main_path.write_text("invalid: [yaml", encoding="utf-8")

    load_all_configs()

    event, payload = logger_stub.warning_calls[0]
    assert event == "config_file_load_failed"
    assert payload["path"].endswith("main.yaml")
    assert "error" in payload


def test_settings_missing_token_raises(config_root: Path) -> None:
    """Settings must fail fast when the bot token is absent."""
    with pytest.raises(ValidationError):
        Settings()  # type: ignore[call-arg]


def test_settings_blank_token_raises(config_root: Path) -> None:
    with pytest.raises(ValidationError):
        Settings(slack_bot_token="   ")


def test_settings_defaults(config_root: Path) -> None:
    settings = Settings(slack_bot_token="xoxb-test")

    assert settings.cooldown_ms == 3000
    assert settings.stats_months_back == 3
    assert settings.stats_top_n == 5
    assert settings.authorized_stats_users == []
    assert settings.kudos_db_path == str(Path("data") / "kudos.db")
    assert settings.is_stats_authorized("U-anyone")


def test_settings_yaml_defaults_applied(config_root: Path) -> None:
    write_main(
        config_root,
        {
            "database": {"data_dir": "/srv/kudos"},
            "kudos": {"cooldown_ms": 1500},
            "stats": {"top_n": 3, "authorized_users": ["U1", " U2 "]},
            "logging": {"level": "DEBUG"},
        },
    )

    settings = Settings(slack_bot_token="xoxb-test")

    assert settings.cooldown_ms == 1500
    assert settings.stats_top_n == 3
    assert settings.authorized_stats_users == ["U1", "U2"]
    assert settings.kudos_db_path == str(Path("/srv/kudos") / "kudos.db")
    assert settings.log_level == "DEBUG"


def test_settings_env_overrides_yaml(
    config_root: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_main(
        config_root,
        {"kudos": {"cooldown_ms": 1500}, "stats": {"authorized_users": ["U9"]}},
    )
    monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-env")
    monkeypatch.setenv("COOLDOWN_MS", "250")
    monkeypatch.setenv("AUTHORIZED_STATS_USERS", "U1, U2,,U3 ")
    monkeypatch.setenv("DB_PATH", "/tmp/elsewhere.db")

    settings = Settings()  # type: ignore[call-arg]

    assert settings.slack_bot_token.get_secret_value() == "xoxb-env"
    assert settings.cooldown_ms == 250
    assert settings.authorized_stats_users == ["U1", "U2", "U3"]
    assert settings.kudos_db_path == "/tmp/elsewhere.db"
    assert settings.is_stats_authorized("U2")
    assert not settings.is_stats_authorized("U9")


def test_invalid_main_yaml_rejected_by_schema(config_root: Path) -> None:
    (config_root / "config/schemas/main.schema.json").write_text(
        json.dumps(MAIN_SCHEMA), encoding="utf-8"
    )
    write_main(config_root, {"stats": {"top_n": 0}})

    with pytest.raises(ValueError, match="main"):
        load_all_configs()
