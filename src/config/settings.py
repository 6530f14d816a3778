"""Application settings with Pydantic Settings validation.

Secrets (tokens, signing secret) are loaded from the environment or .env file.
Non-sensitive configuration is loaded from config/main.yaml and config/*.yaml.
All configs are merged and validated against JSON schemas when available.
"""

import json
from pathlib import Path
from typing import Annotated, Any, Final, cast

import yaml
from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from src.config.logging_config import get_logger
from src.domain.kudos_constants import (
    DIRECTORY_CACHE_TTL_SECONDS,
    STATS_MONTHS_BACK,
    STATS_TOP_N,
    SUBMISSION_COOLDOWN_MS,
)

KUDOS_DB_FILENAME: Final[str] = "kudos.db"
DEFAULT_PORT: Final[int] = 3000

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str) -> dict[str, Any]:
    """Load JSON Schema from config/schemas/.

    Args:
        schema_name: Schema name without extension (e.g., "main")

    Returns:
        JSON Schema dictionary or empty dict if not found
    """
    schema_path = Path("config/schemas") / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(
            "config_schema_load_failed",
            schema=schema_name,
            error=str(e),
        )
        return {}


def validate_config_section(
    config: dict[str, Any], schema_name: str, file_path: str = ""
) -> None:
    """Validate config section against JSON Schema.

    Args:
        config: Configuration dictionary to validate
        schema_name: Name of schema to validate against
        file_path: Optional file path for error messages

    Raises:
        ValueError: If validation fails
    """
    schema = load_schema(schema_name)
    if not schema:
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ValueError(error_msg) from e


def load_all_configs(config_dir: Path = Path("config")) -> dict[str, Any]:
    """Load and merge all YAML configs from the config directory.

    Loading order (later overrides earlier):
    1. config/main.yaml
    2. All other config/*.yaml files (sorted alphabetically)

    Each file is validated against config/schemas/<stem>.schema.json if present.

    Returns:
        Merged configuration dictionary
    """
    merged_config: dict[str, Any] = {}
    if not config_dir.is_dir():
        return merged_config

    main_path = config_dir / "main.yaml"
    yaml_files = sorted(f for f in config_dir.glob("*.yaml") if f.name != "main.yaml")
    if main_path.exists():
        yaml_files.insert(0, main_path)

    for yaml_file in yaml_files:
        schema_name = yaml_file.stem
        try:
            with open(yaml_file, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "config_file_load_failed",
                path=str(yaml_file),
                error=str(e),
            )
            continue

        try:
            validate_config_section(file_config, schema_name, str(yaml_file))
        except ValueError as e:
            logger.error(
                "config_validation_failed",
                path=str(yaml_file),
                schema=schema_name,
                error=str(e),
            )
            raise

        merged_config = deep_merge(merged_config, file_config)
        logger.debug("config_file_loaded", path=str(yaml_file), schema=schema_name)

    logger.info("config_load_complete", file_count=len(yaml_files))
    return merged_config


class Settings(BaseSettings):
    """Application settings.

    Secrets come from the environment (.env supported).
    Non-sensitive config comes from config/*.yaml with fallback to defaults;
    environment values always win over YAML.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from env) ===

    slack_bot_token: SecretStr = Field(
        ..., description="Slack Bot User OAuth Token (xoxb-...)"
    )
    slack_signing_secret: SecretStr | None = Field(
        default=None, description="Request signing secret (HTTP mode)"
    )
    slack_app_token: SecretStr | None = Field(
        default=None, description="App-level token (xapp-...), enables Socket Mode"
    )

    # === NON-SENSITIVE CONFIG ===

    data_dir: str = Field(default="data", description="Directory for the kudos DB")
    db_path: str | None = Field(
        default=None, description="SQLite file path (default: <data_dir>/kudos.db)"
    )
    port: int = Field(default=DEFAULT_PORT, description="HTTP listening port")

    cooldown_ms: int = Field(
        default=SUBMISSION_COOLDOWN_MS,
        ge=0,
        description="Minimum interval between submissions from one user",
    )
    directory_cache_ttl_seconds: float = Field(
        default=DIRECTORY_CACHE_TTL_SECONDS,
        gt=0,
        description="Freshness window of the cached member list",
    )

    stats_months_back: int = Field(
        default=STATS_MONTHS_BACK, ge=1, description="Leaderboard window (months)"
    )
    stats_top_n: int = Field(
        default=STATS_TOP_N, ge=1, description="Rows per leaderboard"
    )
    authorized_stats_users: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="User IDs allowed to run /stats (empty = everyone)",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("slack_bot_token", mode="before")
    @classmethod
    def _ensure_secret(cls, value: SecretStr | str | None) -> SecretStr:
        if value is None:
            raise ValueError("slack_bot_token must be provided")

        if isinstance(value, SecretStr):
            secret_value = value.get_secret_value()
        else:
            secret_value = str(value)

        if not secret_value.strip():
            raise ValueError("slack_bot_token must not be empty")

        return value if isinstance(value, SecretStr) else SecretStr(secret_value)

    @field_validator("authorized_stats_users", mode="before")
    @classmethod
    def _split_user_ids(cls, value: Any) -> list[str]:
        """Accept a comma-separated string (env) or a list (YAML)."""
        if value is None:
            return []
        if isinstance(value, str):
            items: list[Any] = value.split(",")
        else:
            items = list(value)
        return [str(item).strip() for item in items if str(item).strip()]

    def __init__(self, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        database_config = config.get("database") or {}
        _assign("data_dir", database_config.get("data_dir"))
        _assign("db_path", database_config.get("path"))

        server_config = config.get("server") or {}
        _assign("port", server_config.get("port"))

        kudos_config = config.get("kudos") or {}
        _assign("cooldown_ms", kudos_config.get("cooldown_ms"))
        _assign(
            "directory_cache_ttl_seconds",
            kudos_config.get("directory_cache_ttl_seconds"),
        )

        stats_config = config.get("stats") or {}
        _assign("stats_months_back", stats_config.get("months_back"))
        _assign("stats_top_n", stats_config.get("top_n"))
        authorized = stats_config.get("authorized_users")
        if authorized is not None:
            _assign("authorized_stats_users", self._split_user_ids(authorized))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))
        _assign("json_logs", logging_config.get("json"))

    @property
    def kudos_db_path(self) -> str:
        """SQLite file path, derived from data_dir unless set explicitly."""
        if self.db_path:
            return self.db_path
        return str(Path(self.data_dir) / KUDOS_DB_FILENAME)

    def is_stats_authorized(self, user_id: str) -> bool:
        """Empty allow-list means everyone may view stats."""
        if not self.authorized_stats_users:
            return True
        return user_id in self.authorized_stats_users


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
