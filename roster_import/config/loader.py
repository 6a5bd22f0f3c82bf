from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/import.yml``)
- Validate against config_schema.json (jsonschema)
- Apply defaults (rate_limit_delay_ms=300, error_log_dir=./logs, no timeout)
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "DatabaseConfig",
    "ImportConfig",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

DEFAULT_DELAY_MS = 300
DEFAULT_ERROR_LOG_DIR = "./logs"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; DATABASE_URL / PG* env vars take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    professional_id: str  # practice owner the clients are linked to
    rate_limit_delay_ms: int = DEFAULT_DELAY_MS  # pause between link calls
    link_timeout_seconds: float | None = None  # None: wait for each call indefinitely
    roster_file: str | None = None  # roster snapshot source when no DB
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @property
    def delay_seconds(self) -> float:
        return self.rate_limit_delay_ms / 1000.0


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        professional_id=data["professional_id"],
        rate_limit_delay_ms=data.get("rate_limit_delay_ms", DEFAULT_DELAY_MS),
        link_timeout_seconds=data.get("link_timeout_seconds"),
        roster_file=data.get("roster_file"),
        error_log_dir=data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
        database=db,
    )
