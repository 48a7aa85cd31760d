"""Configuration persistence: load and save application settings."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from paper_match.errors import ValidationError
from paper_match.models import (
    ARXIV_API_DEFAULT_MAX_RESULTS,
    ARXIV_API_MAX_RESULTS_LIMIT,
    ARXIV_API_RANDOM_MAX_RESULTS,
    CONFIG_APP_NAME,
)
from paper_match.storage import atomic_write_text

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input:
#
#   Field                          Rule                     Handler
#   ─────────────────────────────  ───────────────────────  ────────────────────
#   max_results                    1 ≤ x ≤ 100              _coerce_max_results
#   random_max_results             1 ≤ x ≤ 100              _coerce_max_results
#   request_timeout_seconds        x ≥ 1                    _coerce_positive
#   min_request_interval_seconds   x ≥ 0                    _coerce_interval
#   scalar fields                  type-checked             _safe_get
#
CONFIG_FILENAME = "config.json"
DEFAULT_USER_AGENT = "paper-match/1.0"
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_MIN_REQUEST_INTERVAL = 3.0


@dataclass(slots=True)
class AppConfig:
    """User-editable settings."""

    max_results: int = ARXIV_API_DEFAULT_MAX_RESULTS
    random_max_results: int = ARXIV_API_RANDOM_MAX_RESULTS
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT
    min_request_interval_seconds: float = DEFAULT_MIN_REQUEST_INTERVAL
    user_agent: str = DEFAULT_USER_AGENT
    data_dir: str = ""  # Empty = platformdirs user data dir
    translation_command: str = ""  # e.g. 'trans -b {source}:{target} {text}'; empty = fallback only
    source_language: str = "en"
    target_language: str = "ja"
    version: int = 1


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/paper-match/config.json
    - macOS: ~/Library/Application Support/paper-match/config.json
    - Windows: %APPDATA%/paper-match/config.json
    """
    return Path(user_config_dir(CONFIG_APP_NAME)) / CONFIG_FILENAME


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Return data[key] when it has the expected type, otherwise default."""
    value = data.get(key, default)
    if not isinstance(value, expected_type) or (
        expected_type is not bool and isinstance(value, bool)
    ):
        return default
    return value


def _coerce_max_results(value: Any, default: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        return default
    return max(1, min(value, ARXIV_API_MAX_RESULTS_LIMIT))


def _coerce_positive(value: Any, default: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        return default
    return value


def _coerce_interval(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_MIN_REQUEST_INTERVAL
    return max(0.0, float(value))


def _config_to_dict(config: AppConfig) -> dict[str, Any]:
    return {
        "version": config.version,
        "max_results": _coerce_max_results(config.max_results, ARXIV_API_DEFAULT_MAX_RESULTS),
        "random_max_results": _coerce_max_results(
            config.random_max_results, ARXIV_API_RANDOM_MAX_RESULTS
        ),
        "request_timeout_seconds": config.request_timeout_seconds,
        "min_request_interval_seconds": config.min_request_interval_seconds,
        "user_agent": config.user_agent,
        "data_dir": config.data_dir,
        "translation_command": config.translation_command,
        "source_language": config.source_language,
        "target_language": config.target_language,
    }


def _dict_to_config(data: dict[str, Any]) -> AppConfig:
    """Deserialize a dictionary to AppConfig with type validation."""
    return AppConfig(
        max_results=_coerce_max_results(data.get("max_results"), ARXIV_API_DEFAULT_MAX_RESULTS),
        random_max_results=_coerce_max_results(
            data.get("random_max_results"), ARXIV_API_RANDOM_MAX_RESULTS
        ),
        request_timeout_seconds=_coerce_positive(
            data.get("request_timeout_seconds"), DEFAULT_REQUEST_TIMEOUT
        ),
        min_request_interval_seconds=_coerce_interval(
            data.get("min_request_interval_seconds", DEFAULT_MIN_REQUEST_INTERVAL)
        ),
        user_agent=_safe_get(data, "user_agent", DEFAULT_USER_AGENT, str) or DEFAULT_USER_AGENT,
        data_dir=_safe_get(data, "data_dir", "", str),
        translation_command=_safe_get(data, "translation_command", "", str),
        source_language=_safe_get(data, "source_language", "en", str) or "en",
        target_language=_safe_get(data, "target_language", "ja", str) or "ja",
        version=_safe_get(data, "version", 1, int),
    )


def update_config(config: AppConfig, key: str, raw_value: str) -> AppConfig:
    """Return a copy of ``config`` with one setting changed from its text form.

    Numeric settings are parsed and then clamped like a loaded file.

    Raises:
        ValidationError: If the key is unknown or the value has the wrong type.
    """
    data = _config_to_dict(config)
    if key not in data or key == "version":
        raise ValidationError(f"Unknown setting {key!r}")

    current = data[key]
    value: Any = raw_value
    if not isinstance(current, str):
        try:
            value = json.loads(raw_value)
        except json.JSONDecodeError:
            value = None
        wanted = int if isinstance(current, int) else (int, float)
        if isinstance(value, bool) or not isinstance(value, wanted):
            raise ValidationError(f"{key} expects a number, got {raw_value!r}")
    data[key] = value
    return _dict_to_config(data)


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk.

    Returns default config if the file doesn't exist or is corrupted.
    """
    config_path = path if path is not None else get_config_path()

    if not config_path.exists():
        return AppConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return AppConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return AppConfig()

    if not isinstance(data, dict):
        logger.warning("Config file root is %s, using defaults", type(data).__name__)
        return AppConfig()
    return _dict_to_config(data)


def save_config(config: AppConfig, path: Path | None = None) -> bool:
    """Save configuration to disk atomically.

    Returns True on success, False on failure.
    """
    config_path = path if path is not None else get_config_path()

    try:
        atomic_write_text(
            config_path, json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        )
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "DEFAULT_USER_AGENT",
    "AppConfig",
    "get_config_path",
    "load_config",
    "save_config",
    "update_config",
]
