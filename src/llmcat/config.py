"""
TOML-based config file loading for llmcat.

Searches for `.llmcat.toml`, `llmcat.toml`, or `pyproject.toml [tool.llmcat]`
walking up from the current directory. Config values are merged with CLI flags
using three-way precedence: explicit CLI flags > config file > built-in defaults.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, cast

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]

from llmcat.errors import ConfigError

log = logging.getLogger(__name__)


@dataclass
class LlmcatConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    allowing the merge logic to distinguish "not configured" from "explicitly set
    to default value".
    """

    # Decoration
    show_filename: bool | None = None
    show_dashes: bool | None = None
    content_prefix: str | None = None
    content_suffix: str | None = None
    filename_prefix: str | None = None
    filename_suffix: str | None = None
    # File discovery
    base_dir: str | None = None
    exclude: list[str] | None = None
    respect_gitignore: bool | None = None


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".llmcat.toml", "llmcat.toml", "pyproject.toml"]

_VALID_FIELDS = {f.name for f in fields(LlmcatConfig)}

_BOOL_FIELDS = {"show_filename", "show_dashes", "respect_gitignore"}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.llmcat.toml` >
    `llmcat.toml` > `pyproject.toml` (only if it has `[tool.llmcat]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_llmcat_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_llmcat_section(path: Path) -> bool:
    """Check if a pyproject.toml has a [tool.llmcat] section."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        return "llmcat" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError):
        return False


def load_config(config_path: Path) -> LlmcatConfig:
    """
    Load an `LlmcatConfig` from a TOML file. Supports standalone `llmcat.toml` /
    `.llmcat.toml` and `pyproject.toml` (extracts `[tool.llmcat]`).
    Raises `ConfigError` if the file can't be read or parsed, or a setting has
    the wrong type.
    """
    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Error reading config file {config_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in config file {config_path}: {e}") from e

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("llmcat", {})

    try:
        return _parse_config_data(data)
    except ConfigError as e:
        raise ConfigError(f"Invalid value in config file {config_path}: {e}") from e


def _parse_config_data(data: dict[str, Any]) -> LlmcatConfig:
    """Parse a flat or sectioned TOML dict into LlmcatConfig."""
    # Flatten sections: [output] and [files] merge into top level
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            for sub_key, sub_value in cast(dict[str, Any], value).items():
                flat[sub_key] = sub_value
        else:
            flat[key] = value

    mapped: dict[str, Any] = {}
    for key, value in flat.items():
        snake_key = key.replace("-", "_")
        if snake_key in _VALID_FIELDS:
            _check_type(key, snake_key, value)
            mapped[snake_key] = value
        else:
            log.warning("Ignoring unrecognized config key: %s", key)

    return LlmcatConfig(**mapped)


def _check_type(key: str, snake_key: str, value: Any) -> None:
    """Raise `ConfigError` unless `value` has the type the setting expects."""
    if snake_key in _BOOL_FIELDS:
        ok, expected = isinstance(value, bool), "a boolean (true or false)"
    elif snake_key == "exclude":
        ok = isinstance(value, list) and all(
            isinstance(item, str) for item in cast(list[Any], value)
        )
        expected = "a list of strings"
    else:
        ok, expected = isinstance(value, str), "a string"
    if not ok:
        raise ConfigError(f"{key} must be {expected}, got {value!r}")


def merged_value(name: str, cli_value: Any, config: LlmcatConfig | None, default: Any) -> Any:
    """
    Pick a setting with precedence explicit CLI flag > config file > default.
    A `cli_value` of `None` means the flag was not given.
    """
    if cli_value is not None:
        return cli_value
    if config is not None:
        cfg_value = getattr(config, name)
        if cfg_value is not None:
            return cfg_value
    return default
