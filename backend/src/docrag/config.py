import logging
import os
import re
from pathlib import Path
from typing import Any

import toml

from docrag.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_STORAGE_DIR = "storage"
DEFAULT_SNAPSHOT_NAME = "vectorstore"

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def resolve_path(path: str | Path, config_path: Path) -> Path:
    """Resolve a path against the directory holding the config file.

    Absolute paths are returned unchanged.
    """
    path = Path(path)
    if path.is_absolute():
        return path
    return (config_path.parent / path).resolve()


def find_config_path(explicit_path: Path | None = None) -> Path:
    """Locate config.toml: explicit path, then cwd, then the repository root.

    Raises:
        ConfigurationError: If no candidate exists.
    """
    if explicit_path:
        if not explicit_path.exists():
            raise ConfigurationError(f"Config file not found: {explicit_path}")
        return explicit_path

    candidates = [
        Path("config.toml"),
        Path(__file__).resolve().parents[3] / "config.toml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    raise ConfigurationError("config.toml not found")


def load_config(config_path: Path = Path("config.toml")) -> dict[str, Any]:
    """Load a TOML config, expanding ${VAR} and ${VAR:-default} in string values.

    Raises:
        ConfigurationError: If the file is missing or is not valid TOML.
    """
    try:
        config = toml.load(config_path)
    except (OSError, toml.TomlDecodeError) as e:
        raise ConfigurationError(f"Failed to load {config_path}: {e}") from e
    return _expand_env(config)


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_PATTERN.sub(_env_replacement, value)
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    return value


def _env_replacement(match: re.Match) -> str:
    name, default = match.group(1), match.group(2)
    return os.environ.get(name, default or "")


def get_config_value(config: dict, key_path: str, default: Any = None) -> Any:
    """Look up a nested value by dotted path, e.g. "index.ef_search"."""
    node: Any = config
    for key in key_path.split("."):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def get_storage_dir(config: dict, config_path: Path) -> Path:
    """Resolved storage directory from the [storage] section."""
    storage_dir = get_config_value(config, "storage.directory", DEFAULT_STORAGE_DIR)
    return resolve_path(storage_dir, config_path)


def get_snapshot_dir(config: dict, config_path: Path) -> Path:
    """Directory holding the FAISS index and its document ledger."""
    snapshot = get_config_value(config, "storage.snapshot", DEFAULT_SNAPSHOT_NAME)
    return get_storage_dir(config, config_path) / snapshot


def setup_logging(config: dict | None = None) -> None:
    """Configure root logging from the [logging] section."""
    level_name = str(get_config_value(config or {}, "logging.level", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
