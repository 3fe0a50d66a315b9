"""YAML settings for the proxy, with ${VAR} / $VAR placeholders.

Placeholders are filled from a ``.env`` file next to the YAML file first,
then from the process environment. ``os.environ`` itself is never modified.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .adapter import DEFAULT_TEXT_MODEL, DEFAULT_VISION_MODEL

logger = logging.getLogger("gemproxy")

CONFIG_ENV_VAR = "GEMPROXY_CONFIG"
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
PROJECT_ROOT = Path(__file__).resolve().parent.parent

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    """Anchor relative paths at the project root."""
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_env_path(config_path: Path, env_path: Optional[str] = None) -> Path:
    if env_path:
        return resolve_config_path(env_path)
    return config_path.parent / ".env"


def load_env_values(env_path: Path) -> dict[str, str]:
    """Read a .env file into a plain dict; keys without a value are dropped."""
    if not env_path.is_file():
        return {}
    return {name: value for name, value in dotenv_values(env_path).items() if value is not None}


def load_config(
    path: Optional[str] = None,
    env_path: Optional[str] = None,
    substitute_env: bool = True,
) -> dict:
    """Read the YAML config file into a dict.

    Args:
        path: Config file; falls back to $GEMPROXY_CONFIG, then
            configs/config_default.yaml under the project root.
        env_path: .env file to use instead of the one beside the config.
        substitute_env: Fill ${VAR} / $VAR placeholders.

    Raises:
        RuntimeError: The config file does not exist.
    """
    config_path = resolve_config_path(path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Config file not found: {config_path}")

    logger.info(f"Reading config {config_path}")
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not substitute_env:
        return data

    env_file = resolve_env_path(config_path, env_path)
    env_values = load_env_values(env_file)
    if env_values:
        logger.info(f"Using {len(env_values)} values from {env_file}")
    return _substitute_env_vars(data, env_values)


def _lookup(name: str, env_values: Mapping[str, str]) -> Optional[str]:
    if name in env_values:
        return env_values[name]
    return os.environ.get(name)


def _substitute_env_vars(obj: Any, env_values: Optional[Mapping[str, str]] = None) -> Any:
    """Fill placeholders in every string of a nested dict/list structure.

    A placeholder whose variable is unset stays as written.
    """
    values = env_values or {}

    def fill(match: "re.Match[str]") -> str:
        name = match.group(1) or match.group(2)
        value = _lookup(name, values)
        if value is None:
            logger.warning(f"Config placeholder {match.group(0)} has no value; leaving it as is")
            return match.group(0)
        return value

    if isinstance(obj, str):
        return _PLACEHOLDER.sub(fill, obj)
    if isinstance(obj, list):
        return [_substitute_env_vars(item, values) for item in obj]
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(item, values) for key, item in obj.items()}
    return obj


def _section(config: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = config.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


@dataclass
class Settings:
    """Resolved runtime settings."""

    host: str = "127.0.0.1"
    port: int = 8080
    text_model: str = DEFAULT_TEXT_MODEL
    vision_model: str = DEFAULT_VISION_MODEL
    log_level: str = "INFO"
    dump_failed_requests: bool = True
    dump_dir: str = "data"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Settings":
        """Build settings from a loaded config; GEMPROXY_HOST/PORT take priority."""
        server = _section(config, "server")
        models = _section(config, "models")
        logging_cfg = _section(config, "logging")
        defaults = cls()

        host = os.getenv("GEMPROXY_HOST") or str(server.get("host", defaults.host))

        port_value = os.getenv("GEMPROXY_PORT") or server.get("port", defaults.port)
        try:
            port = int(port_value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid port {port_value!r}; falling back to {defaults.port}")
            port = defaults.port

        return cls(
            host=host,
            port=port,
            text_model=str(models.get("text", defaults.text_model)),
            vision_model=str(models.get("vision", defaults.vision_model)),
            log_level=str(logging_cfg.get("level", defaults.log_level)),
            dump_failed_requests=bool(logging_cfg.get("dump_failed_requests", defaults.dump_failed_requests)),
            dump_dir=str(logging_cfg.get("dump_dir", defaults.dump_dir)),
        )


def load_settings(path: Optional[str] = None) -> Settings:
    """Load the config file and resolve it into Settings."""
    return Settings.from_config(load_config(path))
