"""Client configuration with JSON persistence and environment overrides.

Configuration is read, in increasing precedence, from:

- ``ServerConfig`` defaults
- ``config.json`` in the per-user data directory
- ``TIMETRACKER_*`` environment variables

Usage::

    config = load_config()
    client = HttpClient(config.server_url, api_key=config.api_key, timeout=config.timeout)
"""

import json
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional

from shared.logging_config import get_client_logger
from shared.models import ServerConfig
from shared.utils import get_data_path

logger = get_client_logger()

CONFIG_FILENAME = 'config.json'

ENV_OVERRIDES = {
    'TIMETRACKER_SERVER_URL': 'server_url',
    'TIMETRACKER_API_KEY': 'api_key',
    'TIMETRACKER_TIMEOUT': 'timeout',
    'TIMETRACKER_LOG_LEVEL': 'log_level',
}


def get_config_path() -> Path:
    return get_data_path(CONFIG_FILENAME)


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return {}

    # Only use keys that exist in the dataclass
    valid_keys = {f.name for f in fields(ServerConfig)}
    return {k: v for k, v in data.items() if k in valid_keys}


def load_config(path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> ServerConfig:
    """Load configuration from file and environment, falling back to defaults.

    Raises:
        ValueError: if the merged values fail ``ServerConfig`` validation
    """
    environ = os.environ if environ is None else environ
    values = _read_config_file(path or get_config_path())

    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            values[key] = environ[env_name]

    if 'timeout' in values:
        try:
            values['timeout'] = int(values['timeout'])
        except (TypeError, ValueError):
            raise ValueError(f"Timeout must be an integer, got {values['timeout']!r}")

    return ServerConfig.from_dict(values)


def save_config(config: ServerConfig, path: Optional[Path] = None) -> None:
    """Write configuration to disk as JSON."""
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2) + "\n", encoding='utf-8')
    logger.info(f"Configuration saved to {path}")
