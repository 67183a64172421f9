from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from webpilot.browser.common import (
    DEFAULT_HISTORY_SETTLE_MS,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_NEW_TAB_WAIT_MS,
    DEFAULT_RECENCY_CAPACITY,
    DEFAULT_ELEMENT_TIMEOUT_MS,
)
from webpilot.browser.launch import SUPPORTED_BROWSER_TYPES
from webpilot.util.file_utils import from_json_or_yaml

logger = logging.getLogger(__name__)

DEFAULT_PORT = 7742
DEFAULT_DEBUG_PORT = 9222
DEFAULT_CHROME_USER_DATA_DIR = os.path.join("~", ".webpilot", "chrome")

# field name -> environment variable; minimums come from _INT_MINIMUMS
_INT_ENV = {
    "port": "WEBPILOT_PORT",
    "debug_port": "WEBPILOT_DEBUG_PORT",
    "recency_capacity": "WEBPILOT_RECENCY_CAPACITY",
}
_STR_ENV = {
    "browser_type": "BROWSER_TYPE",
    "host": "WEBPILOT_HOST",
    "chrome_user_data_dir": "WEBPILOT_CHROME_USER_DATA_DIR",
}
_INT_MINIMUMS = {
    "port": 1,
    "debug_port": 1,
    "recency_capacity": 1,
    "element_timeout_ms": 1,
    "navigation_timeout_ms": 1,
    "history_settle_ms": 0,
    "new_tab_wait_ms": 0,
    "browser_ready_attempts": 1,
}


def _parse_int(value: Any, default: int, minimum: int) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return max(minimum, int(default))
    return max(minimum, parsed)


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    browser_type: str = "chrome"
    debug_port: int = DEFAULT_DEBUG_PORT
    chrome_user_data_dir: str = DEFAULT_CHROME_USER_DATA_DIR
    recency_capacity: int = DEFAULT_RECENCY_CAPACITY
    element_timeout_ms: int = DEFAULT_ELEMENT_TIMEOUT_MS
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    history_settle_ms: int = DEFAULT_HISTORY_SETTLE_MS
    new_tab_wait_ms: int = DEFAULT_NEW_TAB_WAIT_MS
    browser_ready_attempts: int = 5

    def __post_init__(self) -> None:
        self.browser_type = str(self.browser_type).strip().lower()
        if self.browser_type not in SUPPORTED_BROWSER_TYPES:
            raise ValueError(
                f"Unsupported browser type: {self.browser_type}. "
                f"Expected one of {', '.join(SUPPORTED_BROWSER_TYPES)}"
            )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ServerConfig":
        if not isinstance(data, dict):
            return cls()
        # Accept either a flat mapping or one nested under "server".
        section = data.get("server") if isinstance(data.get("server"), dict) else data
        values: Dict[str, Any] = {}
        for item in fields(cls):
            if item.name not in section or section[item.name] is None:
                continue
            raw = section[item.name]
            if item.name in _INT_MINIMUMS:
                values[item.name] = _parse_int(raw, item.default, _INT_MINIMUMS[item.name])
            else:
                values[item.name] = str(raw)
        return cls(**values)

    def with_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> "ServerConfig":
        env = os.environ if environ is None else environ
        changes: Dict[str, Any] = {}
        for name, variable in _STR_ENV.items():
            raw = env.get(variable)
            if raw is not None and raw.strip():
                changes[name] = raw.strip()
        for name, variable in _INT_ENV.items():
            raw = env.get(variable)
            if raw is not None:
                changes[name] = _parse_int(raw, getattr(self, name), _INT_MINIMUMS[name])
        if not changes:
            return self
        logger.debug("Applying environment overrides: %s", sorted(changes))
        return replace(self, **changes)

    @property
    def user_data_dir(self) -> str:
        return os.path.expanduser(self.chrome_user_data_dir)


def load_server_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> ServerConfig:
    """Build the server configuration from an optional file, then the environment."""
    data: Dict[str, Any] = {}
    if path is not None:
        data = from_json_or_yaml(path)
    return ServerConfig.from_dict(data).with_env_overrides(environ)
