"""
Settings for hhflow.

Values are layered, later layers winning:

1. defaults in `Settings`;
2. a YAML file (``--config``, or ``hhflow.yaml`` in the working
   directory when present);
3. environment variables, with a ``.env`` file in the working
   directory loaded first;
4. explicit overrides, usually command line flags.

Only the keys of `Settings` are accepted from YAML; anything else is a
`ConfigError` so typos do not go unnoticed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore
from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "hhflow.yaml"

ENV_VARS = {
    "access_token": "HH_ACCESS_TOKEN",
    "api_base_url": "HH_API_BASE_URL",
    "user_agent": "HH_USER_AGENT",
    "google_credentials": "GOOGLE_APPLICATION_CREDENTIALS",
}


@dataclass
class Settings:
    access_token: Optional[str] = None
    api_base_url: str = "https://api.hh.ru"
    user_agent: str = "hhflow/0.1 (api-test-agent)"
    timeout: float = 15.0
    max_retries: int = 2
    backoff: float = 1.0
    per_page: int = 100
    batch_size: int = 10
    throttle: float = 0.1
    max_duration: float = 60.0
    safety_margin: float = 10.0
    google_credentials: Optional[str] = None

    @property
    def budget(self) -> float:
        """Seconds a run may take before it must return."""
        return self.max_duration - self.safety_margin

    def check(self) -> "Settings":
        for name in ("timeout", "backoff", "throttle", "safety_margin"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")
        for name in ("per_page", "batch_size"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1")
        if self.max_retries < 0:
            raise ConfigError("max_retries must not be negative")
        if self.budget <= 0:
            raise ConfigError("max_duration must be larger than safety_margin")
        return self


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert raw values to the types declared on `Settings`."""
    types = {f.name: f.type for f in fields(Settings)}
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key not in types:
            raise ConfigError(f"Unknown setting: {key}")
        if value is None:
            out[key] = None
            continue
        declared = str(types[key])
        try:
            if declared == "int":
                out[key] = int(value)
            elif declared == "float":
                out[key] = float(value)
            else:
                out[key] = str(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {key}: {value!r}") from exc
    return out


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data


def load_settings(path: Optional[str] = None, **overrides: Any) -> Settings:
    """Build `Settings` from defaults, YAML, environment and overrides.

    Args:
        path: YAML file to read.  A missing explicit path is an error;
            the default ``hhflow.yaml`` is optional.
        overrides: Values that win over every other layer.  ``None``
            values are ignored so unset CLI flags do not mask the file.
    """
    settings = Settings()
    config_path = Path(path) if path else Path(DEFAULT_CONFIG_FILE)
    if config_path.exists():
        logger.debug("Reading settings from %s", config_path)
        settings = replace(settings, **_coerce(_read_yaml(config_path)))
    elif path:
        raise ConfigError(f"Config file not found: {path}")

    load_dotenv(Path.cwd() / ".env")
    env_values = {key: os.environ[var] for key, var in ENV_VARS.items() if os.environ.get(var)}
    settings = replace(settings, **_coerce(env_values))

    given = {k: v for k, v in overrides.items() if v is not None}
    settings = replace(settings, **_coerce(given))
    return settings.check()
