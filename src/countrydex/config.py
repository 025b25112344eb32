import os
import json
import logging
import appdirs
import httpx

from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Dict, Optional

from .debounce import SEARCH_DEBOUNCE_DELAY
from .fetcher import API_ENDPOINT, REQUEST_TIMEOUT
from .pager import GROUP_SIZE, PAGE_SIZE

LOGGER = logging.getLogger(__name__)

APP_NAME = "countrydex"
ENDPOINT_ENV = "COUNTRYDEX_API_ENDPOINT"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    api_endpoint: str = API_ENDPOINT
    page_size: int = PAGE_SIZE
    group_size: int = GROUP_SIZE
    debounce_delay: float = SEARCH_DEBOUNCE_DELAY
    request_timeout: float = REQUEST_TIMEOUT
    drop_stale_responses: bool = False
    theme: str = "nord"

    def validate(self) -> "Settings":
        if not self.api_endpoint:
            raise ConfigError("api_endpoint must not be empty")
        try:
            url = httpx.URL(self.api_endpoint)
        except httpx.InvalidURL as e:
            raise ConfigError(f"api_endpoint is not a valid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigError(
                f"api_endpoint must be an http(s) URL, got {self.api_endpoint!r}"
            )
        if self.page_size < 1:
            raise ConfigError(f"page_size must be at least 1, got {self.page_size}")
        if self.group_size < 1:
            raise ConfigError(f"group_size must be at least 1, got {self.group_size}")
        if self.debounce_delay < 0:
            raise ConfigError("debounce_delay must not be negative")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        return self


def config_file_path(config_dir: Optional[str] = None) -> str:
    config_dir = config_dir or appdirs.user_config_dir(appname=APP_NAME)
    return os.path.join(config_dir, "settings.json")


def _coerce(settings: Settings, values: Dict[str, Any]) -> Settings:
    known = {f.name for f in fields(Settings)}
    updates = {}
    for key, value in values.items():
        if key not in known or value is None:
            continue
        default = getattr(settings, key)
        try:
            if isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ConfigError(f"{key} must be true or false")
                updates[key] = value
            elif isinstance(default, (int, float)) and isinstance(value, bool):
                raise ConfigError(f"{key} must be a number, not {value!r}")
            elif isinstance(default, int):
                if isinstance(value, float) and not value.is_integer():
                    raise ConfigError(f"{key} must be a whole number, got {value!r}")
                updates[key] = int(value)
            elif isinstance(default, float):
                updates[key] = float(value)
            else:
                updates[key] = str(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {key}: {value!r}") from e
    return replace(settings, **updates).validate()


def load_settings(
    config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None
) -> Settings:
    """
    Build settings from defaults, then settings.json, then the environment,
    then explicit overrides (usually command line flags).
    """
    config_file = config_file or config_file_path()
    settings = Settings()

    if os.path.exists(config_file):
        try:
            with open(config_file) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ConfigError("settings file must contain a JSON object")
            settings = _coerce(settings, data)
        except (OSError, json.JSONDecodeError, ConfigError) as e:
            LOGGER.warning(f"Ignoring settings in {config_file}: {e}")
            settings = Settings()

    env_endpoint = os.environ.get(ENDPOINT_ENV)
    if env_endpoint:
        try:
            settings = replace(settings, api_endpoint=env_endpoint).validate()
        except ConfigError as e:
            LOGGER.warning(f"Ignoring {ENDPOINT_ENV}: {e}")

    if overrides:
        settings = _coerce(settings, overrides)
    return settings


def save_settings(settings: Settings, config_file: Optional[str] = None) -> str:
    config_file = config_file or config_file_path()
    os.makedirs(os.path.dirname(config_file), exist_ok=True)
    with open(config_file, "w") as f:
        json.dump(asdict(settings), f, indent=4)
    LOGGER.info(f"Settings saved to {config_file}")
    return config_file
