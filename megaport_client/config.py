"""Client configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, cast

import yaml

Environment = Literal["production", "staging", "development"]
ENVIRONMENT_PRODUCTION: Environment = "production"
ENVIRONMENT_STAGING: Environment = "staging"
ENVIRONMENT_DEVELOPMENT: Environment = "development"

ENVIRONMENT_BASE_URLS: dict[Environment, str] = {
    ENVIRONMENT_PRODUCTION: "https://api.megaport.com/",
    ENVIRONMENT_STAGING: "https://api-staging.megaport.com/",
    ENVIRONMENT_DEVELOPMENT: "https://api-mpone-dev.megaport.com/",
}

DEFAULT_CONFIG_PATH = "megaport-config.yaml"


@dataclass(frozen=True, slots=True)
class ClientSettings:
    environment: Environment = ENVIRONMENT_STAGING
    base_url: str = ENVIRONMENT_BASE_URLS[ENVIRONMENT_STAGING]
    access_key: str = ""
    secret_key: str = ""
    access_token: str = ""
    user_agent: str = ""
    http_timeout_seconds: float = 30.0
    log_response_body: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    poll_interval_seconds: float = 30.0
    wait_timeout_seconds: float = 300.0
    config_path: str = DEFAULT_CONFIG_PATH

    @classmethod
    def from_yaml(cls, config_path: str = DEFAULT_CONFIG_PATH) -> ClientSettings:
        normalized_path = config_path.strip() or DEFAULT_CONFIG_PATH
        config = _load_config(normalized_path)

        api_cfg = cast(dict[str, Any], config.get("api", {}))
        auth_cfg = cast(dict[str, Any], config.get("auth", {}))
        provisioning_cfg = cast(dict[str, Any], config.get("provisioning", {}))

        environment = _resolve_environment(api_cfg.get("environment", ENVIRONMENT_STAGING))
        base_url = str(api_cfg.get("base_url") or ENVIRONMENT_BASE_URLS[environment])
        poll_interval_seconds = max(
            1.0, float(provisioning_cfg.get("poll_interval_seconds", 30.0))
        )

        return cls(
            environment=environment,
            base_url=base_url,
            access_key=os.environ.get(
                "MEGAPORT_ACCESS_KEY", str(auth_cfg.get("access_key", ""))
            ),
            secret_key=os.environ.get(
                "MEGAPORT_SECRET_KEY", str(auth_cfg.get("secret_key", ""))
            ),
            access_token=os.environ.get(
                "MEGAPORT_ACCESS_TOKEN", str(auth_cfg.get("access_token", ""))
            ),
            user_agent=str(api_cfg.get("user_agent", "")),
            http_timeout_seconds=max(
                1.0, float(api_cfg.get("timeout_seconds", 30.0))
            ),
            log_response_body=bool(api_cfg.get("log_response_body", False)),
            headers={
                str(key): str(value)
                for key, value in cast(dict[str, Any], api_cfg.get("headers", {})).items()
            },
            poll_interval_seconds=poll_interval_seconds,
            wait_timeout_seconds=max(
                poll_interval_seconds,
                float(provisioning_cfg.get("wait_timeout_seconds", 300.0)),
            ),
            config_path=normalized_path,
        )


def _load_config(config_path: str) -> dict[str, Any]:
    path = Path(config_path)
    if not path.exists() or not path.is_file():
        return {}

    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return parsed
    return {}


def _resolve_environment(value: Any) -> Environment:
    normalized = str(value).strip().lower()
    for environment in ENVIRONMENT_BASE_URLS:
        if normalized == environment:
            return environment

    raise ValueError(
        "unsupported api.environment in config: "
        f"{normalized!r}; expected one of "
        f"{ENVIRONMENT_PRODUCTION!r}, {ENVIRONMENT_STAGING!r}, {ENVIRONMENT_DEVELOPMENT!r}"
    )


@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    return ClientSettings.from_yaml(os.environ.get("MEGAPORT_CONFIG", DEFAULT_CONFIG_PATH))
