from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (config/onboarding.yml by default)
- Validate against the bundled JSON schema (unknown keys are rejected)
- Apply defaults for every optional key
- Overlay CHP_API_* environment variables (populated from .env by the CLI)
"""

SCHEMA_PATH = Path(__file__).with_name("schema.json")
DEFAULT_CONFIG_PATH = Path("config/onboarding.yml")

DEFAULT_LOOKUP_PATH = "/users/exists"
DEFAULT_REGISTER_PATH = "/auth/register"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_ROLE = "CHP"
DEFAULT_PASSWORD = "ChangeMe@123"
DEFAULT_EMAIL_DOMAIN = "chp.local"
DEFAULT_MAX_ATTEMPTS = 999

ENV_BASE_URL = "CHP_API_BASE_URL"
ENV_TOKEN = "CHP_API_TOKEN"
ENV_TIMEOUT = "CHP_API_TIMEOUT"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    lookup_path: str = DEFAULT_LOOKUP_PATH
    register_path: str = DEFAULT_REGISTER_PATH
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    token: str | None = None

    @property
    def lookup_url(self) -> str:
        return self.base_url.rstrip("/") + self.lookup_path

    @property
    def register_url(self) -> str:
        return self.base_url.rstrip("/") + self.register_path


@dataclass(frozen=True)
class RegistrationDefaults:
    """Fixed values synthesized into every registration payload."""
    role: str = DEFAULT_ROLE
    default_password: str = DEFAULT_PASSWORD
    email_domain: str = DEFAULT_EMAIL_DOMAIN


@dataclass(frozen=True)
class OnboardingConfig:
    api: ApiConfig
    registration: RegistrationDefaults = RegistrationDefaults()
    max_username_attempts: int = DEFAULT_MAX_ATTEMPTS
    error_log_dir: str = "./logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the config fails
            validation (missing required keys, wrong types, unknown keys).
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


def _apply_env_overrides(api: ApiConfig) -> ApiConfig:
    overrides: dict[str, Any] = {}
    if os.getenv(ENV_BASE_URL):
        overrides["base_url"] = os.environ[ENV_BASE_URL]
    if os.getenv(ENV_TOKEN):
        overrides["token"] = os.environ[ENV_TOKEN]
    raw_timeout = os.getenv(ENV_TIMEOUT)
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError as e:
            raise ConfigError(f"{ENV_TIMEOUT} must be a number: {raw_timeout!r}") from e
        if timeout <= 0:
            raise ConfigError(f"{ENV_TIMEOUT} must be positive: {raw_timeout!r}")
        overrides["timeout_seconds"] = timeout
    return replace(api, **overrides) if overrides else api


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> OnboardingConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    api_raw = data["api"]
    api = ApiConfig(
        base_url=api_raw["base_url"],
        lookup_path=api_raw.get("lookup_path", DEFAULT_LOOKUP_PATH),
        register_path=api_raw.get("register_path", DEFAULT_REGISTER_PATH),
        timeout_seconds=float(api_raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        token=api_raw.get("token"),
    )
    reg_raw = data.get("registration", {})
    registration = RegistrationDefaults(
        role=reg_raw.get("role", DEFAULT_ROLE),
        default_password=reg_raw.get("default_password", DEFAULT_PASSWORD),
        email_domain=reg_raw.get("email_domain", DEFAULT_EMAIL_DOMAIN),
    )
    return OnboardingConfig(
        api=_apply_env_overrides(api),
        registration=registration,
        max_username_attempts=data.get("username", {}).get("max_attempts", DEFAULT_MAX_ATTEMPTS),
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
