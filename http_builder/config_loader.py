"""Config Loader - Loads request profiles from YAML.

Profiles describe a RequestState (URL, headers, cookies, options, encoding
policy) plus the executor policy. String values support ${ENV_VAR}
substitution so secrets stay out of the file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from http_builder.executor import RequestExecutor
from http_builder.models import RequestProfile
from http_builder.state import RequestState
from http_builder.transport import Transport


class ConfigError(Exception):
    """Raised when configuration loading fails."""


_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def load_profile(profile_path: Path) -> RequestProfile:
    """Load a request profile from YAML with ${ENV_VAR} substitution."""
    if not profile_path.exists():
        raise ConfigError(f"Profile file not found: {profile_path}")

    try:
        with open(profile_path, "r", encoding="utf-8") as f:
            raw_profile = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in profile file: {e}") from e

    if raw_profile is None:
        raw_profile = {}
    if not isinstance(raw_profile, dict):
        raise ConfigError("Profile file must be a YAML mapping")

    raw_profile = _substitute_env_vars(raw_profile)

    try:
        return RequestProfile.model_validate(raw_profile)
    except ValidationError as e:
        raise ConfigError(f"Invalid profile structure: {e}") from e


def build_executor(
    profile: RequestProfile,
    transport: Transport | None = None,
) -> RequestExecutor:
    """Create an executor whose state and policy come from a profile."""
    settings = profile.executor
    return RequestExecutor(
        RequestState.from_profile(profile),
        transport,
        json_payload=settings.json_payload,
        raise_on_transport_error=settings.raise_on_transport_error,
        single_shot=settings.single_shot,
    )


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data."""
    if isinstance(data, str):
        return _substitute_string(data)
    elif isinstance(data, dict):
        return {k: _substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _substitute_string(s: str) -> str:
    """Substitute ${ENV_VAR} patterns. Raises ConfigError if env var is not set."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set")
        return value

    return _ENV_VAR_PATTERN.sub(replacer, s)
