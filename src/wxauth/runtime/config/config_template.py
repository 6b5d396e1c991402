"""Configuration template substitution utilities."""

import os
import re
from collections.abc import Mapping
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from wxauth.runtime.config.config_data import DEV_SIGNING_SECRET, ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(text: str, environ: Mapping[str, str] | None = None) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message

    Full-line comments are left untouched.
    """
    env = os.environ if environ is None else environ

    def replacer(match: re.Match[str]) -> str:
        var_expr = match.group(1)

        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return env.get(var_name, default)

        if ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = env.get(var_name)
            if value is None:
                raise ValueError(f"Required environment variable {var_name}: {error_msg}")
            return value

        value = env.get(var_expr)
        if value is None:
            raise ValueError(f"Required environment variable {var_expr} not set")
        return value

    return "".join(
        line if line.lstrip().startswith("#") else _PLACEHOLDER.sub(replacer, line)
        for line in text.splitlines(keepends=True)
    )


def environment_overrides(
    env_mode: str, environ: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Return the environment with ``<ENV>_``-prefixed variables promoted.

    ``PRODUCTION_JWT_SIGNING_SECRET`` becomes ``JWT_SIGNING_SECRET`` when the
    environment mode is ``production``.
    """
    env = dict(os.environ if environ is None else environ)
    prefix = f"{env_mode.upper()}_"
    promoted = {
        name[len(prefix) :]: value
        for name, value in env.items()
        if name.startswith(prefix)
    }
    if promoted:
        logger.info(
            "Applying environment-specific overrides: {}", sorted(promoted.keys())
        )
    env.update(promoted)
    return env


def validate_config(config: ConfigData) -> ConfigData:
    """Reject configurations that must never reach a running service."""
    if not config.jwt.signing_secret:
        raise ValueError("jwt.signing_secret must not be empty")
    if (
        config.app.environment == "production"
        and config.jwt.signing_secret == DEV_SIGNING_SECRET
    ):
        raise ValueError("jwt.signing_secret uses the development default in production")
    if config.app.environment == "production" and (
        not config.wechat.appid or not config.wechat.secret
    ):
        raise ValueError("wechat.appid and wechat.secret are required in production")
    if config.app.environment == "production" and "*" in config.app.cors.origins:
        raise ValueError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )
    return config


def load_templated_yaml(
    file_path: Path,
    env_mode: str = "development",
    environ: Mapping[str, str] | None = None,
) -> ConfigData:
    """
    Load a YAML file with environment variable substitution.

    Args:
        file_path: Path to the YAML file
        env_mode: Environment whose prefixed variables override plain ones
        environ: Environment mapping to read from (defaults to os.environ)

    Returns:
        Validated configuration

    Raises:
        ValueError: If required environment variables are missing or the
            configuration does not validate
        FileNotFoundError: If the YAML file doesn't exist
    """
    with open(file_path) as f:
        content = f.read()

    logger.info("Loading configuration for environment: {}", env_mode)
    env = environment_overrides(env_mode, environ)

    substituted_content = substitute_env_vars(content, env)

    try:
        loaded = yaml.safe_load(substituted_content)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not isinstance(loaded, dict):
        raise ValueError("Failed to parse YAML")

    try:
        config = ConfigData(**(loaded.get("config") or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    return validate_config(config)
