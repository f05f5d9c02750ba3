"""
Configuration Module for ical-to-masto.

This module loads the TOML configuration file and the JSON token file
written by the `register` command. Both are validated against the JSON
schemas in the schema package before anything else touches them.

Configuration file (config.toml):
    instance = "https://mastodon.social"
    token_file = "token.json"
    webcal = "webcal://example.com/calendar.ics"
    timezone = "Europe/Berlin"        # optional, default UTC
    visibility = "unlisted"           # optional, default public
    lookahead_days = 90               # optional, default 365

Usage:
    >>> from config import load_config, load_token
    >>> config = load_config("config.toml")
    >>> token = load_token(config)
"""
import os
import json
import logging
from pathlib import Path
from typing import Dict, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import toml
from jsonschema import ValidationError, validate

from schema import CONFIG_SCHEMA, TOKEN_SCHEMA


logger = logging.getLogger(__name__)
DEFAULT_CONFIG_PATH = "config.toml"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_VISIBILITY = "public"
DEFAULT_LOOKAHEAD_DAYS = 365
DEFAULT_CLIENT_NAME = "ical-to-masto"


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


class TokenError(Exception):
    """Raised when the token file is missing or invalid."""


def _describe_validation_error(error: ValidationError) -> str:
    location = ".".join(str(p) for p in error.absolute_path)
    if location:
        return f"'{location}': {error.message}"
    return error.message


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML configuration file

    Returns:
        Dictionary containing configuration settings with defaults applied.
        ``token_file`` is resolved relative to the config file's directory.

    Raises:
        ConfigError: If the file is missing, not valid TOML, or fails
            schema validation

    Example:
        >>> config = load_config("config.toml")
        >>> config["instance"]
        'https://mastodon.social'
    """
    try:
        with open(config_path, "r") as f:
            config = toml.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {config_path}") from None
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Error parsing configuration file {config_path}: {e}") from e

    try:
        validate(instance=config, schema=CONFIG_SCHEMA)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {config_path}: {_describe_validation_error(e)}"
        )

    config.setdefault("visibility", DEFAULT_VISIBILITY)
    config.setdefault("lookahead_days", DEFAULT_LOOKAHEAD_DAYS)
    config.setdefault("client_name", DEFAULT_CLIENT_NAME)
    config["instance"] = config["instance"].rstrip("/")
    config["timezone"] = get_timezone_name(config)

    token_file = Path(config["token_file"]).expanduser()
    if not token_file.is_absolute():
        token_file = Path(config_path).resolve().parent / token_file
    config["token_file"] = str(token_file)

    logger.info(f"Loaded configuration from {config_path}")
    logger.info(f"Instance: {config['instance']}")
    return config


def get_timezone_name(config: Dict[str, Any]) -> str:
    """Return a validated timezone name from config, with UTC fallback."""
    tz_name = config.get("timezone", DEFAULT_TIMEZONE)
    if not isinstance(tz_name, str) or not tz_name.strip():
        logger.warning(f"Invalid timezone configuration {tz_name!r}; falling back to {DEFAULT_TIMEZONE}")
        return DEFAULT_TIMEZONE

    tz_name = tz_name.strip()
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{tz_name}'; falling back to {DEFAULT_TIMEZONE}")
        return DEFAULT_TIMEZONE

    return tz_name


def get_timezone(config: Dict[str, Any]) -> ZoneInfo:
    """Return a validated ZoneInfo instance from config."""
    return ZoneInfo(get_timezone_name(config))


def load_token(config: Dict[str, Any]) -> Dict[str, Any]:
    """Load the OAuth2 credentials saved by the register command.

    Args:
        config: Configuration dictionary from load_config()

    Returns:
        Token dictionary with base, client_id, client_secret and token keys

    Raises:
        TokenError: If the token file doesn't exist, isn't valid JSON, or is
            missing required fields
    """
    token_file = config["token_file"]

    if not os.path.exists(token_file):
        raise TokenError(
            f"No authentication token found at {token_file}. "
            "Please run the 'register' command first."
        )

    try:
        with open(token_file, "r") as f:
            token_data = json.load(f)
    except json.JSONDecodeError as e:
        raise TokenError(f"Token file {token_file} is not valid JSON: {e}") from e

    try:
        validate(instance=token_data, schema=TOKEN_SCHEMA)
    except ValidationError as e:
        raise TokenError(
            f"Invalid token file {token_file}: {_describe_validation_error(e)}"
        )

    logger.debug(f"Loaded token for {token_data['base']} from {token_file}")
    return token_data


def save_token(config: Dict[str, Any], token_data: Dict[str, Any]) -> None:
    """Write OAuth2 credentials to the configured token file.

    Parent directories are created as needed. The file is readable by the
    owner only, since it holds the client secret and access token.

    Args:
        config: Configuration dictionary from load_config()
        token_data: Token dictionary (see schema/token_schema.json)

    Raises:
        TokenError: If token_data is missing required fields
    """
    try:
        validate(instance=token_data, schema=TOKEN_SCHEMA)
    except ValidationError as e:
        raise TokenError(f"Refusing to save invalid token: {_describe_validation_error(e)}")

    token_file = Path(config["token_file"])
    token_file.parent.mkdir(parents=True, exist_ok=True)

    with open(token_file, "w") as f:
        json.dump(token_data, f, indent=2)
        f.write("\n")
    os.chmod(token_file, 0o600)

    logger.info(f"Authentication token saved to: {token_file}")
