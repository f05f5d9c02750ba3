"""
Unit Tests for Configuration Module.

This test suite validates TOML configuration loading and the token file
round trip used by the register command.
"""
import json
import os
import stat

import pytest

from config import (
    ConfigError,
    TokenError,
    get_timezone_name,
    load_config,
    load_token,
    save_token,
)


def test_load_config_with_required_keys(write_config, tmp_path):
    """Test loading a config with the three required keys."""
    config = load_config(write_config())

    assert config["instance"] == "https://mastodon.example"
    assert config["webcal"] == "webcal://calendar.example/events.ics"
    assert config["token_file"] == str(tmp_path / "token.json")


def test_load_config_applies_defaults(write_config):
    """Test default values for optional keys."""
    config = load_config(write_config())

    assert config["timezone"] == "UTC"
    assert config["visibility"] == "public"
    assert config["lookahead_days"] == 365
    assert config["client_name"] == "ical-to-masto"


def test_load_config_keeps_optional_values(write_config):
    """Test that optional values from the file win over defaults."""
    config = load_config(write_config(
        timezone="Europe/Berlin",
        visibility="unlisted",
        lookahead_days=30,
    ))

    assert config["timezone"] == "Europe/Berlin"
    assert config["visibility"] == "unlisted"
    assert config["lookahead_days"] == 30


def test_load_config_strips_trailing_slash(write_config):
    config = load_config(write_config(instance="https://mastodon.example/"))
    assert config["instance"] == "https://mastodon.example"


def test_load_config_absolute_token_file(write_config, tmp_path):
    """Test that absolute token paths are used as-is."""
    token_path = str(tmp_path / "secrets" / "token.json")
    config = load_config(write_config(token_file=token_path))
    assert config["token_file"] == token_path


def test_load_config_unknown_timezone_falls_back(write_config):
    config = load_config(write_config(timezone="Mars/Olympus_Mons"))
    assert config["timezone"] == "UTC"


def test_load_config_file_not_found(tmp_path):
    """Test loading config when file doesn't exist."""
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "missing.toml"))


def test_load_config_invalid_toml(write_config):
    with pytest.raises(ConfigError, match="Error parsing"):
        load_config(write_config(text="instance = [unterminated"))


@pytest.mark.parametrize("missing", ["instance", "token_file", "webcal"])
def test_load_config_missing_required_key(write_config, missing):
    """Test that each of the three required keys is enforced."""
    values = {
        "instance": "https://mastodon.example",
        "token_file": "token.json",
        "webcal": "https://calendar.example/events.ics",
    }
    del values[missing]
    text = "\n".join(f'{k} = "{v}"' for k, v in values.items())

    with pytest.raises(ConfigError, match=missing):
        load_config(write_config(text=text))


def test_load_config_wrong_type(write_config):
    with pytest.raises(ConfigError, match="lookahead_days"):
        load_config(write_config(lookahead_days="soon"))


def test_load_config_invalid_visibility(write_config):
    with pytest.raises(ConfigError, match="visibility"):
        load_config(write_config(visibility="everyone"))


def test_get_timezone_name_blank():
    assert get_timezone_name({"timezone": "  "}) == "UTC"
    assert get_timezone_name({}) == "UTC"


def test_load_token_success(write_config, write_token):
    config = load_config(write_config())
    write_token()

    token = load_token(config)

    assert token["base"] == "https://mastodon.example"
    assert token["token"] == "test_access_token"


def test_load_token_missing_file(write_config):
    """Test that a missing token file points the user at 'register'."""
    config = load_config(write_config())

    with pytest.raises(TokenError, match="register"):
        load_token(config)


def test_load_token_invalid_json(write_config, write_token):
    config = load_config(write_config())
    write_token(raw="{not json")

    with pytest.raises(TokenError, match="not valid JSON"):
        load_token(config)


def test_load_token_missing_fields(write_config, write_token):
    config = load_config(write_config())
    write_token(data={"base": "https://mastodon.example", "client_id": "abc", "token": "t"})

    with pytest.raises(TokenError, match="client_secret"):
        load_token(config)


def test_save_token_creates_directories(write_config, tmp_path):
    """Test that save_token creates parent directories and a private file."""
    token_path = tmp_path / "nested" / "dir" / "token.json"
    config = load_config(write_config(token_file=str(token_path)))
    token_data = {
        "base": "https://mastodon.example",
        "client_id": "id",
        "client_secret": "secret",
        "redirect": "urn:ietf:wg:oauth:2.0:oob",
        "token": "access",
    }

    save_token(config, token_data)

    assert json.loads(token_path.read_text()) == token_data
    assert stat.S_IMODE(os.stat(token_path).st_mode) == 0o600
    assert load_token(config) == token_data


def test_save_token_rejects_incomplete_data(write_config, tmp_path):
    config = load_config(write_config())

    with pytest.raises(TokenError):
        save_token(config, {"base": "https://mastodon.example"})

    assert not (tmp_path / "token.json").exists()
