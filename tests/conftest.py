"""
Pytest configuration and shared fixtures for all tests.

This module provides shared fixtures for the test suite, including:
- The calendar fixture (tests/fixtures/calendar.ics)
- Helpers that write config and token files into a temporary directory
- The fixed "now" the calendar fixture is written against
"""
import json
from datetime import datetime, timezone
from pathlib import Path

import pytest


FIXTURES = Path(__file__).parent / "fixtures"

# Sunday noon UTC: one fixture event is in progress, two are in the past,
# and seven occurrences lie ahead.
FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

VALID_TOKEN = {
    "base": "https://mastodon.example",
    "client_id": "test_client_id",
    "client_secret": "test_client_secret",
    "redirect": "urn:ietf:wg:oauth:2.0:oob",
    "token": "test_access_token",
    "scopes": ["read", "write:statuses"],
}


@pytest.fixture
def calendar_bytes():
    """Raw bytes of the calendar fixture."""
    return (FIXTURES / "calendar.ics").read_bytes()


@pytest.fixture
def write_config(tmp_path):
    """Return a function that writes config.toml and returns its path."""
    def _write(text=None, **overrides):
        if text is None:
            values = {
                "instance": "https://mastodon.example",
                "token_file": "token.json",
                "webcal": "webcal://calendar.example/events.ics",
            }
            values.update(overrides)
            text = "\n".join(f'{key} = {json.dumps(value)}' for key, value in values.items())
        path = tmp_path / "config.toml"
        path.write_text(text + "\n")
        return str(path)
    return _write


@pytest.fixture
def write_token(tmp_path):
    """Return a function that writes token.json next to config.toml."""
    def _write(data=None, raw=None):
        path = tmp_path / "token.json"
        if raw is not None:
            path.write_text(raw)
        else:
            path.write_text(json.dumps(VALID_TOKEN if data is None else data))
        return str(path)
    return _write
