"""
Mastodon Integration Module for ical-to-masto.

This module provides the OAuth2 registration flow and status posting
for Mastodon-compatible instances.

The module handles:
- App registration and code-for-token exchange
- Status posting with a stored access token

Usage:
    >>> from config import load_config, load_token
    >>> client = MastodonClient.from_token(load_token(load_config()))
    >>> client.post_status("Hello from ical-to-masto!")
"""

from .mastodon_client import MastodonClient, OOB_REDIRECT_URI

__all__ = ["MastodonClient", "OOB_REDIRECT_URI"]
