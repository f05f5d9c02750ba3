"""
ical-to-masto Command Line Module.

This module provides the `ical-to-masto` console command, which posts
upcoming events from an iCal feed to a Mastodon-compatible instance.

Commands:
    register      Register the app with the instance and save an access token
    post-next     Post the next upcoming event
    post-all      Post every upcoming event, earliest first
    post-status   Post arbitrary text

Every command takes -c/--config pointing at a TOML file with the keys
instance, token_file and webcal.

Exit Status:
    0 on success, 1 on any error (bad config, missing token, network or
    API failure). The config and token are always loaded before any
    network request is made.

Example:
    $ ical-to-masto register -c config.toml
    $ ical-to-masto post-next -c config.toml
    $ ical-to-masto post-status -c config.toml "Doors open at 7!"
"""
import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Optional

import requests
from mastodon import MastodonError

from config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    TokenError,
    get_timezone,
    load_config,
    load_token,
    save_token,
)
from mastodon_client import MastodonClient, OOB_REDIRECT_URI
from webcal import CalendarError, Event, format_event, get_upcoming_events, next_event


logger = logging.getLogger(__name__)

VISIBILITIES = ["public", "unlisted", "private", "direct"]
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Errors reported to the user as "Error: ..." with exit status 1
USER_ERRORS = (
    ConfigError,
    TokenError,
    CalendarError,
    MastodonError,
    requests.RequestException,
    ValueError,
    OSError,
)


def configure_logging(debug: bool = False, log_file: Optional[str] = None) -> None:
    """Configure the root logger.

    Logs go to stderr so stdout carries only command output. With a
    log_file, a rotating file handler (10MB, 3 backups) is added too.
    """
    log_level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Mastodon.py and urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO if debug else logging.WARNING)


def _print_posted(result: Dict[str, Any]) -> None:
    print(f"Status posted: {result.get('url') or result.get('uri') or result['id']}")


def cmd_register(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Register the app, walk the user through authorization, save the token."""
    scopes = args.scopes.split() if args.scopes else None
    app_name = args.client_name or config["client_name"]
    website = args.website or config.get("website")

    client_id, client_secret = MastodonClient.register_app(
        config["instance"],
        app_name=app_name,
        scopes=scopes,
        redirect_uri=args.redirect_uri,
        website=website
    )
    client = MastodonClient(
        instance_url=config["instance"],
        client_id=client_id,
        client_secret=client_secret,
        scopes=scopes
    )

    print("Application registered. Open this URL in your browser to authorize it:")
    print(client.get_authorization_url(redirect_uri=args.redirect_uri))
    print()
    code = input("Paste the authorization code here: ")

    client.get_access_token(code, redirect_uri=args.redirect_uri)
    save_token(config, client.to_token(redirect_uri=args.redirect_uri))
    print(f"Login successful. Token saved to {config['token_file']}")
    return 0


def _post_events(args: argparse.Namespace, config: Dict[str, Any], events: List[Event]) -> int:
    tz = get_timezone(config)
    visibility = args.visibility or config["visibility"]

    client = None
    if not args.dry_run:
        client = MastodonClient.from_token(args.token)

    for event in events:
        text = format_event(event, tz)
        if client is None:
            print(text)
            print()
            continue
        logger.info(f"Posting event '{event.title}' starting {event.start.isoformat()}")
        _print_posted(client.post_status(text, visibility=visibility))
    return 0


def cmd_post_next(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Post the nearest upcoming event."""
    event = next_event(get_upcoming_events(config))
    if event is None:
        print("No upcoming events.")
        return 0
    return _post_events(args, config, [event])


def cmd_post_all(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Post every upcoming event in chronological order."""
    events = get_upcoming_events(config)
    if not events:
        print("No upcoming events.")
        return 0
    return _post_events(args, config, events)


def cmd_post_status(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Post the text given on the command line."""
    if not args.text.strip():
        raise ValueError("Status text is empty")

    client = MastodonClient.from_token(args.token)
    result = client.post_status(
        args.text,
        visibility=args.visibility or config["visibility"],
        sensitive=args.sensitive,
        spoiler_text=args.spoiler_text,
        language=args.language,
        in_reply_to_id=args.in_reply_to_id
    )
    _print_posted(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c", "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the TOML configuration file (default: {DEFAULT_CONFIG_PATH})",
    )

    parser = argparse.ArgumentParser(
        prog="ical-to-masto",
        description="Post upcoming iCal events to a Mastodon-compatible instance",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write logs to this file (rotated at 10MB)")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    register = subparsers.add_parser(
        "register", parents=[common],
        help="Register the app with the instance and save an access token",
    )
    register.add_argument("--client-name", help="Application name shown on the instance")
    register.add_argument(
        "--redirect-uri", default=OOB_REDIRECT_URI,
        help="OAuth redirect URI (default: out-of-band code entry)",
    )
    register.add_argument("--scopes", help="Space separated OAuth scopes (default: 'read write:statuses')")
    register.add_argument("--website", help="Application website")
    register.set_defaults(func=cmd_register, needs_token=False)

    for name, func, help_text in (
        ("post-next", cmd_post_next, "Post the next upcoming event"),
        ("post-all", cmd_post_all, "Post every upcoming event, earliest first"),
    ):
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        sub.add_argument("--dry-run", action="store_true", help="Print the statuses instead of posting them")
        sub.add_argument("--visibility", choices=VISIBILITIES, help="Override the configured visibility")
        sub.set_defaults(func=func, needs_token=True)

    status = subparsers.add_parser("post-status", parents=[common], help="Post arbitrary text")
    status.add_argument("text", help="Status text")
    status.add_argument("--visibility", choices=VISIBILITIES, help="Override the configured visibility")
    status.add_argument("--sensitive", action="store_true", help="Mark the status as sensitive")
    status.add_argument("--spoiler-text", help="Content warning shown before the status")
    status.add_argument("--language", help="ISO 639 language code of the status")
    status.add_argument("--in-reply-to-id", help="ID of the status to reply to")
    status.set_defaults(func=cmd_post_status, needs_token=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ical-to-masto console command.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit status: 0 on success, 1 on error
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    debug = args.debug or os.environ.get("ICAL_TO_MASTO_DEBUG", "").lower() in ("true", "1", "yes")
    try:
        configure_logging(debug=debug, log_file=args.log_file)
        logger.debug(f"Running command '{args.command}'")

        config = load_config(args.config)
        # Token problems must surface before anything touches the network
        args.token = load_token(config) if args.needs_token else None
        return args.func(args, config)
    except USER_ERRORS as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print("\nAborted.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
