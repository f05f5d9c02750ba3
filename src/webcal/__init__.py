"""
Calendar Feed Module for ical-to-masto.

This module handles:
- Fetching iCal feeds (http, https and webcal URLs)
- Selecting upcoming events, recurring ones included
- Formatting events as status text

Usage:
    >>> from webcal import get_upcoming_events, next_event, format_event
    >>> events = get_upcoming_events(config)
    >>> print(format_event(next_event(events)))
"""

from .webcal import (
    CalendarError,
    Event,
    fetch_calendar,
    get_upcoming_events,
    next_event,
    normalize_feed_url,
    parse_events,
)
from .template import MAX_POST_LENGTH, format_event, format_when, trim_to_words

__all__ = [
    "CalendarError",
    "Event",
    "MAX_POST_LENGTH",
    "fetch_calendar",
    "format_event",
    "format_when",
    "get_upcoming_events",
    "next_event",
    "normalize_feed_url",
    "parse_events",
    "trim_to_words",
]
