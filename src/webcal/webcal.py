"""
Calendar Feed Module for ical-to-masto.

This module fetches an iCal feed over HTTPS and turns its VEVENT
components into Event objects ordered by start time.

Feed Handling:
    - webcal:// URLs are fetched over https://
    - Recurring events (RRULE/RDATE) are expanded with recurring_ical_events
      inside a lookahead window, since a weekly event never ends
    - Floating times and all-day events are interpreted in the configured
      timezone
    - Only events starting strictly after "now" are returned

Usage:
    >>> from config import load_config
    >>> from webcal import get_upcoming_events, next_event
    >>> config = load_config("config.toml")
    >>> event = next_event(get_upcoming_events(config))
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo

import recurring_ical_events
import requests
from icalendar import Calendar

from config import DEFAULT_LOOKAHEAD_DAYS, get_timezone


logger = logging.getLogger(__name__)

USER_AGENT = "ical-to-masto/1.0 (+https://github.com/ical-to-masto/ical-to-masto)"
FETCH_TIMEOUT = 30  # seconds


class CalendarError(Exception):
    """Raised when a calendar feed cannot be parsed."""


@dataclass(frozen=True)
class Event:
    """A single upcoming calendar event.

    Attributes:
        title: Event summary (empty string if the feed has none)
        location: Free-text location (empty string if unknown)
        start: Timezone-aware start time
        url: Link to the event page (empty string if none)
        all_day: True when the feed gives a date instead of a date-time
    """
    title: str
    location: str
    start: datetime
    url: str
    all_day: bool = False


def normalize_feed_url(url: str) -> str:
    """Rewrite webcal:// URLs to https://, leaving others untouched."""
    if url.lower().startswith("webcal://"):
        return "https://" + url[len("webcal://"):]
    return url


def fetch_calendar(url: str, timeout: float = FETCH_TIMEOUT) -> bytes:
    """Download the raw iCal feed.

    Args:
        url: Feed URL (http, https or webcal scheme)
        timeout: Request timeout in seconds

    Returns:
        Raw feed bytes, left undecoded so icalendar can honour the charset

    Raises:
        requests.RequestException: On connection errors or non-2xx responses
    """
    feed_url = normalize_feed_url(url)
    logger.info(f"Fetching calendar from {feed_url}")
    try:
        response = requests.get(
            feed_url,
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "text/calendar, text/plain, */*;q=0.8",
            },
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to fetch calendar from {feed_url}: {e}")
        raise

    logger.debug(f"Fetched {len(response.content)} bytes from {feed_url}")
    return response.content


def _text(component, name: str) -> str:
    value = component.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _event_start(component, tz: ZoneInfo) -> Optional[tuple]:
    """Return (aware start datetime, all_day) for a VEVENT, or None."""
    dtstart = component.get("DTSTART")
    if dtstart is None:
        return None

    value = dtstart.dt
    if isinstance(value, datetime):
        if value.tzinfo is None:
            # Floating time: wall clock in the configured zone
            value = value.replace(tzinfo=tz)
        return value.astimezone(tz), False
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz), True
    return None


def parse_events(
    ics_data: Union[str, bytes],
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> List[Event]:
    """Parse an iCal feed and return future events in chronological order.

    Args:
        ics_data: Raw iCal text or bytes
        now: Reference time (defaults to the current time); only events
            starting strictly after it are returned
        tz: Timezone for floating and all-day events (defaults to UTC)
        lookahead_days: How far past ``now`` recurring events are expanded

    Returns:
        List of Event objects sorted by start time, then title

    Raises:
        CalendarError: If the data is not a valid iCal calendar
    """
    tz = tz or ZoneInfo("UTC")
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=tz)

    try:
        calendar = Calendar.from_ical(ics_data)
    except (ValueError, IndexError, KeyError) as e:
        raise CalendarError(f"Malformed calendar data: {e}") from e

    if calendar.name != "VCALENDAR":
        raise CalendarError(f"Expected a VCALENDAR, got {calendar.name or 'nothing'}")

    # Floating times are read in the zone of the window bounds
    now = now.astimezone(tz)
    horizon = now + timedelta(days=lookahead_days)
    try:
        components = recurring_ical_events.of(calendar).between(now, horizon)
    except ValueError as e:
        raise CalendarError(f"Could not expand calendar events: {e}") from e

    events = []
    for component in components:
        start = _event_start(component, tz)
        if start is None:
            logger.debug(f"Skipping event without start time: {_text(component, 'SUMMARY')!r}")
            continue

        start_time, all_day = start
        # between() also yields events already in progress
        if start_time <= now:
            continue

        events.append(Event(
            title=_text(component, "SUMMARY"),
            location=_text(component, "LOCATION"),
            start=start_time,
            url=_text(component, "URL"),
            all_day=all_day,
        ))

    events.sort(key=lambda e: (e.start, e.title))
    logger.info(f"Found {len(events)} upcoming event(s)")
    return events


def next_event(events: List[Event]) -> Optional[Event]:
    """Return the chronologically nearest event, or None if there are none."""
    if not events:
        return None
    return min(events, key=lambda e: (e.start, e.title))


def get_upcoming_events(config: Dict[str, Any], now: Optional[datetime] = None) -> List[Event]:
    """Fetch the configured feed and return its upcoming events.

    Args:
        config: Configuration dictionary from load_config()
        now: Reference time (defaults to the current time)

    Returns:
        Upcoming events in chronological order
    """
    ics_data = fetch_calendar(config["webcal"])
    return parse_events(
        ics_data,
        now=now,
        tz=get_timezone(config),
        lookahead_days=config.get("lookahead_days", DEFAULT_LOOKAHEAD_DAYS),
    )
