"""
Status Template for Calendar Events.

Turns an Event into the text of a Mastodon status. The output depends
only on the event and the display timezone, so the same event always
yields the same text.

Layout:
    <title>
    When: Saturday, 24 October 2026 at 19:30
    Where: <location>
    <url>

The "Where" and URL lines are left out when the feed has no value for
them. All-day events render as "When: Saturday, 24 October 2026 (all day)".
"""
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from webcal.webcal import Event

# Mastodon character limit (500 for most instances)
MAX_POST_LENGTH = 500

# Month and weekday names are spelled out here so output doesn't follow the
# process locale.
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def trim_to_words(text: str, max_length: int) -> str:
    """Trim text to max_length, cutting at word boundaries and adding ellipsis.

    Args:
        text: Text to trim
        max_length: Maximum length for the trimmed text

    Returns:
        Trimmed text with ellipsis if needed, or an empty string when
        max_length leaves no room for any text before the ellipsis
    """
    if len(text) <= max_length:
        return text

    # Reserve 3 characters for ellipsis
    max_length -= 3
    if max_length <= 0:
        return ""

    trimmed = text[:max_length]
    last_space = trimmed.rfind(' ')

    if last_space > 0:
        return trimmed[:last_space] + "..."
    else:
        return trimmed + "..."


def format_when(start: datetime, all_day: bool = False, tz: Optional[ZoneInfo] = None) -> str:
    """Render a start time as e.g. "Saturday, 24 October 2026 at 19:30"."""
    if tz is not None:
        start = start.astimezone(tz)
    day = f"{WEEKDAYS[start.weekday()]}, {start.day} {MONTHS[start.month - 1]} {start.year}"
    if all_day:
        return f"{day} (all day)"
    return f"{day} at {start:%H:%M}"


def format_event(event: Event, tz: Optional[ZoneInfo] = None, max_length: int = MAX_POST_LENGTH) -> str:
    """Format an event as status text.

    Args:
        event: Event to format
        tz: Display timezone (defaults to the event's own timezone)
        max_length: Maximum status length. The title is shortened first,
            then dropped in favour of a shortened location, so the date and
            link always survive

    Returns:
        Status text ready for posting
    """
    title = event.title or "Untitled event"
    when = f"When: {format_when(event.start, event.all_day, tz)}"
    details = [when]
    if event.location:
        details.append(f"Where: {event.location}")
    if event.url:
        details.append(event.url)

    body = "\n".join(details)
    # +1 for the newline between title and details
    room_for_title = max_length - len(body) - 1
    if room_for_title < len(title):
        # Empty when fewer than 4 characters are left
        title = trim_to_words(title, room_for_title)
    if title:
        return f"{title}\n{body}"

    if event.location:
        details = [when]
        if event.url:
            details.append(event.url)
        room_for_location = max_length - len("\n".join(details)) - len("\nWhere: ")
        location = trim_to_words(event.location, room_for_location)
        if location:
            details.insert(1, f"Where: {location}")
        body = "\n".join(details)

    if len(body) > max_length:
        return trim_to_words(body, max_length)
    return body
