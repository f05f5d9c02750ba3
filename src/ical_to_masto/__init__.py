"""ical-to-masto Package.

This package provides the command line entry point that posts upcoming
events from an iCal feed to a Mastodon-compatible instance.

Exported Functions:
    main: Entry point for the ical-to-masto console command
"""
from .ical_to_masto import main

__all__ = ["main"]
