"""Centralized regex patterns for Harvest to Forecast sync."""

import re


class Patterns:
    """Regex patterns used throughout the sync process."""

    # Date argument: YYYY-MM-DD
    DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")

    # Harvest pagination: page=3 in links.next
    NEXT_PAGE = re.compile(r"[?&]page=(\d+)")
