"""Normalize free-text package durations to the "X Nights Y Days" form."""

import re

_NIGHTS_DAYS_PATTERNS = (
    re.compile(r"^(\d+)\s*Nights?\s+(\d+)\s*Days?$", re.IGNORECASE),
    re.compile(r"^(\d+)\s*Days?\s+(\d+)\s*Nights?$", re.IGNORECASE),
    re.compile(r"^(\d+)\s*Nights?\s*&\s*(\d+)\s*Days?$", re.IGNORECASE),
    re.compile(r"^(\d+)\s*Days?\s*&\s*(\d+)\s*Nights?$", re.IGNORECASE),
    re.compile(r"^(\d+)N\s*(\d+)D$", re.IGNORECASE),
    re.compile(r"^(\d+)D\s*(\d+)N$", re.IGNORECASE),
)
_DAYS_ONLY_PATTERN = re.compile(r"^(\d+)$")


def format_duration(duration: str | None) -> str:
    """
    Standardize a duration such as "5 Days 6 Nights", "6N 7D" or "5".

    The smaller of two numbers is taken as the nights. A bare number is a day
    count and gets one night fewer, but never less than one. Anything
    unrecognized comes back trimmed but otherwise unchanged.
    """
    if not duration or not duration.strip():
        return "N/A"
    cleaned = duration.strip()

    for pattern in _NIGHTS_DAYS_PATTERNS:
        match = pattern.match(cleaned)
        if match:
            first, second = int(match.group(1)), int(match.group(2))
            nights, days = (first, second) if first < second else (second, first)
            return f"{nights} Nights {days} Days"

    match = _DAYS_ONLY_PATTERN.match(cleaned)
    if match:
        days = int(match.group(1))
        return f"{max(1, days - 1)} Nights {days} Days"

    return cleaned
