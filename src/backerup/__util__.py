"""backerup: backerup/__util__.py
Common utility code shared between modules.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def date_to_str(value: datetime | None) -> str | None:
    """Serialize a datetime to an ISO 8601 string in UTC."""
    if value is None:
        return None
    return as_utc(value).isoformat()


def str_to_date(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string produced by :func:`date_to_str`."""
    if value is None or value == "":
        return None
    return as_utc(datetime.fromisoformat(value))


def format_date(value: datetime | None, fallback: str = "never") -> str:
    """Human readable UTC timestamp for CLI output."""
    if value is None:
        return fallback
    return as_utc(value).strftime("%Y-%m-%d %H:%M:%S UTC")


def log_heading(caption: str) -> str:
    """Formatted heading for logging output sections."""
    return f"--[ {caption} ]--"
