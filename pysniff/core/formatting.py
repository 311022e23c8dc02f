"""Display helpers for captured messages."""

import re
from datetime import datetime, timezone
from typing import Optional

TIMEZONE_LOCAL = "local"
TIMEZONE_UTC = "utc"
TIMEZONES = (TIMEZONE_LOCAL, TIMEZONE_UTC)

# datetime.fromisoformat() wants exactly microseconds; captures carry nanoseconds.
_FRACTION_RE = re.compile(r"\.(\d+)")


def _microseconds(match: "re.Match") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def strip_namespace(name: str) -> str:
    """Reduce '/pkg.Service/Method' or 'pkg.Type' to its last component."""
    last_part = name.split("/")[-1]
    return last_part.split(".")[-1]


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware datetime, or None."""
    if not text:
        return None
    normalized = _FRACTION_RE.sub(_microseconds, text.strip(), count=1)
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(text: str, tz: str = TIMEZONE_LOCAL) -> str:
    """Format a capture timestamp as HH:MM:SS.mmm.

    Unparseable input is returned unchanged so the row still shows something.
    """
    parsed = parse_timestamp(text)
    if parsed is None:
        return text
    if tz == TIMEZONE_UTC:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.astimezone()
    return parsed.strftime("%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}"
