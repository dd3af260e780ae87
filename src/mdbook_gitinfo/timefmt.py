"""Commit timestamp formatting.

Git reports commit times as ISO-8601 with an explicit offset (``%cI``). The
display timezone is chosen by the ``timezone`` option:

- ``local``: the build host's local offset (default)
- ``utc``: zero offset
- ``source``: the offset recorded in the commit
- ``fixed:+HH:MM`` / ``fixed:-HH:MM``: a literal offset
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone
from enum import Enum

from mdbook_gitinfo import defaults

logger = logging.getLogger(__name__)

_FIXED_OFFSET_RE = re.compile(r"^([+-])(\d{1,2}):(\d{2})$")


class TzKind(Enum):
    """Timezone conversion policy."""

    LOCAL = "local"
    UTC = "utc"
    SOURCE = "source"
    FIXED = "fixed"


@dataclass(frozen=True)
class TzMode:
    """Target timezone for commit timestamps.

    Attributes:
        kind: Conversion policy
        offset: Literal offset, only set for TzKind.FIXED
    """

    kind: TzKind = TzKind.LOCAL
    offset: timezone | None = None


def _parse_fixed_offset(raw: str) -> timezone | None:
    match = _FIXED_OFFSET_RE.match(raw)
    if not match:
        return None
    sign, hours, minutes = match.groups()
    if int(minutes) >= 60:
        return None
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if sign == "-":
        delta = -delta
    try:
        return timezone(delta)
    except ValueError:
        # timezone() rejects offsets of 24h or more
        return None


def parse_timezone(value: str | None) -> TzMode:
    """Parse the ``timezone`` option.

    Matching is case-insensitive. Unknown values and malformed fixed offsets
    fall back to ``local`` with a warning.

    Args:
        value: Raw option value, or None

    Returns:
        Parsed TzMode
    """
    raw = (value or defaults.DEFAULT_TIMEZONE).strip().lower()

    if raw == "local":
        return TzMode(TzKind.LOCAL)
    if raw == "utc":
        return TzMode(TzKind.UTC)
    if raw == "source":
        return TzMode(TzKind.SOURCE)
    if raw.startswith("fixed:"):
        offset_str = raw[len("fixed:"):]
        offset = _parse_fixed_offset(offset_str)
        if offset is None:
            logger.warning("Invalid fixed offset '%s', using 'local'", offset_str)
            return TzMode(TzKind.LOCAL)
        return TzMode(TzKind.FIXED, offset)

    logger.warning("Unrecognised timezone '%s', using 'local'", raw)
    return TzMode(TzKind.LOCAL)


def convert_timezone(dt: datetime, mode: TzMode) -> datetime:
    """Convert an aware datetime to the target timezone."""
    if mode.kind == TzKind.UTC:
        return dt.astimezone(UTC)
    if mode.kind == TzKind.SOURCE:
        return dt
    if mode.kind == TzKind.FIXED and mode.offset is not None:
        return dt.astimezone(mode.offset)
    return dt.astimezone()


def format_commit_datetime(
    raw: str,
    mode: TzMode,
    date_format: str,
    time_format: str,
) -> str:
    """Format a commit timestamp for display.

    The offset is applied but only printed if the user's patterns include a
    zone token such as ``%z``.

    Args:
        raw: ISO-8601 timestamp with offset (e.g. "2026-01-14T10:00:00+00:00")
        mode: Target timezone
        date_format: strftime pattern for the date
        time_format: strftime pattern for the time

    Returns:
        Formatted string, or "unknown" if ``raw`` can't be parsed
    """
    try:
        dt = datetime.fromisoformat(raw.strip())
    except ValueError:
        return defaults.UNKNOWN_TIMESTAMP

    if dt.tzinfo is None:
        return defaults.UNKNOWN_TIMESTAMP

    converted = convert_timezone(dt, mode)
    pattern = f"{date_format} {time_format}".strip()
    return converted.strftime(pattern)
