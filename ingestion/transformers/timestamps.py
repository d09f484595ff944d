"""
Convert loosely formatted date and interval strings into epoch milliseconds.

Both helpers degrade to ``None`` on anything they cannot read; a bad date in
the source never aborts a run.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from dateutil import parser as dtparser

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Fills fields a partial date leaves out ("2021-04" -> 2021-04-01)
_PARSE_DEFAULT = datetime(1970, 1, 1)

# Same fill with another year; a value whose year moves with it has no year
_YEAR_CHECK_DEFAULT = datetime(1971, 1, 1)


def to_timestamp(text: Optional[str]) -> Optional[int]:
    """
    Parse a calendar date-time into milliseconds since the epoch (UTC).
    
    Accepts ISO-8601 (``2021-04-03T15:00:00+09:00``, ``2021-04-03``) and the
    looser forms python-dateutil understands. Values without an offset are
    read as UTC. A value must name its year; times, weekdays, month names
    and bare numbers are not dates.
    
    Returns:
        Integer milliseconds, or None for empty/whitespace/unparseable input
    """
    if not isinstance(text, str) or not text.strip():
        return None
    
    text = text.strip()
    try:
        dt = dtparser.parse(text, default=_PARSE_DEFAULT)
        if dtparser.parse(text, default=_YEAR_CHECK_DEFAULT).year != dt.year:
            return None
    except (ValueError, OverflowError):
        return None
    
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    
    try:
        return (dt - EPOCH) // timedelta(milliseconds=1)
    except (OverflowError, ValueError):
        return None


def extract_broadcast_begin(text: Optional[str]) -> Optional[int]:
    """
    Start instant of an ISO-8601 repeating interval ``R/<start>/<period>``.
    
    Only the second ``/``-separated segment is read; a string with no ``/``
    has no start and yields None.
    """
    if not isinstance(text, str) or not text:
        return None
    
    parts = text.split("/")
    if len(parts) >= 2:
        return to_timestamp(parts[1])
    return None
