from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple, Union

from .errors import InvalidDateError


def parse_timestamp(value: Union[str, datetime, None], detail: Optional[str] = None) -> datetime:
    """Parse an ISO-8601 timestamp into a naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        if not value or not isinstance(value, str):
            raise InvalidDateError(detail)
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidDateError(detail)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def day_window(now: datetime) -> Tuple[datetime, datetime]:
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def week_window(now: datetime) -> Tuple[datetime, datetime]:
    # weeks start on Sunday
    start, _ = day_window(now)
    start = start - timedelta(days=(start.weekday() + 1) % 7)
    return start, start + timedelta(days=7) - timedelta(microseconds=1)
