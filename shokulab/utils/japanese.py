"""Japanese formatting helpers"""

import re
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

# `{token}` placeholders used by the contract templates
TOKEN_PATTERN = re.compile(r"\{([A-Za-z][A-Za-z0-9_]*)\}")


def format_ja_datetime(dt: datetime, tz: Optional[str] = None) -> str:
    """
    Format a datetime the way ``toLocaleString('ja-JP')`` does.

    Example: 2025-07-01 09:05:03 -> "2025/7/1 9:05:03"
    Aware datetimes are converted to ``tz`` first when one is given.
    """
    if tz and dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(tz))
    return f"{dt.year}/{dt.month}/{dt.day} {dt.hour}:{dt.minute:02d}:{dt.second:02d}"


def format_yen(amount: int) -> str:
    """Format an integer amount as yen, e.g. 50000 -> "¥50,000"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}¥{abs(amount):,}"


def find_tokens(text: str) -> list[str]:
    """Return the distinct placeholder names in ``text``, in order of appearance."""
    seen = []
    for name in TOKEN_PATTERN.findall(text):
        if name not in seen:
            seen.append(name)
    return seen
