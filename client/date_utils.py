from datetime import date, datetime, time
from typing import Optional

import dateparser

from utils.validators import parse_iso_date


def resolve_event_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """
    Turn what the user typed into a calendar date.

    Strict ``YYYY-MM-DD`` wins; anything else ("tomorrow", "next friday",
    "31 Jan") goes through dateparser relative to ``today``, preferring
    future dates. Returns None when nothing sensible comes out.
    """
    text = (text or "").strip()
    if not text:
        return None

    exact = parse_iso_date(text)
    if exact is not None:
        return exact

    base = datetime.combine(today or date.today(), time(hour=12))
    parsed = dateparser.parse(
        text,
        settings={
            "PREFER_DATES_FROM": "future",
            "RELATIVE_BASE": base,
        }
    )
    if parsed is None:
        return None
    return parsed.date()
