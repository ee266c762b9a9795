"""
Line codec shared by the wire protocol and the event file.

Every event travels as ``<YYYY-MM-DD>;<description>`` followed by a newline.
During the snapshot phase the server ends the list with the ``END`` sentinel.
"""
from datetime import date

from utils.error_handling import ParseError
from utils.validators import parse_iso_date
from .store import Event

SEPARATOR = ";"
SENTINEL = "END"
LINE_TERMINATOR = "\n"


def format_event_line(event_date: date, description: str) -> str:
    """Render one event without its line terminator."""
    return f"{event_date.isoformat()}{SEPARATOR}{description}"


def parse_event_line(line: str) -> Event:
    """
    Parse one ``<date>;<description>`` line.

    The first separator splits the fields, so the description keeps any
    later separators verbatim. Raises ParseError when the separator is
    missing, the date is not a strict calendar date, or the description
    is empty.
    """
    text = line.rstrip("\r\n")
    date_text, separator, description = text.partition(SEPARATOR)
    if not separator:
        raise ParseError(f"missing '{SEPARATOR}' separator", line=text)

    event_date = parse_iso_date(date_text)
    if event_date is None:
        raise ParseError(f"invalid calendar date {date_text!r}", line=text)

    if not description:
        raise ParseError("empty event description", line=text)

    return Event(event_date, description)
