from .logging import logger
from .error_handling import (
    CalendarSyncError,
    BindError,
    ConnectError,
    ParseError,
    StreamError,
    PersistenceWriteError,
    with_error_handling,
)
from .validators import parse_iso_date, validate_event_description

__all__ = [
    'logger',
    'CalendarSyncError', 'BindError', 'ConnectError', 'ParseError',
    'StreamError', 'PersistenceWriteError', 'with_error_handling',
    'parse_iso_date', 'validate_event_description',
]
