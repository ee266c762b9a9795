# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                 CALENDAR SERVER ERROR HANDLING UTILITIES                    ║
# ║  Error taxonomy shared by server and client, plus a standardized error     ║
# ║      handling decorator that keeps failures inside their own thread.       ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import functools
from typing import Callable, TypeVar, Any

# Local application imports
from utils.logging import logger

T = TypeVar('T')

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ ERROR TAXONOMY                                                             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class CalendarSyncError(Exception):
    """Base class for every error raised by the calendar sync server and client."""


class BindError(CalendarSyncError):
    """The server endpoint could not be bound (port in use, no permission)."""


class ConnectError(CalendarSyncError):
    """The client could not reach the server."""


class ParseError(CalendarSyncError):
    """A protocol or storage line is malformed."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class StreamError(CalendarSyncError):
    """Socket I/O failed mid-session."""


class PersistenceWriteError(CalendarSyncError):
    """The event file could not be written."""

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ SYNCHRONOUS ERROR HANDLING DECORATOR                                       ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- with_error_handling ---
# Decorator factory for standardized error handling in synchronous functions.
# Catches exceptions, logs them with a traceback, and returns a default value.
# Used on thread targets, where an escaping exception would only reach
# threading.excepthook and never the code that started the thread.
# Args:
#     default_value: The value to return if an exception occurs.
#     error_message: A prefix for the log message when an error occurs.
# Returns: A decorator function.
def with_error_handling(
    default_value: Any = None,
    error_message: str = "An error occurred"
) -> Callable:
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.exception(f"{error_message} in {func.__name__}: {str(e)}")
                return default_value
        return wrapper
    return decorator
