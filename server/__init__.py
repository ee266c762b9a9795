# Server Package
"""
Calendar Sync Server - Core Package

This package contains the synchronization server:
- The shared, lock-guarded event store
- The line codec used on the wire and on disk
- Event file persistence
- The per-connection session protocol
- The connection listener
"""

from .store import Event, EventStore
from .protocol import SENTINEL, SEPARATOR, format_event_line, parse_event_line
from .persistence import EventPersistence
from .session import SessionHandler, SessionState
from .listener import Listener

__all__ = [
    'Event', 'EventStore',
    'SENTINEL', 'SEPARATOR', 'format_event_line', 'parse_event_line',
    'EventPersistence',
    'SessionHandler', 'SessionState',
    'Listener',
]
