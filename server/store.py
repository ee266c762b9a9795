# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                              SHARED EVENT STORE                            ║
# ║    Thread-safe, order-preserving mapping from calendar date to events.     ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import threading
from datetime import date
from typing import Dict, List, NamedTuple

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ DATA TYPES                                                                 ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class Event(NamedTuple):
    """A single calendar entry: the day it falls on and its text."""
    date: date
    description: str

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CLASS DEFINITION: EventStore                                               ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class EventStore:
    """
    The single source of truth for every event the server knows about.

    All reads and writes go through one re-entrant lock. The lock is exposed
    as ``lock`` so a caller can hold it across a multi-step operation, such
    as serializing the whole store to disk, without an append slipping in.
    """

    # --- __init__ ---
    # Creates an empty store. Dates keep first-insertion order and each
    # date's list keeps append order.
    def __init__(self):
        self._events: Dict[date, List[str]] = {}
        self.lock = threading.RLock()

    # --- append ---
    # Adds a description to the end of a date's list, creating the list if
    # this is the first event on that date. Duplicates are allowed.
    def append(self, event_date: date, description: str) -> None:
        with self.lock:
            self._events.setdefault(event_date, []).append(description)

    # --- snapshot ---
    # Returns every stored event as a flat list, copied under the lock so the
    # caller can iterate it after concurrent appends resume.
    def snapshot(self) -> List[Event]:
        with self.lock:
            return [
                Event(event_date, description)
                for event_date, descriptions in self._events.items()
                for description in descriptions
            ]

    def events_on(self, event_date: date) -> List[str]:
        with self.lock:
            return list(self._events.get(event_date, ()))

    def dates(self) -> List[date]:
        with self.lock:
            return list(self._events)

    def __len__(self) -> int:
        with self.lock:
            return sum(len(descriptions) for descriptions in self._events.values())
