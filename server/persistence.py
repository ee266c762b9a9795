import os
from pathlib import Path
from typing import Union

from utils.logging import logger
from utils.error_handling import ParseError, PersistenceWriteError
from .protocol import format_event_line, parse_event_line, LINE_TERMINATOR
from .store import EventStore

# ╔════════════════════════════════════════════════════════════════════╗
# ║ 💾 Event File Persistence                                          ║
# ║ Loads the store once at startup and rewrites it after each session ║
# ╚════════════════════════════════════════════════════════════════════╝

class EventPersistence:
    """Durable copy of an EventStore in a plain ``<date>;<description>`` file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def _temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def load(self, store: EventStore) -> int:
        """Append every stored event to ``store``. Returns the number loaded."""
        loaded = 0
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                for line_number, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        event = parse_event_line(line)
                    except ParseError as e:
                        logger.warning(f"Skipping malformed line {line_number} in {self.path}: {e}")
                        continue
                    store.append(event.date, event.description)
                    loaded += 1
        except FileNotFoundError:
            logger.warning(f"Events file {self.path} not found. Starting with an empty calendar.")
            return 0
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read events file {self.path}: {e}. Continuing with {loaded} events.")
            return loaded

        logger.info(f"Loaded {loaded} events from {self.path}")
        return loaded

    def save(self, store: EventStore) -> int:
        """
        Rewrite the event file with the entire current store.

        The store lock is held for the whole serialize-and-replace, so no
        append can land between the snapshot and the write, and two sessions
        finishing together write one after the other. Returns the number of
        events written; raises PersistenceWriteError if the file cannot be
        written.
        """
        with store.lock:
            events = store.snapshot()
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._temp_path, "w", encoding="utf-8", newline="") as f:
                    for event in events:
                        f.write(format_event_line(event.date, event.description) + LINE_TERMINATOR)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(self._temp_path, self.path)
            except OSError as e:
                raise PersistenceWriteError(f"Failed to save events to {self.path}: {e}") from e

        logger.info(f"Saved {len(events)} events to {self.path}")
        return len(events)
