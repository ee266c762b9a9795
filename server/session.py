# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                          CLIENT SESSION HANDLER                            ║
# ║  Per-connection protocol engine: snapshot out, new events in, then save.  ║
# ╚════════════════════════════════════════════════════════════════════════════╝

"""
Session protocol.

Handles:
- Streaming the current store to a newly connected client
- Appending each event line the client sends afterwards
- Closing the connection and saving the store exactly once
"""
# Standard library imports
import socket
from enum import Enum
from typing import Optional, Tuple

# Local application imports
from utils.logging import logger
from utils.environ import MAX_LINE_LENGTH
from utils.error_handling import ParseError, StreamError, PersistenceWriteError
from .protocol import SENTINEL, LINE_TERMINATOR, format_event_line, parse_event_line
from .store import EventStore
from .persistence import EventPersistence

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ SESSION STATES                                                             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class SessionState(Enum):
    CONNECTED = "connected"
    SENDING_SNAPSHOT = "sending_snapshot"
    RECEIVING_UPDATES = "receiving_updates"
    CLOSED = "closed"

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CLASS DEFINITION: SessionHandler                                           ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class SessionHandler:
    # --- __init__ ---
    # Binds a session to one accepted connection.
    # Args:
    #     conn: The connected socket. The session owns it and closes it.
    #     peer: Remote address, used for logging.
    #     store: The shared EventStore.
    #     persistence: Where the store is saved when the session ends.
    #     read_timeout: Idle seconds before the session gives up (None = wait forever).
    #     max_line_length: Longest accepted update line, newline included.
    def __init__(
        self,
        conn: socket.socket,
        peer: Optional[Tuple],
        store: EventStore,
        persistence: EventPersistence,
        read_timeout: Optional[float] = None,
        max_line_length: int = MAX_LINE_LENGTH
    ):
        self.conn = conn
        self.peer = peer
        self.store = store
        self.persistence = persistence
        self.read_timeout = read_timeout
        self.max_line_length = max_line_length

        self.state = SessionState.CONNECTED
        self.sent_count = 0
        self.received_count = 0
        self.received_updates = False
        self.saved = False

    @property
    def peer_label(self) -> str:
        if not self.peer:
            return "unknown peer"
        if isinstance(self.peer, tuple) and len(self.peer) >= 2:
            return f"{self.peer[0]}:{self.peer[1]}"
        return str(self.peer)

    # --- run ---
    # Drives the session through every state. Never raises for protocol or
    # socket failures; those end the session and are logged here.
    def run(self) -> None:
        logger.info(f"Session opened for {self.peer_label}")
        try:
            if self.read_timeout:
                self.conn.settimeout(self.read_timeout)
            with self.conn.makefile("r", encoding="utf-8", newline="\n") as reader, \
                    self.conn.makefile("w", encoding="utf-8", newline="\n") as writer:
                self._send_snapshot(writer)
                self._receive_updates(reader)
        except ParseError as e:
            logger.warning(f"Session {self.peer_label} sent a malformed line ({e}): {e.line!r}")
        except StreamError as e:
            logger.warning(f"Session {self.peer_label} stream error: {e}")
        except OSError as e:
            # makefile() or settimeout() on an already broken socket
            logger.warning(f"Session {self.peer_label} socket error: {e}")
        finally:
            self.close()

    # --- _send_snapshot ---
    # Streams every stored event followed by the sentinel line.
    def _send_snapshot(self, writer) -> None:
        self.state = SessionState.SENDING_SNAPSHOT
        try:
            for event in self.store.snapshot():
                writer.write(format_event_line(event.date, event.description) + LINE_TERMINATOR)
                self.sent_count += 1
            writer.write(SENTINEL + LINE_TERMINATOR)
            writer.flush()
        except OSError as e:
            raise StreamError(f"failed sending snapshot after {self.sent_count} events: {e}") from e
        logger.debug(f"Sent {self.sent_count} events to {self.peer_label}")

    # --- _receive_updates ---
    # Appends each incoming event until the peer closes its end.
    def _receive_updates(self, reader) -> None:
        self.state = SessionState.RECEIVING_UPDATES
        while True:
            try:
                line = reader.readline(self.max_line_length)
            except socket.timeout as e:
                raise StreamError(f"idle for more than {self.read_timeout}s") from e
            except OSError as e:
                raise StreamError(f"read failed: {e}") from e
            except UnicodeDecodeError as e:
                raise ParseError(f"line is not valid UTF-8: {e.reason}") from e

            if not line:
                logger.debug(f"Session {self.peer_label} reached end of stream")
                return

            if not line.endswith(LINE_TERMINATOR) and len(line) >= self.max_line_length:
                raise ParseError(f"line exceeds {self.max_line_length} characters", line=line[:80])

            event = parse_event_line(line)
            self.store.append(event.date, event.description)
            self.received_count += 1
            self.received_updates = True
            logger.debug(f"Session {self.peer_label} added {event.date.isoformat()}: {event.description}")

    # --- close ---
    # Closes the connection and saves the store. Safe to call more than once;
    # only the first call saves.
    def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED

        try:
            self.conn.close()
        except OSError as e:
            logger.debug(f"Error closing connection to {self.peer_label}: {e}")

        logger.info(
            f"Session closed for {self.peer_label}: sent {self.sent_count}, "
            f"received {self.received_count} events"
        )

        try:
            self.persistence.save(self.store)
            self.saved = True
        except PersistenceWriteError as e:
            logger.error(f"{e}")
