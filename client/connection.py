# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                            CALENDAR SYNC CLIENT                            ║
# ║     Connects to the server, reads the snapshot, submits new events.       ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import socket
from datetime import date
from typing import Dict, List, Optional

# Local application imports
from utils.logging import logger
from utils.environ import CLIENT_HOST, SERVER_PORT
from utils.error_handling import ConnectError, StreamError
from utils.validators import validate_event_description
from server.protocol import SENTINEL, LINE_TERMINATOR, format_event_line, parse_event_line

class CalendarClient:
    """
    One client session against the calendar server.

    The server sends its snapshot immediately after accepting, so
    ``fetch_snapshot`` must be called once before events are submitted.
    Closing the client ends the session on the server side.
    """

    def __init__(self, host: str = CLIENT_HOST, port: int = SERVER_PORT, timeout: Optional[float] = 10.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None
        self._reader = None
        self._writer = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self) -> None:
        try:
            self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as e:
            raise ConnectError(f"Cannot connect to {self.host}:{self.port}: {e}") from e
        # Timeout only guards the connect; the session itself may idle
        self._sock.settimeout(None)
        self._reader = self._sock.makefile("r", encoding="utf-8", newline="\n")
        self._writer = self._sock.makefile("w", encoding="utf-8", newline="\n")
        logger.info(f"Connected to server {self.host}:{self.port}")

    def fetch_snapshot(self) -> Dict[date, List[str]]:
        """Read event lines up to the sentinel, grouped by date in arrival order."""
        self._require_connection()
        events: Dict[date, List[str]] = {}
        try:
            for line in self._reader:
                if line.rstrip("\r\n").upper() == SENTINEL:
                    return events
                event = parse_event_line(line)
                events.setdefault(event.date, []).append(event.description)
        except OSError as e:
            raise StreamError(f"Failed to load events from server: {e}") from e
        raise StreamError("Server closed the connection before the end of the snapshot")

    def submit_event(self, event_date: date, description: str) -> None:
        is_valid, error = validate_event_description(description)
        if not is_valid:
            raise ValueError(error)
        self._require_connection()
        try:
            self._writer.write(format_event_line(event_date, description) + LINE_TERMINATOR)
            self._writer.flush()
        except OSError as e:
            raise StreamError(f"Failed to send event: {e}") from e

    def close(self) -> None:
        if self._sock is None:
            return
        for stream in (self._writer, self._reader):
            try:
                stream.close()
            except OSError as e:
                logger.debug(f"Error closing client stream: {e}")
        self._sock.close()
        self._sock = self._reader = self._writer = None

    def _require_connection(self) -> None:
        if self._sock is None:
            raise StreamError("Client is not connected")

    def __enter__(self):
        if not self.connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
