# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                           CONNECTION LISTENER                              ║
# ║   Accepts clients on the well-known port, one session thread per client.   ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import socket
import threading
import time
from typing import Any, Dict, Optional, Tuple

# Local application imports
from utils.logging import logger
from utils.environ import (
    SERVER_HOST, SERVER_PORT, SESSION_READ_TIMEOUT, MAX_SESSIONS, MAX_LINE_LENGTH,
)
from utils.error_handling import BindError, with_error_handling
from .store import EventStore
from .persistence import EventPersistence
from .session import SessionHandler

# Pause after a failed accept() so a persistent error (e.g. EMFILE) cannot spin
ACCEPT_ERROR_BACKOFF = 0.5

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CLASS DEFINITION: Listener                                                 ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class Listener:
    # --- __init__ ---
    # Args:
    #     store: The shared EventStore handed to every session.
    #     persistence: Save target handed to every session.
    #     host, port: Endpoint to bind ("" binds every interface, port 0 picks a free port).
    #     read_timeout: Per-session idle timeout in seconds (0 or None disables it).
    #     max_sessions: Concurrent session bound (0 or None means unbounded).
    #     max_line_length: Longest update line a session accepts.
    def __init__(
        self,
        store: EventStore,
        persistence: EventPersistence,
        host: str = SERVER_HOST,
        port: int = SERVER_PORT,
        read_timeout: Optional[float] = SESSION_READ_TIMEOUT,
        max_sessions: Optional[int] = MAX_SESSIONS,
        max_line_length: int = MAX_LINE_LENGTH
    ):
        self.store = store
        self.persistence = persistence
        self.host = host
        self.port = port
        self.read_timeout = read_timeout or None
        self.max_sessions = max_sessions or 0
        self.max_line_length = max_line_length

        self._socket: Optional[socket.socket] = None
        self._slots = threading.BoundedSemaphore(self.max_sessions) if self.max_sessions else None
        self._stop = threading.Event()
        self._stats_lock = threading.Lock()
        self.active_sessions = 0
        self.completed_sessions = 0
        self.refused_sessions = 0

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); useful after binding port 0."""
        if self._socket is None:
            raise RuntimeError("Listener is not bound")
        return self._socket.getsockname()[:2]

    # --- bind ---
    # Binds and starts listening. Raises BindError if the endpoint is taken
    # or not permitted.
    def bind(self) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen()
        except OSError as e:
            sock.close()
            raise BindError(f"Cannot bind {self.host or '*'}:{self.port}: {e}") from e
        self._socket = sock
        logger.info(f"Listening on {self.host or '*'}:{self.address[1]}")

    # --- serve_forever ---
    # Accept loop. Returns only after shutdown().
    def serve_forever(self) -> None:
        if self._socket is None:
            self.bind()

        while not self._stop.is_set():
            try:
                conn, peer = self._socket.accept()
            except OSError as e:
                if self._stop.is_set():
                    break
                logger.error(f"Failed to accept connection: {e}")
                time.sleep(ACCEPT_ERROR_BACKOFF)
                continue

            if self._slots is not None and not self._slots.acquire(blocking=False):
                self._refuse(conn, peer)
                continue

            self._start_session(conn, peer)

        logger.info("Listener stopped accepting connections")

    # --- shutdown ---
    # Stops the accept loop and closes the listening socket. Running sessions
    # are left to finish on their own.
    def shutdown(self) -> None:
        self._stop.set()
        if self._socket is not None:
            try:
                # Wakes a thread blocked in accept() on Linux
                self._socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._socket.close()

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return {
                "active_sessions": self.active_sessions,
                "completed_sessions": self.completed_sessions,
                "refused_sessions": self.refused_sessions,
                "max_sessions": self.max_sessions or None,
                "stored_events": len(self.store),
            }

    # ╔════════════════════════════════════════════════════════════════════════╗
    # ║ SESSION THREADS                                                        ║
    # ╚════════════════════════════════════════════════════════════════════════╝

    def _start_session(self, conn: socket.socket, peer) -> None:
        handler = SessionHandler(
            conn,
            peer,
            self.store,
            self.persistence,
            read_timeout=self.read_timeout,
            max_line_length=self.max_line_length,
        )
        with self._stats_lock:
            self.active_sessions += 1
        thread = threading.Thread(
            target=self._run_session,
            args=(handler,),
            name=f"session-{handler.peer_label}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            # Thread limit reached; the session never ran, so finish it here
            logger.error(f"Could not start session thread for {handler.peer_label}: {e}")
            self._finish_session(handler)

    def _run_session(self, handler: SessionHandler) -> None:
        try:
            self._guarded_run(handler)
        finally:
            self._finish_session(handler)

    @with_error_handling(error_message="Unexpected session failure")
    def _guarded_run(self, handler: SessionHandler) -> None:
        handler.run()

    def _finish_session(self, handler: SessionHandler) -> None:
        try:
            # No-op if run() already closed and saved
            handler.close()
        finally:
            with self._stats_lock:
                self.active_sessions -= 1
                self.completed_sessions += 1
            if self._slots is not None:
                self._slots.release()

    def _refuse(self, conn: socket.socket, peer) -> None:
        with self._stats_lock:
            self.refused_sessions += 1
        logger.warning(
            f"Refusing connection from {peer[0]}:{peer[1]}: "
            f"{self.max_sessions} sessions already active"
        )
        try:
            conn.close()
        except OSError:
            pass
