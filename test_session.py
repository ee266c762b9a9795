"""
Test suite for the per-connection session protocol.
Each test drives one SessionHandler over a socketpair.
"""
import socket
import threading
import time
from datetime import date

from server.persistence import EventPersistence
from server.session import SessionHandler, SessionState
from server.store import EventStore


class CountingPersistence(EventPersistence):
    """EventPersistence that records how often it was asked to save."""

    def __init__(self, path):
        super().__init__(path)
        self.saves = 0

    def save(self, store):
        self.saves += 1
        return super().save(store)


def _open_session(store, persistence, **kwargs):
    server_side, client_side = socket.socketpair()
    client_side.settimeout(5)
    handler = SessionHandler(server_side, ("127.0.0.1", 40000), store, persistence, **kwargs)
    thread = threading.Thread(target=handler.run, daemon=True)
    thread.start()
    return handler, thread, client_side


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _read_snapshot(client_side):
    reader = client_side.makefile("r", encoding="utf-8", newline="\n")
    lines = []
    while True:
        line = reader.readline()
        assert line, "connection closed before the sentinel"
        if line == "END\n":
            return reader, lines
        lines.append(line.rstrip("\n"))


def test_snapshot_then_update_then_save(tmp_path):
    """Stored Meeting is sent, Lunch comes back, both end up on disk."""
    path = tmp_path / "events.txt"
    path.write_text("2024-01-01;Meeting\n", encoding="utf-8")
    store = EventStore()
    persistence = CountingPersistence(path)
    persistence.load(store)

    handler, thread, client = _open_session(store, persistence)
    reader, snapshot = _read_snapshot(client)
    assert snapshot == ["2024-01-01;Meeting"]

    client.sendall(b"2024-01-02;Lunch\n")
    client.shutdown(socket.SHUT_WR)
    thread.join(5)
    assert not thread.is_alive()
    reader.close()
    client.close()

    assert handler.state is SessionState.CLOSED
    assert handler.sent_count == 1
    assert handler.received_count == 1
    assert handler.received_updates
    assert handler.saved
    assert persistence.saves == 1
    assert set(path.read_text(encoding="utf-8").splitlines()) == {
        "2024-01-01;Meeting",
        "2024-01-02;Lunch",
    }


def test_empty_store_sends_only_sentinel(tmp_path):
    persistence = CountingPersistence(tmp_path / "events.txt")
    handler, thread, client = _open_session(EventStore(), persistence)

    reader, snapshot = _read_snapshot(client)
    assert snapshot == []

    # The makefile holds a reference; the socket only closes with both released
    reader.close()
    client.close()
    thread.join(5)
    assert not thread.is_alive()
    assert not handler.received_updates
    assert persistence.saves == 1


def test_updates_keep_session_order(tmp_path):
    store = EventStore()
    persistence = CountingPersistence(tmp_path / "events.txt")
    handler, thread, client = _open_session(store, persistence)
    reader, _ = _read_snapshot(client)

    client.sendall(b"2024-02-01;First\n2024-02-01;Second\r\n2024-02-01;Third")
    client.shutdown(socket.SHUT_WR)
    thread.join(5)
    reader.close()
    client.close()

    # A final line without a newline is still accepted at end of stream
    assert store.events_on(date(2024, 2, 1)) == ["First", "Second", "Third"]
    assert handler.received_count == 3


def test_blank_update_line_ends_session(tmp_path):
    """A blank line has no separator; events after it are never applied."""
    path = tmp_path / "events.txt"
    store = EventStore()
    persistence = CountingPersistence(path)
    handler, thread, client = _open_session(store, persistence)
    reader, _ = _read_snapshot(client)

    client.sendall(b"2024-01-01;A\n\n2024-01-02;AfterBlank\n")
    thread.join(5)
    assert not thread.is_alive(), "session must end on a blank line"
    assert reader.readline() == ""
    reader.close()
    client.close()

    assert handler.state is SessionState.CLOSED
    assert handler.received_count == 1
    assert store.events_on(date(2024, 1, 1)) == ["A"]
    assert store.events_on(date(2024, 1, 2)) == []
    assert persistence.saves == 1
    assert path.read_text(encoding="utf-8") == "2024-01-01;A\n"


def test_malformed_line_ends_session_but_keeps_earlier_events(tmp_path):
    path = tmp_path / "events.txt"
    store = EventStore()
    persistence = CountingPersistence(path)
    handler, thread, client = _open_session(store, persistence)
    reader, _ = _read_snapshot(client)

    client.sendall(b"2024-01-02;Lunch\nthis is not an event\n2024-01-03;Never\n")
    thread.join(5)
    assert not thread.is_alive(), "session must end on a malformed line"

    # The server closed its side; the client sees end of stream
    assert reader.readline() == ""
    reader.close()
    client.close()

    assert store.events_on(date(2024, 1, 2)) == ["Lunch"]
    assert store.events_on(date(2024, 1, 3)) == []
    assert persistence.saves == 1
    assert path.read_text(encoding="utf-8") == "2024-01-02;Lunch\n"


def test_invalid_utf8_is_treated_as_malformed(tmp_path):
    store = EventStore()
    persistence = CountingPersistence(tmp_path / "events.txt")
    handler, thread, client = _open_session(store, persistence)
    reader, _ = _read_snapshot(client)

    client.sendall(b"2024-01-02;Lunch\n")
    # Undecodable bytes in the same chunk would fail the whole read
    assert _wait_for(lambda: len(store) == 1)
    client.sendall(b"2024-01-03;\xff\xfe\n")
    thread.join(5)
    reader.close()
    client.close()

    assert not thread.is_alive()
    assert store.events_on(date(2024, 1, 2)) == ["Lunch"]
    assert persistence.saves == 1


def test_overlong_line_is_rejected(tmp_path):
    store = EventStore()
    persistence = CountingPersistence(tmp_path / "events.txt")
    handler, thread, client = _open_session(store, persistence, max_line_length=32)
    reader, _ = _read_snapshot(client)

    client.sendall(("2024-01-02;" + "x" * 100 + "\n").encode("utf-8"))
    thread.join(5)
    reader.close()
    client.close()

    assert not thread.is_alive()
    assert len(store) == 0
    assert persistence.saves == 1


def test_idle_session_times_out_and_still_saves(tmp_path):
    store = EventStore()
    persistence = CountingPersistence(tmp_path / "events.txt")
    handler, thread, client = _open_session(store, persistence, read_timeout=0.2)
    reader, _ = _read_snapshot(client)

    client.sendall(b"2024-01-02;Lunch\n")
    # Stay connected and silent past the timeout
    thread.join(5)
    assert not thread.is_alive(), "idle session should have been closed"
    reader.close()
    client.close()

    assert handler.state is SessionState.CLOSED
    assert store.events_on(date(2024, 1, 2)) == ["Lunch"]
    assert persistence.saves == 1


def test_peer_gone_before_snapshot_still_saves_once(tmp_path):
    store = EventStore()
    for n in range(50):
        store.append(date(2024, 1, 1), f"event {n}")
    persistence = CountingPersistence(tmp_path / "events.txt")

    server_side, client_side = socket.socketpair()
    client_side.close()
    handler = SessionHandler(server_side, None, store, persistence)
    handler.run()

    assert handler.state is SessionState.CLOSED
    assert persistence.saves == 1
    assert handler.peer_label == "unknown peer"


def test_close_saves_exactly_once(tmp_path):
    persistence = CountingPersistence(tmp_path / "events.txt")
    server_side, client_side = socket.socketpair()
    handler = SessionHandler(server_side, ("127.0.0.1", 1), EventStore(), persistence)

    handler.close()
    handler.close()
    client_side.close()

    assert persistence.saves == 1


def test_write_failure_is_logged_not_raised(tmp_path):
    """An unwritable event file does not break the session or drop memory state."""
    blocked = tmp_path / "blocked"
    blocked.mkdir()
    store = EventStore()
    persistence = CountingPersistence(blocked)
    handler, thread, client = _open_session(store, persistence)
    reader, _ = _read_snapshot(client)

    client.sendall(b"2024-01-02;Lunch\n")
    client.shutdown(socket.SHUT_WR)
    thread.join(5)
    reader.close()
    client.close()

    assert not thread.is_alive()
    assert persistence.saves == 1
    assert not handler.saved
    assert store.events_on(date(2024, 1, 2)) == ["Lunch"]
