"""
Test suite for the server and console client entry points.
Both print a diagnostic to stderr and exit with status 1 when they cannot
start or sync.
"""
import io
import socket
import threading

import pytest

import main as server_main
from client import console


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def occupied_port():
    """A port that already has a listening socket on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    yield sock.getsockname()[1]
    sock.close()


def test_server_exits_with_status_1_when_port_is_taken(occupied_port, tmp_path, monkeypatch, capsys):
    # Keep the test runner's own signal handlers
    monkeypatch.setattr(server_main.signal, "signal", lambda signum, handler: None)

    with pytest.raises(SystemExit) as exc_info:
        server_main.main(host="127.0.0.1", port=occupied_port, events_file=tmp_path / "events.txt")

    assert exc_info.value.code == 1
    err = capsys.readouterr().err
    assert "calendar server:" in err
    assert f"127.0.0.1:{occupied_port}" in err


def test_client_exits_with_status_1_when_server_is_down(capsys):
    port = _free_port()

    with pytest.raises(SystemExit) as exc_info:
        console.main(host="127.0.0.1", port=port)

    assert exc_info.value.code == 1
    assert "Client failed to connect to server" in capsys.readouterr().err


def test_client_exits_with_status_1_on_garbled_snapshot(monkeypatch, capsys):
    """A snapshot line the client cannot parse ends the client with a diagnostic."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    port = server.getsockname()[1]

    def send_garbage():
        conn, _ = server.accept()
        with conn:
            conn.sendall(b"this is not an event\nEND\n")
            conn.recv(1024)

    thread = threading.Thread(target=send_garbage, daemon=True)
    thread.start()
    monkeypatch.setattr(console.sys, "stdin", io.StringIO("quit\n"))

    try:
        with pytest.raises(SystemExit) as exc_info:
            console.main(host="127.0.0.1", port=port)
    finally:
        thread.join(5)
        server.close()

    assert exc_info.value.code == 1
    assert "Sync with server failed" in capsys.readouterr().err
