#!/usr/bin/env python3
"""
Console calendar: a text front end for the calendar sync server.

The view only holds two capabilities, one that fetches the server snapshot
and one that submits a new event, so it never touches the socket directly.

Commands:
    <when>; <what>      add an event ("2024-01-31; Dentist", "friday; Gym")
    del <when> <n>      remove the n-th event of a day from this view only
    list                show the events again
    quit                disconnect
"""

# Standard library imports
import sys
from datetime import date
from typing import Callable, Dict, List, Optional, TextIO

# Local application imports
from utils.logging import logger
from utils.environ import CLIENT_HOST, SERVER_PORT
from utils.error_handling import CalendarSyncError, ConnectError
from utils.validators import validate_event_description
from .connection import CalendarClient
from .date_utils import resolve_event_date

HELP_TEXT = "Type '<when>; <what>' to add an event, 'del <when> <n>' to hide one, 'list' or 'quit'."

SnapshotFetcher = Callable[[], Dict[date, List[str]]]
EventSubmitter = Callable[[date, str], None]

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CLASS DEFINITION: ConsoleCalendar                                          ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class ConsoleCalendar:
    def __init__(
        self,
        fetch_snapshot: SnapshotFetcher,
        submit_event: EventSubmitter,
        output: TextIO = sys.stdout,
        today: Optional[date] = None
    ):
        self._fetch_snapshot = fetch_snapshot
        self._submit_event = submit_event
        self.output = output
        self.today = today
        self.events: Dict[date, List[str]] = {}

    # --- refresh ---
    # Replaces the local view with a fresh server snapshot and shows it.
    def refresh(self) -> None:
        self.events = {day: list(descriptions) for day, descriptions in self._fetch_snapshot().items()}
        self.render()

    # --- render ---
    # Prints every day in calendar order, events in the order they were added.
    def render(self) -> None:
        if not any(self.events.values()):
            self._say("No events.")
            return
        for day in sorted(self.events):
            descriptions = self.events[day]
            if not descriptions:
                continue
            self._say(f"{day.isoformat()} ({day.strftime('%A')})")
            for index, description in enumerate(descriptions, start=1):
                self._say(f"  {index}. {description}")

    # --- handle_command ---
    # Executes one line of user input.
    # Returns: False when the user asked to quit, True otherwise.
    def handle_command(self, line: str) -> bool:
        command = line.strip()
        if not command:
            return True

        lowered = command.lower()
        if lowered in ("quit", "exit"):
            return False
        if lowered == "list":
            self.render()
        elif lowered.startswith("del "):
            parts = command[4:].rsplit(None, 1)
            if len(parts) != 2:
                self._say("Usage: del <when> <n>")
            else:
                self.delete_local(parts[0], parts[1])
        elif ";" in command:
            when, _, what = command.partition(";")
            self.add_event(when, what.strip())
        else:
            self._say(HELP_TEXT)
        return True

    # --- add_event ---
    # Resolves the date, sends the event and mirrors it in the local view.
    # Returns: The date the event was filed under, or None if it was rejected.
    def add_event(self, when: str, what: str) -> Optional[date]:
        event_date = resolve_event_date(when, today=self.today)
        if event_date is None:
            self._say(f"Could not understand the date {when.strip()!r}")
            return None

        is_valid, error = validate_event_description(what)
        if not is_valid:
            self._say(error)
            return None

        self._submit_event(event_date, what)
        self.events.setdefault(event_date, []).append(what)
        self._say(f"Added '{what}' on {event_date.isoformat()}")
        return event_date

    # --- delete_local ---
    # Removes an event from this view only; the server keeps it and every
    # other client still sees it.
    def delete_local(self, when: str, index_text: str) -> bool:
        event_date = resolve_event_date(when, today=self.today)
        descriptions = self.events.get(event_date) if event_date else None
        if not descriptions:
            self._say(f"No events on {when.strip()}")
            return False
        try:
            index = int(index_text)
        except ValueError:
            self._say(f"Not an event number: {index_text!r}")
            return False
        if not 1 <= index <= len(descriptions):
            self._say(f"Pick a number between 1 and {len(descriptions)}")
            return False

        removed = descriptions.pop(index - 1)
        self._say(f"Hid '{removed}' from {event_date.isoformat()} (not sent to the server)")
        return True

    # --- run ---
    # Shows the snapshot, then processes commands until quit or end of input.
    def run(self, input_stream: TextIO) -> None:
        self.refresh()
        self._say(HELP_TEXT)
        for line in input_stream:
            if not self.handle_command(line):
                break

    def _say(self, message: str) -> None:
        print(message, file=self.output)

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ ENTRY POINT                                                                ║
# ╚════════════════════════════════════════════════════════════════════════════╝

def main(host=CLIENT_HOST, port=SERVER_PORT):
    """Console client entry point."""
    client = CalendarClient(host, port)
    try:
        client.connect()
    except ConnectError as e:
        print(f"Client failed to connect to server: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        console = ConsoleCalendar(client.fetch_snapshot, client.submit_event)
        console.run(sys.stdin)
    except CalendarSyncError as e:
        logger.error(f"Sync with server failed: {e}")
        print(f"Sync with server failed: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    finally:
        client.close()

if __name__ == "__main__":
    main()
