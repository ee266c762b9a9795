#!/usr/bin/env python3
"""
Calendar Sync Server - Main Entry Point

Keeps a shared set of calendar events consistent across every connected
client: each client receives the full calendar on connect and then streams
its new events back to the server.
"""

import sys
import signal
from utils.logging import logger
from utils.config import log_startup_config
from utils.environ import EVENTS_FILE, SERVER_HOST, SERVER_PORT
from utils.error_handling import BindError
from server import EventStore, EventPersistence, Listener

def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    logger.info(f"Received signal {signum}, initiating shutdown...")
    sys.exit(0)

def main(host=SERVER_HOST, port=SERVER_PORT, events_file=EVENTS_FILE):
    """Main application entry point."""
    listener = None
    try:
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        logger.info("=" * 60)
        logger.info("📅 Calendar Sync Server Starting")
        logger.info("=" * 60)
        log_startup_config()

        store = EventStore()
        persistence = EventPersistence(events_file)
        persistence.load(store)

        listener = Listener(store, persistence, host=host, port=port)
        try:
            listener.bind()
        except BindError as e:
            logger.critical(f"❌ {e}")
            print(f"calendar server: {e}", file=sys.stderr)
            sys.exit(1)

        logger.info("Server is running")
        listener.serve_forever()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.exception(f"Fatal error in server: {e}")
        sys.exit(1)
    finally:
        if listener is not None:
            listener.shutdown()
            logger.info(f"Final session stats: {listener.get_stats()}")
        logger.info("📅 Calendar Sync Server Shutdown Complete")

if __name__ == "__main__":
    main()
