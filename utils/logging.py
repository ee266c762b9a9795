# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                      CALENDAR SERVER LOGGING SETUP                        ║
# ║ Configures asynchronous, rotating file logging and colored console output. ║
# ║ Includes fallback mechanisms for log directory permissions.                ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import logging
import sys
import platform
import atexit
import os
import tempfile
from logging.handlers import QueueHandler, QueueListener, MemoryHandler, TimedRotatingFileHandler
from queue import Queue

# Third-party imports
from colorlog import ColoredFormatter

# Local application imports
from utils.environ import DEBUG, LOG_DIR

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ LOGGING CONFIGURATION AND CONSTANTS                                        ║
# ╚════════════════════════════════════════════════════════════════════════════╝

LOGGER_NAME = "calendarserver"

LOG_FILE = os.path.join(LOG_DIR, "server.log")

# Fallback directories if LOG_DIR is not writable
FALLBACK_DIRS = [
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs"),
    tempfile.gettempdir(),
]

active_log_file = None
log_dir_used = None

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ LOG DIRECTORY SETUP                                                        ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- setup_log_directory ---
# Finds a writable log directory, preferring LOG_DIR and then FALLBACK_DIRS.
# Sets `active_log_file` and `log_dir_used` globals upon success.
# Returns: True if a writable log directory was found, False otherwise.
def setup_log_directory():
    global active_log_file, log_dir_used
    # --- Try Preferred Directory ---
    if os.access(os.path.dirname(LOG_DIR) or ".", os.W_OK):
        try:
            os.makedirs(LOG_DIR, exist_ok=True)
            if os.access(LOG_DIR, os.W_OK):
                active_log_file = LOG_FILE
                log_dir_used = LOG_DIR
                return True
        except OSError as e:
            # Logger is not ready yet
            print(f"Notice: Could not use preferred log directory {LOG_DIR}: {e}")

    # --- Try Fallback Directories ---
    for fallback in FALLBACK_DIRS:
        try:
            os.makedirs(fallback, exist_ok=True)
            if os.access(fallback, os.W_OK):
                active_log_file = os.path.join(fallback, "calendarserver.log")
                log_dir_used = fallback
                print(f"Using fallback log directory: {fallback}")
                return True
        except OSError as e:
            print(f"Notice: Could not use fallback log directory {fallback}: {e}")
            continue

    print("WARNING: Could not find any writable log directory. File logging disabled.")
    return False

has_valid_log_dir = setup_log_directory()

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ LOGGER INITIALIZATION AND CONFIGURATION                                    ║
# ╚════════════════════════════════════════════════════════════════════════════╝

logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(logging.DEBUG if DEBUG else logging.INFO)

# Session threads log through a queue so a slow handler never stalls a socket
log_queue = Queue(-1)

file_formatter = logging.Formatter(
    "[%(asctime)s] %(levelname)s in %(threadName)s [%(filename)s:%(lineno)d]: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
console_formatter = ColoredFormatter(
    "%(log_color)s[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    log_colors={
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
)

# --- build_handlers ---
# Console handler always; a daily rotating file behind a MemoryHandler when a
# log directory is available.
def build_handlers():
    handlers = []
    if has_valid_log_dir and active_log_file:
        try:
            file_handler = TimedRotatingFileHandler(
                active_log_file,
                when="midnight",
                backupCount=7,
                encoding="utf-8",
            )
        except OSError as e:
            print(f"ERROR: Failed to set up file logging handler: {e}")
        else:
            file_handler.setFormatter(file_formatter)
            # Flushes to the file on ERROR or when full
            handlers.append(MemoryHandler(capacity=1000, flushLevel=logging.ERROR, target=file_handler))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)
    return handlers

# --- cleanup ---
# Stops the queue listener first so queued records reach the handlers.
def cleanup(listener, handlers):
    listener.stop()
    for handler in handlers:
        if isinstance(handler, MemoryHandler) and handler.target:
            handler.flush()
            handler.target.close()
        handler.close()

if not getattr(logger, '_initialized', False):
    _handlers = build_handlers()
    logger.addHandler(QueueHandler(log_queue))
    logger._listener = QueueListener(log_queue, *_handlers)
    logger._listener.start()
    logger._initialized = True
    atexit.register(cleanup, logger._listener, _handlers)

    logger.debug(f"--- Logging Initialized ({platform.system()} {platform.release()}) ---")
    if log_dir_used:
        logger.debug(f"Log Directory: {log_dir_used}")

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ UTILITY FUNCTIONS                                                          ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- get_log_file_location ---
# Returns: The active log file path, or a note that logging is console-only.
def get_log_file_location():
    if has_valid_log_dir and active_log_file:
        return active_log_file
    return "Console only (File logging disabled)"
