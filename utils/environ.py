# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                       ENVIRONMENT CONFIGURATION                            ║
# ║    Centralized access and type conversion for environment variables.       ║
# ║       Includes helpers for boolean, integer, and string values.            ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import os

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ HELPER FUNCTIONS                                                           ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- get_bool_env ---
# Retrieves an environment variable and interprets it as a boolean.
# Considers '1', 'true', 'yes' (case-insensitive) as True.
# Args:
#     var_name: The name of the environment variable.
#     default: The default boolean value if the variable is not set.
# Returns: The boolean value of the environment variable or the default.
def get_bool_env(var_name: str, default: bool = False) -> bool:
    val = os.getenv(var_name, str(default)).lower()
    return val in ("1", "true", "yes")

# --- get_int_env ---
# Retrieves an environment variable and converts it to an integer.
# Args:
#     var_name: The name of the environment variable.
#     default: The default integer value if the variable is not set or invalid.
# Returns: The integer value of the environment variable or the default.
def get_int_env(var_name: str, default: int = 0) -> int:
    val_str = os.getenv(var_name)
    if val_str is None:
        return default
    try:
        return int(val_str)
    except ValueError:
        return default

# --- get_str_env ---
# Retrieves an environment variable as a string.
# Args:
#     var_name: The name of the environment variable.
#     default: The default string value if the variable is not set.
# Returns: The string value of the environment variable or the default.
def get_str_env(var_name: str, default: str = "") -> str:
    return os.getenv(var_name, default)

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CORE CONFIGURATION VARIABLES                                               ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Debug mode flag (controls verbose logging)
DEBUG: bool = get_bool_env("DEBUG", False)

# Address the server binds to ("" means every interface)
SERVER_HOST: str = get_str_env("SERVER_HOST", "")

# Well-known port shared by server and clients
SERVER_PORT: int = get_int_env("SERVER_PORT", 2020)

# Host the console client connects to
CLIENT_HOST: str = get_str_env("CLIENT_HOST", "localhost")

# Durable event storage (one "<date>;<description>" line per event)
EVENTS_FILE: str = get_str_env("EVENTS_FILE", "events.txt")

# Preferred log directory (often mounted in Docker)
LOG_DIR: str = get_str_env("LOG_DIR", "/data/logs")

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ SESSION LIMITS                                                             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Seconds a session may sit idle before it is closed (0 disables the timeout)
SESSION_READ_TIMEOUT: int = get_int_env("SESSION_READ_TIMEOUT", 600)

# Upper bound on concurrently running sessions (0 means unbounded)
MAX_SESSIONS: int = get_int_env("MAX_SESSIONS", 64)

# Longest update line a client may send, newline included
MAX_LINE_LENGTH: int = get_int_env("MAX_LINE_LENGTH", 4096)
