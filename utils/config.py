"""
Configuration management for the Calendar Sync Server.

This module validates the environment-driven settings and logs a
summary of them at startup.
"""

from typing import Dict, Any, List
from .environ import (
    DEBUG, SERVER_HOST, SERVER_PORT, EVENTS_FILE,
    SESSION_READ_TIMEOUT, MAX_SESSIONS, MAX_LINE_LENGTH,
)
from .logging import logger, get_log_file_location

# ╔════════════════════════════════════════════════════════════════════╗
# ║ 📋 Configuration Validation                                        ║
# ╚════════════════════════════════════════════════════════════════════╝

def validate_config() -> List[str]:
    """Validate configuration and return warnings."""
    warnings = []

    if not 0 < SERVER_PORT < 65536:
        warnings.append(f"SERVER_PORT {SERVER_PORT} is outside 1-65535 - binding will fail")

    if SESSION_READ_TIMEOUT <= 0:
        warnings.append("SESSION_READ_TIMEOUT disabled - idle clients can hold sessions open forever")

    if MAX_SESSIONS <= 0:
        warnings.append("MAX_SESSIONS unbounded - every connection gets its own thread")

    if MAX_LINE_LENGTH < 16:
        warnings.append(f"MAX_LINE_LENGTH {MAX_LINE_LENGTH} is too small for a dated event line")

    return warnings

def get_config_summary() -> Dict[str, Any]:
    """Get a summary of current configuration."""
    return {
        "debug_mode": DEBUG,
        "endpoint": f"{SERVER_HOST or '*'}:{SERVER_PORT}",
        "events_file": EVENTS_FILE,
        "read_timeout": SESSION_READ_TIMEOUT,
        "max_sessions": MAX_SESSIONS,
        "max_line_length": MAX_LINE_LENGTH,
        "log_file": get_log_file_location(),
    }

def log_startup_config():
    """Log configuration summary at startup."""
    logger.info("=" * 50)
    logger.info("🔧 Configuration Summary")
    logger.info("=" * 50)

    config = get_config_summary()
    logger.info(f"Debug Mode: {config['debug_mode']}")
    logger.info(f"Endpoint: {config['endpoint']}")
    logger.info(f"Events File: {config['events_file']}")
    logger.info(f"Read Timeout: {config['read_timeout'] or 'none'}")
    logger.info(f"Max Sessions: {config['max_sessions'] or 'unbounded'}")
    logger.info(f"Max Line Length: {config['max_line_length']}")
    logger.info(f"Log File: {config['log_file']}")

    warnings = validate_config()
    if warnings:
        logger.warning("Configuration warnings:")
        for warning in warnings:
            logger.warning(f"  - {warning}")

    logger.info("=" * 50)
