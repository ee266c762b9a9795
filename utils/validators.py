# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                         VALIDATION UTILITIES                              ║
# ║          Calendar date and event description input validators             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
from datetime import date
from typing import Optional, Tuple
import re

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ DATE VALIDATION FUNCTIONS                                                  ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Strict calendar date: four-digit year, two-digit month and day
ISO_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

# --- parse_iso_date ---
# Parse a strict YYYY-MM-DD calendar date.
# Args:
#     text: The candidate date string.
# Returns:
#     The parsed date, or None if the text is not a valid calendar date.
def parse_iso_date(text: str) -> Optional[date]:
    """
    Parse a calendar date in the exact ``YYYY-MM-DD`` form.

    ``date.fromisoformat`` alone also accepts compact and week-based
    forms on newer interpreters, so the shape is checked first.
    """
    if not text or not ISO_DATE_PATTERN.fullmatch(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        # Right shape, impossible date (e.g. 2024-02-30)
        return None

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ DESCRIPTION VALIDATION FUNCTIONS                                           ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Characters that would break the line protocol if sent inside a description
FORBIDDEN_DESCRIPTION_CHARS = (";", "\n", "\r")

# --- validate_event_description ---
# Validate an event description before it is sent to the server.
# Args:
#     description: The event text typed by the user.
# Returns:
#     Tuple (is_valid: bool, error_message: str).
def validate_event_description(description: Optional[str]) -> Tuple[bool, str]:
    """
    Validate event description text against the wire format.

    Returns:
        Tuple containing (is_valid, error_message)
        - is_valid: Boolean indicating if the description can be sent
        - error_message: Empty string if valid, otherwise contains error reason
    """
    if description is None or not description.strip():
        return False, "Event description must not be empty"

    for char in FORBIDDEN_DESCRIPTION_CHARS:
        if char in description:
            shown = repr(char) if char != ";" else "';'"
            return False, f"Event description must not contain {shown}"

    return True, ""
