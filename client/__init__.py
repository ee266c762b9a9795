# Client Package
"""
Calendar Sync Server - Client Package

A socket client for the sync protocol and a console view built on top of it.
"""

from .connection import CalendarClient
from .console import ConsoleCalendar
from .date_utils import resolve_event_date

__all__ = ['CalendarClient', 'ConsoleCalendar', 'resolve_event_date']
