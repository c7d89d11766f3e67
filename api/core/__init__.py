"""Cross-cutting pieces of the Series Tracker API: settings, database,
auth, logging and request middleware.

The logging helpers are re-exported for convenience:
    from core import get_logger, set_wide_event_fields
"""

from core.logger import bind_contextvars, clear_contextvars, get_logger
from core.wide_event import get_wide_event, set_wide_event_fields

__all__ = [
    "bind_contextvars",
    "clear_contextvars",
    "get_logger",
    "get_wide_event",
    "set_wide_event_fields",
]
