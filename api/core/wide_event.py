"""Per-request "wide event": one dict, one log line.

RequestLoggingMiddleware creates the dict when a request arrives and logs
it as ``request.completed`` when the response finishes. Anything deeper in
the stack (auth, services, repositories) adds fields to it instead of
writing log lines of its own.

Usage:
    from core.wide_event import set_wide_event_fields

    set_wide_event_fields(series_id=record.id, series_status=record.status)
"""

from contextvars import ContextVar
from typing import Any

WideEvent = dict[str, Any]

_current: ContextVar[WideEvent | None] = ContextVar("wide_event", default=None)


def init_wide_event() -> WideEvent:
    """Start a fresh event for the current context and return it."""
    event: WideEvent = {}
    _current.set(event)
    return event


def get_wide_event() -> WideEvent:
    """The current event; an empty dict when none was started."""
    event = _current.get()
    return event if event is not None else {}


def set_wide_event_fields(**fields: Any) -> None:
    """Merge fields into the current event. Ignored outside a request."""
    event = _current.get()
    if event is not None:
        event.update(fields)


def clear_wide_event() -> None:
    _current.set(None)
