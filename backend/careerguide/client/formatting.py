"""
Display helpers shared by the dashboard views
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from careerguide.utils.dates import to_datetime

GPA_SCALE = 4.0

# (minimum GPA, colour), highest band first
GPA_BANDS = (
    (3.5, "#4CAF50"),
    (3.0, "#8BC34A"),
    (2.5, "#FFC107"),
    (2.0, "#FF9800"),
)
GPA_FAIL_COLOR = "#F44336"


def gpa_color(gpa: Optional[float]) -> str:
    if gpa is None:
        return GPA_FAIL_COLOR
    for minimum, color in GPA_BANDS:
        if gpa >= minimum:
            return color
    return GPA_FAIL_COLOR


def gpa_percentage(gpa: Optional[float]) -> float:
    """GPA as a 0-100 bar width"""
    if not gpa:
        return 0.0
    return max(0.0, min(100.0, gpa / GPA_SCALE * 100))


def format_date(value: Any) -> str:
    """Jan 5, 2024 style; empty string for missing dates"""
    dt = to_datetime(value)
    if dt is None:
        return ""
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


def time_ago(value: Any, now: Optional[datetime] = None) -> str:
    dt = to_datetime(value)
    if dt is None:
        return ""
    seconds = int(((now or datetime.utcnow()) - dt).total_seconds())

    units = (
        (31536000, "year", "a year ago"),
        (2592000, "month", "a month ago"),
        (86400, "day", "yesterday"),
        (3600, "hour", "an hour ago"),
        (60, "minute", "a minute ago"),
    )
    for size, name, single in units:
        count = seconds // size
        if count >= 2:
            return f"{count} {name}s ago"
        if count == 1:
            return single
    return "just now"


def format_event_date(value: Any) -> str:
    """Short date, e.g. Jan 5"""
    dt = to_datetime(value)
    return f"{dt.strftime('%b')} {dt.day}" if dt else ""


def format_event_time(value: Any) -> str:
    """12-hour time, e.g. 02:30 PM"""
    dt = to_datetime(value)
    return dt.strftime("%I:%M %p") if dt else ""


ACTIVITY_ICONS = {
    "application": "fa-file-alt",
    "admission": "fa-check-circle",
    "job": "fa-briefcase",
    "event": "fa-calendar",
}


def activity_icon(activity_type: Optional[str]) -> str:
    return ACTIVITY_ICONS.get(activity_type or "", "fa-info-circle")


def status_class(status: Optional[str]) -> str:
    """CSS class for a status badge"""
    return f"status-{(status or 'unknown').lower().replace('_', '-')}"


class Debouncer:
    """
    Run a coroutine only after `delay` seconds without a new call.

    Usage:
        search = Debouncer(0.3, reload_students)
        search.call("ali")   # superseded
        search.call("alice") # runs reload_students("alice") after 300ms
    """

    def __init__(self, delay: float, func: Callable[..., Awaitable[Any]]):
        self.delay = delay
        self.func = func
        self._task: Optional[asyncio.Task] = None

    async def _run_later(self, *args: Any, **kwargs: Any) -> Any:
        await asyncio.sleep(self.delay)
        return await self.func(*args, **kwargs)

    def call(self, *args: Any, **kwargs: Any) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.ensure_future(self._run_later(*args, **kwargs))
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
