"""Schedule helpers for plan items.

Plans run in one of two modes:

* ``synchronized``: every participant reads item N on the plan's own
  ``date_target``.
* ``self-guided``: each participant picks a start date when they enroll and
  item N falls ``N`` intervals after it (one day for daily plans, one week
  for weekly plans).
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, Optional

SCHEDULE_MODE_SYNCHRONIZED = "synchronized"
SCHEDULE_MODE_SELF_GUIDED = "self-guided"
SCHEDULE_MODES = {SCHEDULE_MODE_SYNCHRONIZED, SCHEDULE_MODE_SELF_GUIDED}

SCHEDULE_TYPES = {"daily", "weekly"}


def today_utc() -> date:
    """Calendar date on the UTC clock that completion timestamps use."""
    return datetime.now(timezone.utc).date()


def interval_days(schedule_type: Optional[str]) -> int:
    return 7 if schedule_type == "weekly" else 1


def get_effective_date(
    item,
    schedule_mode: Optional[str],
    custom_start_date: Optional[date],
    schedule_type: Optional[str] = "daily",
) -> Optional[date]:
    """Return the date a participant should read ``item``.

    ``item`` needs ``index`` and ``date_target`` attributes.
    """
    if schedule_mode != SCHEDULE_MODE_SELF_GUIDED:
        return item.date_target
    if custom_start_date is None:
        return None
    return custom_start_date + timedelta(days=item.index * interval_days(schedule_type))


def get_effective_dates(
    items: Iterable,
    schedule_mode: Optional[str],
    custom_start_date: Optional[date],
    schedule_type: Optional[str] = "daily",
) -> Dict[object, Optional[date]]:
    return {
        item.id: get_effective_date(item, schedule_mode, custom_start_date, schedule_type)
        for item in items
    }


def calculate_completion_date(start_date: date, item_count: int, schedule_type: Optional[str] = "daily") -> date:
    """Date of the last reading for a plan of ``item_count`` items."""
    if item_count <= 0:
        return start_date
    return start_date + timedelta(days=(item_count - 1) * interval_days(schedule_type))


def get_days_offset(target: date, today: Optional[date] = None) -> int:
    """Signed whole days from ``today`` to ``target`` (negative when past)."""
    today = today or today_utc()
    return (target - today).days


def format_date_for_display(target: Optional[date], today: Optional[date] = None) -> str:
    if target is None:
        return "Not scheduled"
    today = today or today_utc()
    offset = get_days_offset(target, today)
    if offset == 0:
        return "Today"
    if offset == 1:
        return "Tomorrow"
    label = f"{target.strftime('%b')} {target.day}"
    if target.year != today.year:
        label = f"{label}, {target.year}"
    return label


def get_schedule_mode_description(schedule_mode: Optional[str]) -> str:
    if schedule_mode == SCHEDULE_MODE_SELF_GUIDED:
        return "Start anytime and go at your own pace. Lessons are scheduled from the date you choose."
    return "Everyone reads together on the same schedule."


def parse_start_date(value: Optional[str]) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string; raise ValueError on any other shape."""
    if value is None or value == "":
        return None
    parts = value.split("-")
    if len(parts) != 3 or len(parts[0]) != 4 or len(parts[1]) != 2 or len(parts[2]) != 2:
        raise ValueError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError("Invalid date format. Use YYYY-MM-DD") from None
