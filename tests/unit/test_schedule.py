from datetime import date
from types import SimpleNamespace

import pytest

from dailybread.utils.schedule import (
    calculate_completion_date,
    format_date_for_display,
    get_days_offset,
    get_effective_date,
    get_effective_dates,
    get_schedule_mode_description,
    interval_days,
    parse_start_date,
)


def _item(index, target=None, item_id=None):
    return SimpleNamespace(id=item_id or index, index=index, date_target=target)


def test_synchronized_uses_item_target_date():
    item = _item(3, date(2025, 1, 10))
    assert get_effective_date(item, "synchronized", date(2025, 6, 1)) == date(2025, 1, 10)


def test_self_guided_offsets_from_start_date():
    item = _item(2, date(2025, 1, 10))
    assert get_effective_date(item, "self-guided", date(2025, 3, 1)) == date(2025, 3, 3)


def test_self_guided_weekly_offsets_in_weeks():
    item = _item(2)
    assert get_effective_date(item, "self-guided", date(2025, 3, 1), "weekly") == date(2025, 3, 15)


def test_self_guided_without_start_is_unscheduled():
    assert get_effective_date(_item(0, date(2025, 1, 1)), "self-guided", None) is None


def test_effective_dates_keyed_by_item_id():
    items = [_item(0, item_id="a"), _item(1, item_id="b")]
    dates = get_effective_dates(items, "self-guided", date(2025, 1, 1))
    assert dates == {"a": date(2025, 1, 1), "b": date(2025, 1, 2)}


def test_interval_days():
    assert interval_days("daily") == 1
    assert interval_days("weekly") == 7
    assert interval_days(None) == 1


def test_completion_date_daily_and_weekly():
    assert calculate_completion_date(date(2025, 1, 1), 30) == date(2025, 1, 30)
    assert calculate_completion_date(date(2025, 1, 1), 4, "weekly") == date(2025, 1, 22)
    assert calculate_completion_date(date(2025, 1, 1), 0) == date(2025, 1, 1)


def test_days_offset_is_signed():
    today = date(2025, 5, 10)
    assert get_days_offset(date(2025, 5, 12), today) == 2
    assert get_days_offset(date(2025, 5, 7), today) == -3


@pytest.mark.parametrize(
    "target,expected",
    [
        (date(2025, 5, 10), "Today"),
        (date(2025, 5, 11), "Tomorrow"),
        (date(2025, 5, 20), "May 20"),
        (date(2025, 5, 9), "May 9"),
        (date(2026, 1, 3), "Jan 3, 2026"),
        (None, "Not scheduled"),
    ],
)
def test_format_date_for_display(target, expected):
    assert format_date_for_display(target, date(2025, 5, 10)) == expected


def test_schedule_mode_description():
    assert "own pace" in get_schedule_mode_description("self-guided")
    assert "same schedule" in get_schedule_mode_description("synchronized")


def test_parse_start_date_accepts_iso():
    assert parse_start_date("2025-02-28") == date(2025, 2, 28)
    assert parse_start_date("") is None
    assert parse_start_date(None) is None


@pytest.mark.parametrize("raw", ["2025-2-28", "28/02/2025", "2025-02-30", "tomorrow"])
def test_parse_start_date_rejects_other_shapes(raw):
    with pytest.raises(ValueError, match="Invalid date format"):
        parse_start_date(raw)
